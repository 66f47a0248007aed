"""
Recommendation Engine

구매자용 읽기 전용 추천 서비스입니다.
개인화 추천, 함께 구매하는 상품, 사이즈 추천을 단계별 폴백 체인으로 제공합니다.
어떤 경우에도 예외를 밖으로 던지지 않고 빈 결과(또는 confidence 0)를 반환합니다.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from merchandising.models import (
    Category, Order, OrderItem, Product, ProductRelationship, SizePreference, UserActivity
)
from merchandising.services.recommendation.fallback import run_fallback_chain
from merchandising.services.recommendation.sizing import closest_size
from merchandising.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

INTEREST_ACTIVITY_TYPES = ("view", "add_to_cart", "purchase")
COMPLEMENTARY = "complementary"


class RecommendationEngine:
    """
    추천 엔진
    """

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings

    # ==================== 개인화 추천 ====================

    def get_personalized_recommendations(self, user_id: Optional[int] = None, limit: int = 10) -> List[Product]:
        """
        사용자 맞춤 추천 상품을 반환합니다.

        1. 최근 활동 상품과 연결된 보완 관계 상품 (로그인 사용자)
        2. 최근 30일 관심 카테고리의 신상품 (로그인 사용자)
        3. 전체 신상품
        """
        if limit <= 0:
            return []

        attempts = []
        if user_id:
            attempts.append(("relationships", lambda: self._related_to_recent_activity(user_id, limit)))
            attempts.append(("categories", lambda: self._from_interest_categories(user_id, limit)))
        attempts.append(("newest", lambda: self._newest_approved(limit)))

        result = run_fallback_chain("personalized", attempts)
        return result.items[:limit]

    def _related_to_recent_activity(self, user_id: int, limit: int) -> List[Product]:
        recent_stmt = (
            select(UserActivity.product_id)
            .where(
                UserActivity.user_id == user_id,
                UserActivity.activity_type.in_(INTEREST_ACTIVITY_TYPES),
                UserActivity.product_id.is_not(None),
            )
            .order_by(desc(UserActivity.timestamp), desc(UserActivity.id))
            .limit(self.config.recommendation_recent_activity_limit)
        )
        source_ids = {pid for pid in self.db.scalars(recent_stmt).all() if pid is not None}
        if not source_ids:
            return []

        edge_stmt = (
            select(ProductRelationship.related_product_id)
            .where(
                ProductRelationship.relationship_type == COMPLEMENTARY,
                ProductRelationship.source_product_id.in_(source_ids),
            )
            .order_by(desc(ProductRelationship.strength), ProductRelationship.id)
            .limit(limit)
        )
        related_ids = list(self.db.scalars(edge_stmt).all())
        return self._resolve_approved(related_ids, limit)

    def _from_interest_categories(self, user_id: int, limit: int) -> List[Product]:
        since = datetime.now(timezone.utc) - timedelta(days=self.config.recommendation_activity_window_days)
        touches = func.count(UserActivity.id).label("touches")
        category_stmt = (
            select(UserActivity.category_id, touches)
            .where(
                UserActivity.user_id == user_id,
                UserActivity.category_id.is_not(None),
                UserActivity.timestamp >= since,
            )
            .group_by(UserActivity.category_id)
            .order_by(desc(touches), UserActivity.category_id)
            .limit(self.config.recommendation_top_categories)
        )
        top_categories = self.db.execute(category_stmt).all()
        if not top_categories:
            return []

        category_ids = [row.category_id for row in top_categories]
        names = dict(
            self.db.execute(select(Category.id, Category.name).where(Category.id.in_(category_ids))).all()
        )

        per_category = math.ceil(limit / len(top_categories))
        collected: List[Product] = []
        seen_ids = set()
        for category_id in category_ids:
            name = names.get(category_id)
            if not name:
                continue
            stmt = (
                select(Product)
                .where(Product.approved.is_(True), Product.category.ilike(name))
                .order_by(desc(Product.id))
                .limit(per_category)
            )
            for product in self.db.scalars(stmt).all():
                if product.id not in seen_ids:
                    seen_ids.add(product.id)
                    collected.append(product)

        return collected[:limit]

    def _newest_approved(self, limit: int) -> List[Product]:
        stmt = select(Product).where(Product.approved.is_(True)).order_by(desc(Product.id)).limit(limit)
        return list(self.db.scalars(stmt).all())

    def _resolve_approved(self, product_ids: List[int], limit: int) -> List[Product]:
        """관계 순서를 유지하며 승인된 상품으로 변환"""
        if not product_ids:
            return []
        stmt = select(Product).where(Product.id.in_(product_ids), Product.approved.is_(True))
        by_id = {p.id: p for p in self.db.scalars(stmt).all()}

        ordered: List[Product] = []
        for pid in product_ids:
            product = by_id.pop(pid, None)
            if product is not None:
                ordered.append(product)
        return ordered[:limit]

    # ==================== 함께 구매하는 상품 ====================

    def get_complementary_products(self, product_id: int, limit: int = 5) -> List[Product]:
        """
        상품과 함께 보거나 구매할 만한 상품을 반환합니다.

        (a) 명시적 보완 관계 (b) 같은 주문에서 함께 구매된 상품 (c) 같은 카테고리 신상품
        """
        if limit <= 0:
            return []

        result = run_fallback_chain(
            "complementary",
            [
                ("relationships", lambda: self._explicit_complements(product_id, limit)),
                ("co_purchase", lambda: self._bought_together(product_id, limit)),
                ("same_category", lambda: self._same_category(product_id, limit)),
            ],
        )
        return result.items[:limit]

    def _explicit_complements(self, product_id: int, limit: int) -> List[Product]:
        stmt = (
            select(ProductRelationship.related_product_id)
            .where(
                ProductRelationship.source_product_id == product_id,
                ProductRelationship.relationship_type == COMPLEMENTARY,
            )
            .order_by(desc(ProductRelationship.strength), ProductRelationship.id)
            .limit(limit)
        )
        return self._resolve_approved(list(self.db.scalars(stmt).all()), limit)

    def _bought_together(self, product_id: int, limit: int) -> List[Product]:
        orders_with_product = select(OrderItem.order_id).where(OrderItem.product_id == product_id)
        frequency = func.count(OrderItem.id).label("frequency")
        stmt = (
            select(Product, frequency)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .where(
                OrderItem.order_id.in_(orders_with_product),
                Product.id != product_id,
                Product.approved.is_(True),
            )
            .group_by(Product.id)
            .order_by(desc(frequency), desc(Product.id))
            .limit(limit)
        )
        return [row[0] for row in self.db.execute(stmt).all()]

    def _same_category(self, product_id: int, limit: int) -> List[Product]:
        product = self.db.get(Product, product_id)
        if not product or not product.category:
            return []
        stmt = (
            select(Product)
            .where(
                Product.approved.is_(True),
                Product.category.ilike(product.category),
                Product.id != product_id,
            )
            .order_by(desc(Product.id))
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all())

    # ==================== 사이즈 추천 ====================

    def get_size_recommendation(
        self,
        user_id: Optional[int],
        product_id: int,
        category: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        사용자에게 맞는 사이즈를 추천합니다.

        Returns:
            {"recommended_size": str | None, "confidence": float, "message": str}
        """
        try:
            return self._size_recommendation(user_id, product_id, category)
        except Exception as e:
            logger.error(f"Size recommendation failed for product {product_id}: {e}")
            return _size_result(None, 0.0, "Unable to generate size recommendation")

    def _size_recommendation(self, user_id: Optional[int], product_id: int, category: Optional[str]) -> Dict[str, Any]:
        if not user_id:
            return _size_result(None, 0.0, "Sign in to get personalized size recommendations")

        product = self.db.get(Product, product_id)
        available = product.available_sizes if product else []
        if not available:
            return _size_result(None, 0.0, "Size information not available for this product")

        product_category = category or product.category or ""

        preference = self.db.scalars(
            select(SizePreference)
            .where(SizePreference.user_id == user_id, SizePreference.category.ilike(product_category))
            .order_by(desc(SizePreference.id))
            .limit(1)
        ).first()
        if preference:
            return _size_result(
                closest_size(preference.size, available),
                0.9,
                f"Based on your saved preferences for {product_category}",
            )

        purchase_count = func.count(OrderItem.id).label("purchase_count")
        past_size = self.db.execute(
            select(OrderItem.size, purchase_count)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(
                Order.user_id == user_id,
                Product.category.ilike(product_category),
                OrderItem.size.is_not(None),
                OrderItem.size != "",
            )
            .group_by(OrderItem.size)
            .order_by(desc(purchase_count), OrderItem.size)
            .limit(1)
        ).first()
        if past_size:
            return _size_result(
                closest_size(past_size.size, available),
                0.8,
                f"Based on your previous {product_category} purchases",
            )

        # 이력이 없으면 판매 사이즈 목록의 가운데 값
        return _size_result(available[len(available) // 2], 0.3, "Based on average customer size selection")


def _size_result(size: Optional[str], confidence: float, message: str) -> Dict[str, Any]:
    return {"recommended_size": size, "confidence": confidence, "message": message}
