"""
Activity & Sales Recorder

사용자 행동 로그와 판매 이력을 기록하는 append-only 서비스입니다.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from merchandising.exceptions import ValidationError
from merchandising.models import SalesHistory, UserActivity

logger = logging.getLogger(__name__)

ACTIVITY_TYPES = ("view", "add_to_cart", "purchase", "product_qa", "search")


def generate_session_id() -> str:
    """비회원 추적용 세션 ID"""
    return str(uuid.uuid4())


class ActivityService:
    def __init__(self, db: Session):
        self.db = db

    def track_user_activity(
        self,
        session_id: str,
        activity_type: str,
        user_id: Optional[int] = None,
        product_id: Optional[int] = None,
        category_id: Optional[int] = None,
        search_query: Optional[str] = None,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> UserActivity:
        if not session_id:
            raise ValidationError("session_id is required", field="session_id")
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationError(f"Unsupported activity type: {activity_type}", field="activity_type", actual_value=activity_type)

        activity = UserActivity(
            user_id=user_id,
            session_id=session_id,
            activity_type=activity_type,
            product_id=product_id,
            category_id=category_id,
            search_query=search_query,
            timestamp=datetime.now(timezone.utc),
            additional_data=additional_data,
        )
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        return activity

    def record_sales_data(
        self,
        product_id: int,
        seller_id: int,
        quantity: int,
        revenue: float,
        cost_price: float,
        channel: str = "marketplace",
        promotion_applied: bool = False,
        seasonality: str = "",
        date: Optional[datetime] = None,
    ) -> SalesHistory:
        """
        판매 1건을 기록합니다. 이익률(%) = (매출 - 원가) / 매출 * 100
        """
        if quantity < 0:
            raise ValidationError("quantity must not be negative", field="quantity", actual_value=quantity)

        profit_margin = ((revenue - cost_price) / revenue) * 100 if revenue else None

        record = SalesHistory(
            product_id=product_id,
            seller_id=seller_id,
            date=date or datetime.now(timezone.utc),
            quantity=quantity,
            revenue=revenue,
            cost_price=cost_price,
            profit_margin=profit_margin,
            channel=channel,
            promotion_applied=promotion_applied,
            seasonality=seasonality,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Recorded sales for product {product_id}: qty={quantity}, revenue={revenue}")
        return record
