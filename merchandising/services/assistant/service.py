"""
Conversational Shopping Assistant

사용자 발화에서 상품 키워드를 감지해 관련 상품을 시스템 프롬프트에 넣고,
모델이 되묻기 전에 바로 상품을 추천하도록 유도합니다.
"""
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func, or_, select
from sqlalchemy.orm import Session

from merchandising.exceptions import MerchandisingError
from merchandising.models import Conversation, Order, OrderItem, Product, Review, UserActivity
from merchandising.services.activity_service import ActivityService
from merchandising.services.ai.base import ChatMessage
from merchandising.services.ai.gateway import ModelGateway
from merchandising.services.assistant.keywords import KeywordCategoryMapper
from merchandising.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

APOLOGY_REPLY = "I'm sorry, but I'm having trouble processing your request right now. Please try again later."
PRODUCT_NOT_FOUND_REPLY = "Sorry, I couldn't find information about this product."


def format_currency(amount: Optional[float]) -> str:
    """INR 표기 (인도식 자릿수 구분, 소수점은 필요할 때만)"""
    value = round(float(amount or 0), 2)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    fraction = fraction.rstrip("0")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}₹{whole}" + (f".{fraction}" if fraction else "")


class ConversationStore:
    """
    (user_id, session_id, product_id, category_id) 키로 대화 기록을 upsert
    """

    def __init__(self, db: Session):
        self.db = db

    def find(
        self,
        session_id: str,
        user_id: Optional[int] = None,
        product_id: Optional[int] = None,
        category_id: Optional[int] = None,
    ) -> Optional[Conversation]:
        def match(column, value):
            return column.is_(None) if value is None else column == value

        stmt = (
            select(Conversation)
            .where(
                match(Conversation.user_id, user_id),
                Conversation.session_id == session_id,
                match(Conversation.product_id, product_id),
                match(Conversation.category_id, category_id),
            )
            .order_by(Conversation.id)
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def upsert(
        self,
        session_id: str,
        messages: List[ChatMessage],
        user_id: Optional[int] = None,
        product_id: Optional[int] = None,
        category_id: Optional[int] = None,
    ) -> Conversation:
        conversation = self.find(session_id, user_id, product_id, category_id)
        history = [{"role": m.get("role", "user"), "content": m.get("content", "")} for m in messages]

        if conversation:
            conversation.conversation_history = history
            conversation.updated_at = datetime.now(timezone.utc)
        else:
            conversation = Conversation(
                user_id=user_id,
                session_id=session_id,
                product_id=product_id,
                category_id=category_id,
                conversation_history=history,
            )
            self.db.add(conversation)

        self.db.commit()
        self.db.refresh(conversation)
        return conversation


class ShoppingAssistant:
    """
    AI 쇼핑 어시스턴트
    """

    def __init__(
        self,
        db: Session,
        gateway: ModelGateway,
        mapper: Optional[KeywordCategoryMapper] = None,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.config = config or default_settings
        self.mapper = mapper or KeywordCategoryMapper.load(self.config.keyword_table_path or None)
        self.conversations = ConversationStore(db)

    # ==================== 대화 ====================

    async def get_response(
        self,
        messages: List[ChatMessage],
        user_id: Optional[int] = None,
        product_id: Optional[int] = None,
        category_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> str:
        """
        대화 기록에 대한 어시스턴트 답변을 생성합니다.

        모델 호출이 실패하면 고정 사과 문구를 반환하고 아무것도 저장하지 않습니다.
        """
        latest = messages[-1].get("content", "") if messages and messages[-1].get("role") == "user" else ""
        system_prompt = self.build_system_prompt(latest, user_id=user_id, product_id=product_id)

        try:
            reply = await self.gateway.generate(messages, system_context=system_prompt)
        except MerchandisingError as e:
            logger.error(f"Assistant response failed ({e.error_code}): {e.message}")
            return APOLOGY_REPLY

        if session_id:
            self.conversations.upsert(
                session_id,
                list(messages) + [{"role": "assistant", "content": reply}],
                user_id=user_id,
                product_id=product_id,
                category_id=category_id,
            )
        return reply

    def build_system_prompt(
        self,
        latest_user_message: str,
        user_id: Optional[int] = None,
        product_id: Optional[int] = None,
    ) -> str:
        prompt = self._base_prompt()

        relevant = self.find_relevant_products(latest_user_message)
        if relevant:
            prompt += self._relevant_products_block(relevant)

        if product_id:
            prompt += self._product_context_block(product_id)

        if user_id:
            prompt += self._user_context_block(user_id)

        return prompt

    def _base_prompt(self) -> str:
        return (
            f"You are {self.config.store_name}'s AI Shopping Assistant, designed to provide friendly, helpful shopping advice.\n"
            "\n"
            "Your goals are to:\n"
            "1. Help customers find products they will love\n"
            "2. Give honest, balanced advice about products\n"
            "3. Suggest complementary items that make sense\n"
            "4. Help with sizing and fit questions\n"
            "\n"
            "IMPORTANT INSTRUCTIONS:\n"
            "- When a user mentions ANY product category or item, IMMEDIATELY suggest specific products rather than asking follow-up questions\n"
            "- Show product recommendations in your first response whenever possible\n"
            "- Keep responses concise and conversational\n"
            "- If you don't know something, say so rather than making up information\n"
        )

    # ==================== 키워드 기반 상품 검색 ====================

    def find_relevant_products(self, text: str) -> List[Product]:
        """
        발화에 등장한 키워드의 카테고리별 신상품, 없으면 이름/설명 부분 검색 결과
        """
        keywords = self.mapper.detect_keywords(text)
        if not keywords:
            return []
        categories = self.mapper.categories_for_keywords(keywords)
        if not categories:
            return []
        logger.info(f"Detected keywords {keywords} mapped to categories {categories}")

        cap = self.config.assistant_relevant_product_cap
        try:
            found: List[Product] = []
            per_category = math.ceil(cap / len(categories))
            for category in categories:
                stmt = (
                    select(Product)
                    .where(Product.approved.is_(True), Product.category.ilike(category))
                    .order_by(desc(Product.id))
                    .limit(per_category)
                )
                found.extend(self.db.scalars(stmt).all())
                if len(found) >= cap:
                    break

            if not found:
                for keyword in keywords:
                    pattern = f"%{keyword}%"
                    stmt = (
                        select(Product)
                        .where(
                            Product.approved.is_(True),
                            or_(Product.name.ilike(pattern), Product.description.ilike(pattern)),
                        )
                        .order_by(desc(Product.id))
                        .limit(self.config.assistant_keyword_product_limit)
                    )
                    found.extend(self.db.scalars(stmt).all())
                    if len(found) >= cap:
                        break
        except Exception as e:
            logger.warning(f"Keyword product lookup failed: {e}")
            return []

        unique: List[Product] = []
        seen = set()
        for product in found:
            if product.id not in seen:
                seen.add(product.id)
                unique.append(product)
        return unique[:cap]

    def _relevant_products_block(self, products: List[Product]) -> str:
        block = "\n\nRELEVANT PRODUCTS:\n"
        for i, product in enumerate(products, start=1):
            block += f"Product {i}: {product.name}\n"
            block += f"Description: {(product.description or '')[:100]}...\n"
            block += f"Price: {format_currency(product.price)}\n"
            block += f"Category: {product.category}\n\n"
        block += (
            "IMPORTANT: Immediately suggest these specific products in your response. "
            "Use their exact names and prices. "
            "Do not make up additional information or ask unnecessary follow-up questions.\n"
        )
        return block

    # ==================== 상품 / 사용자 컨텍스트 ====================

    def _product_context_block(self, product_id: int) -> str:
        try:
            product = self.db.get(Product, product_id)
            if not product:
                return ""

            block = "\nCURRENT PRODUCT CONTEXT:\n"
            block += f"Product Name: {product.name}\n"
            block += f"Description: {product.description}\n"
            block += f"Price: {format_currency(product.price)}\n"
            block += f"Category: {product.category}\n"
            if product.specifications:
                block += f"Specifications: {product.specifications}\n"
            if product.size:
                block += f"Available Sizes: {product.size}\n"
            if product.color:
                block += f"Available Colors: {product.color}\n"

            avg_rating, review_count = self.db.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
            ).one()
            if review_count:
                block += f"Average Rating: {float(avg_rating):.1f}/5 from {review_count} reviews\n"
            return block
        except Exception as e:
            logger.warning(f"Failed to build product context for {product_id}: {e}")
            return ""

    def _user_context_block(self, user_id: int) -> str:
        try:
            purchased = self.db.scalars(
                select(Product.category)
                .join(OrderItem, OrderItem.product_id == Product.id)
                .join(Order, Order.id == OrderItem.order_id)
                .where(Order.user_id == user_id, Product.category.is_not(None))
                .distinct()
                .limit(5)
            ).all()

            view_count = func.count(UserActivity.id).label("view_count")
            browsed = self.db.execute(
                select(Product.category, view_count)
                .join(UserActivity, UserActivity.product_id == Product.id)
                .where(
                    UserActivity.user_id == user_id,
                    UserActivity.activity_type == "view",
                    Product.category.is_not(None),
                )
                .group_by(Product.category)
                .order_by(desc(view_count), Product.category)
                .limit(3)
            ).all()
        except Exception as e:
            logger.warning(f"Failed to build user context for {user_id}: {e}")
            return ""

        block = ""
        if purchased:
            block += f"\nUSER CONTEXT: This customer has previously purchased items in these categories: {', '.join(purchased)}\n"
        if browsed:
            block += f"The user has recently browsed these categories: {', '.join(row.category for row in browsed)}\n"
        return block

    # ==================== 상품 Q&A ====================

    async def answer_product_question(
        self,
        product_id: int,
        question: str,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> str:
        """
        상품 상세 정보와 최근 리뷰 5건을 근거로 질문에 답합니다.
        """
        product = self.db.get(Product, product_id)
        if not product:
            return PRODUCT_NOT_FOUND_REPLY

        reviews = self.db.scalars(
            select(Review)
            .where(Review.product_id == product_id)
            .order_by(desc(Review.created_at), desc(Review.id))
            .limit(5)
        ).all()

        system_prompt = self._product_qa_prompt(product, reviews)
        try:
            reply = await self.gateway.generate([{"role": "user", "content": question}], system_context=system_prompt)
        except MerchandisingError as e:
            logger.error(f"Product Q&A failed for product {product_id} ({e.error_code}): {e.message}")
            return APOLOGY_REPLY

        if session_id:
            ActivityService(self.db).track_user_activity(
                session_id,
                "product_qa",
                user_id=user_id,
                product_id=product_id,
                additional_data={"question": question},
            )
        return reply

    def _product_qa_prompt(self, product: Product, reviews: List[Review]) -> str:
        lines = [
            f"Product Name: {product.name}",
            f"Description: {product.description}",
        ]
        if product.specifications:
            lines.append(f"Specifications: {product.specifications}")
        lines.append(f"Price: {format_currency(product.price)}")
        lines.append(f"Category: {product.category}")
        if product.size:
            lines.append(f"Available Sizes: {product.size}")
        if product.color:
            lines.append(f"Available Colors: {product.color}")
        product_context = "\n".join(lines)

        review_context = ""
        if reviews:
            review_context = "\nCustomer Reviews:\n"
            for i, review in enumerate(reviews, start=1):
                review_context += f"Review {i}: {review.rating}/5 stars\n"
                review_context += f"{review.comment or ''}\n\n"

        return (
            f"You are {self.config.store_name}'s AI Product Assistant. "
            "Answer questions about the following product accurately and helpfully.\n"
            "\n"
            "If you cannot answer based on the provided information, say so rather than making up details.\n"
            "\n"
            "Product Information:\n"
            f"{product_context}\n"
            f"{review_context}\n"
            "When answering:\n"
            "- Be honest and balanced\n"
            "- Highlight key features relevant to the question\n"
            "- If the question is about comparison with other products, mention you can only speak about this specific product\n"
            "- For questions about delivery, returns, or store policy, direct the customer to the store's customer service\n"
        )
