import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# PostgreSQL에서는 JSONB, 테스트(SQLite)에서는 JSON으로 동작
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class ArtifactStatus(str, enum.Enum):
    """최적화 산출물 상태. pending에서 applied/rejected로 단 한 번만 전이한다."""
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ArtifactStatus.PENDING


def _status_column():
    return mapped_column(
        Enum(
            ArtifactStatus,
            name="artifact_status",
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ArtifactStatus.PENDING,
    )


# ==================== 카탈로그 / 주문 (외부 소유, 읽기 전용) ====================

class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Product(Base):
    """
    상품 카탈로그. 이 서비스에서는 LifecycleManager.apply 만 가격/재고/설명을 수정한다.
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    specifications: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    purchase_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size: Mapped[str | None] = mapped_column(Text, nullable=True)  # "S, M, L" 형태의 콤마 구분 목록
    color: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(Text, nullable=True)
    seller_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def available_sizes(self) -> list[str]:
        if not self.size:
            return []
        return [s.strip() for s in self.size.split(",") if s.strip()]

    def to_prompt_dict(self) -> dict:
        """프롬프트에 직렬화할 상품 정보"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "specifications": self.specifications,
            "price": self.price,
            "purchasePrice": self.purchase_price,
            "stock": self.stock,
            "size": self.size,
            "color": self.color,
            "category": self.category,
            "brand": self.brand,
        }


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="placed")
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    size: Mapped[str | None] = mapped_column(Text, nullable=True)  # 구매 시 선택한 사이즈
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ==================== 행동 데이터 ====================

class UserActivity(Base):
    """사용자 행동 로그 (append-only)"""
    __tablename__ = "user_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 비회원 세션은 NULL
    session_id: Mapped[str] = mapped_column(Text, nullable=False)
    activity_type: Mapped[str] = mapped_column(Text, nullable=False)  # view, add_to_cart, purchase, product_qa, search
    product_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("products.id"), nullable=True)
    category_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("categories.id"), nullable=True)
    search_query: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    additional_data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)


class ProductRelationship(Base):
    """큐레이션된 상품 간 관계 (읽기 전용)"""
    __tablename__ = "product_relationships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    related_product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    relationship_type: Mapped[str] = mapped_column(Text, nullable=False, default="complementary")
    strength: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SizePreference(Base):
    __tablename__ = "user_size_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[str] = mapped_column(Text, nullable=False)
    fit: Mapped[str | None] = mapped_column(Text, nullable=True)  # slim, regular, loose
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Conversation(Base):
    __tablename__ = "ai_assistant_conversations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_id: Mapped[str] = mapped_column(Text, nullable=False)
    product_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("products.id"), nullable=True)
    category_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("categories.id"), nullable=True)
    conversation_history: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SalesHistory(Base):
    """판매 이력 (append-only). 예측/가격/재고 생성기의 입력"""
    __tablename__ = "sales_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    revenue: Mapped[float] = mapped_column(Float, nullable=False)
    cost_price: Mapped[float] = mapped_column(Float, nullable=False)
    profit_margin: Mapped[float | None] = mapped_column(Float, nullable=True)  # 퍼센트
    channel: Mapped[str | None] = mapped_column(Text, nullable=True)  # marketplace, direct
    promotion_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    seasonality: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def to_prompt_dict(self) -> dict:
        return {
            "date": self.date.isoformat() if self.date else None,
            "quantity": self.quantity,
            "revenue": self.revenue,
            "costPrice": self.cost_price,
            "profitMargin": self.profit_margin,
            "channel": self.channel,
            "promotionApplied": self.promotion_applied,
            "seasonality": self.seasonality,
        }


# ==================== 최적화 산출물 ====================

class DemandForecast(Base):
    """수요 예측. 정보 제공용이며 apply 시 상품을 수정하지 않는다."""
    __tablename__ = "demand_forecasts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False)
    forecast_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    forecast_period: Mapped[str] = mapped_column(Text, nullable=False)  # daily, weekly, monthly
    predicted_demand: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    factors_considered: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    actual_demand: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 사후 평가용
    status: Mapped[ArtifactStatus] = _status_column()
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_prompt_dict(self) -> dict:
        return {
            "forecastPeriod": self.forecast_period,
            "forecastDate": self.forecast_date.isoformat() if self.forecast_date else None,
            "predictedDemand": self.predicted_demand,
            "confidenceScore": self.confidence_score,
            "factorsConsidered": self.factors_considered,
        }


class PriceOptimization(Base):
    __tablename__ = "price_optimizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False)
    current_price: Mapped[float] = mapped_column(Float, nullable=False)
    suggested_price: Mapped[float] = mapped_column(Float, nullable=False)
    projected_revenue: Mapped[float | None] = mapped_column(Float, nullable=True)
    projected_sales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    reasoning_factors: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    pricing_rationale: Mapped[str] = mapped_column(Text, nullable=False)
    market_analysis: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ArtifactStatus] = _status_column()
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InventoryOptimization(Base):
    __tablename__ = "inventory_optimizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False)
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    recommended_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    reorder_point: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    safety_stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lead_time: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 일 단위
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority_level: Mapped[str] = mapped_column(Text, nullable=False, default="medium")  # low, medium, high, critical
    restocking_advice: Mapped[str] = mapped_column(Text, nullable=False, default="")
    seasonal_considerations: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lead_time_recommendations: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[ArtifactStatus] = _status_column()
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AIGeneratedContent(Base):
    __tablename__ = "ai_generated_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False)  # description, features, specifications
    original_data: Mapped[str] = mapped_column(Text, nullable=False, default="")
    generated_content: Mapped[str] = mapped_column(Text, nullable=False)
    prompt_used: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ArtifactStatus] = _status_column()
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
