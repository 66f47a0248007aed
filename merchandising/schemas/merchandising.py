from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from merchandising.models import ArtifactStatus


# ==================== 추천 ====================

class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    category: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    seller_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class SizeRecommendationResponse(BaseModel):
    recommended_size: Optional[str] = None
    confidence: float
    message: str


class SearchRequest(BaseModel):
    query: str
    user_id: Optional[int] = None
    session_id: Optional[str] = None


class SearchFiltersResponse(BaseModel):
    category: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    color: Optional[str] = None
    size: Optional[str] = None
    brand: Optional[str] = None
    sort_by: Optional[str] = None
    keywords: List[str] = []


class SearchResponse(BaseModel):
    success: bool = True
    query: str
    filters: SearchFiltersResponse
    enhanced_query: str


# ==================== 어시스턴트 ====================

class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessageIn] = Field(min_length=1)
    user_id: Optional[int] = None
    product_id: Optional[int] = None
    category_id: Optional[int] = None
    session_id: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str
    session_id: str


class ProductQuestionRequest(BaseModel):
    question: str = Field(min_length=1)
    user_id: Optional[int] = None
    session_id: Optional[str] = None


class ProductAnswerResponse(BaseModel):
    answer: str


class SessionResponse(BaseModel):
    session_id: str


# ==================== 최적화 산출물 ====================

class ContentRequest(BaseModel):
    content_type: Literal["description", "features", "specifications"]
    original_data: str = ""


class ArtifactBase(BaseModel):
    id: int
    product_id: int
    seller_id: int
    status: ArtifactStatus
    applied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class DemandForecastResponse(ArtifactBase):
    forecast_date: datetime
    forecast_period: str
    predicted_demand: int
    confidence_score: float
    factors_considered: Optional[Dict[str, Any]] = None
    actual_demand: Optional[int] = None


class PriceOptimizationResponse(ArtifactBase):
    current_price: float
    suggested_price: float
    projected_revenue: Optional[float] = None
    projected_sales: Optional[int] = None
    confidence_score: float
    reasoning_factors: Optional[Dict[str, Any]] = None
    pricing_rationale: str
    market_analysis: str


class InventoryOptimizationResponse(ArtifactBase):
    current_stock: int
    recommended_stock: int
    reorder_point: Optional[int] = None
    max_stock: Optional[int] = None
    safety_stock: Optional[int] = None
    lead_time: Optional[int] = None
    reason: str
    priority_level: str
    restocking_advice: str
    seasonal_considerations: str
    lead_time_recommendations: str


class GeneratedContentResponse(ArtifactBase):
    content_type: str
    original_data: str
    generated_content: str
    prompt_used: Optional[str] = None
