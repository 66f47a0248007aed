"""
모델 응답 출력 계약

필드 이름(camelCase)은 모델 프롬프트와 공유하는 와이어 계약이다.
필수 필드가 없거나 잘못되면 pydantic 검증이 실패하고 산출물은 저장되지 않는다.
선택 필드는 빈 문자열/배열/객체로 보정한다.
"""
import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PRIORITY_LEVELS = ("low", "medium", "high", "critical")

# INTEGER 컬럼(32bit) 범위
INT_LIMIT = 2_147_483_647


def _blank_to_empty_str(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, (list, tuple)):
        return ", ".join(str(x) for x in v if x is not None)
    return str(v)


def _to_int(v: Any) -> Any:
    # 모델이 45.0 이나 "45" 처럼 돌려주는 경우 정수로 맞춘다
    if isinstance(v, bool):
        raise ValueError("boolean is not a number")
    if isinstance(v, str) and v.strip():
        v = float(v.strip())
    if isinstance(v, float):
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        try:
            v = int(round(v))
        except OverflowError as e:
            raise ValueError("number is out of range") from e
    if isinstance(v, int) and abs(v) > INT_LIMIT:
        raise ValueError("number is out of range")
    return v


class ContractModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)


class FactorsConsidered(ContractModel):
    seasonality: str = ""
    trends: str = ""
    events: List[str] = Field(default_factory=list)
    competition: str = ""

    @field_validator("seasonality", "trends", "competition", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _blank_to_empty_str(v)

    @field_validator("events", mode="before")
    @classmethod
    def coerce_events(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(x) for x in v if x is not None]


class ForecastContract(ContractModel):
    predicted_demand: int = Field(alias="predictedDemand", ge=0)
    confidence_score: float = Field(alias="confidenceScore", ge=0.0, le=1.0)
    factors_considered: FactorsConsidered = Field(default_factory=FactorsConsidered, alias="factorsConsidered")

    @field_validator("predicted_demand", mode="before")
    @classmethod
    def coerce_demand(cls, v: Any) -> Any:
        return _to_int(v)

    @field_validator("factors_considered", mode="before")
    @classmethod
    def coerce_factors(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


class PriceContract(ContractModel):
    current_price: Optional[float] = Field(default=None, alias="currentPrice")
    suggested_price: float = Field(alias="suggestedPrice", gt=0)
    projected_revenue: Optional[float] = Field(default=None, alias="projectedRevenue")
    projected_sales: Optional[int] = Field(default=None, alias="projectedSales")
    confidence_score: float = Field(default=0.0, alias="confidenceScore", ge=0.0, le=1.0)
    reasoning_factors: Dict[str, Any] = Field(default_factory=dict, alias="reasoningFactors")
    pricing_rationale: str = Field(alias="pricingRationale")
    market_analysis: str = Field(alias="marketAnalysis")

    @field_validator("projected_sales", mode="before")
    @classmethod
    def coerce_sales(cls, v: Any) -> Any:
        return None if v is None else _to_int(v)

    @field_validator("reasoning_factors", mode="before")
    @classmethod
    def coerce_factors(cls, v: Any) -> Dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("pricing_rationale", "market_analysis")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must be a non-empty string")
        return v


class InventoryContract(ContractModel):
    recommended_stock: int = Field(alias="recommendedStock", ge=0)
    reorder_point: Optional[int] = Field(default=None, alias="reorderPoint")
    max_stock: Optional[int] = Field(default=None, alias="maxStock")
    safety_stock: Optional[int] = Field(default=None, alias="safetyStock")
    lead_time: Optional[int] = Field(default=None, alias="leadTime")
    reason: str = ""
    priority_level: str = Field(default="medium", alias="priorityLevel")
    restocking_advice: str = Field(default="", alias="restockingAdvice")
    seasonal_considerations: str = Field(default="", alias="seasonalConsiderations")
    lead_time_recommendations: str = Field(default="", alias="leadTimeRecommendations")

    @field_validator("recommended_stock", mode="before")
    @classmethod
    def coerce_required_int(cls, v: Any) -> Any:
        return _to_int(v)

    @field_validator("reorder_point", "max_stock", "safety_stock", "lead_time", mode="before")
    @classmethod
    def coerce_optional_int(cls, v: Any) -> Any:
        return None if v is None else _to_int(v)

    @field_validator("reason", "restocking_advice", "seasonal_considerations", "lead_time_recommendations", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _blank_to_empty_str(v)

    @field_validator("priority_level", mode="before")
    @classmethod
    def coerce_priority(cls, v: Any) -> str:
        level = _blank_to_empty_str(v).strip().lower()
        return level if level in PRIORITY_LEVELS else "medium"
