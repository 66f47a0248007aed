import json
import logging
from datetime import datetime, timedelta, timezone

from merchandising.exceptions import ValidationError
from merchandising.models import ArtifactStatus, DemandForecast
from merchandising.services.optimization.base import ArtifactGenerator
from merchandising.services.optimization.contracts import ForecastContract

logger = logging.getLogger(__name__)

FORECAST_PERIOD_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}

# 판매 이력이 없을 때의 보수적 기본 예측
NO_HISTORY_DEMAND = 10
NO_HISTORY_CONFIDENCE = 0.3


class ForecastGenerator(ArtifactGenerator):
    """
    판매 이력 기반 수요 예측
    """

    artifact_label = "forecast"

    async def generate(self, product_id: int, seller_id: int, period: str = "monthly") -> DemandForecast:
        if period not in FORECAST_PERIOD_DAYS:
            raise ValidationError(f"Unsupported forecast period: {period}", field="period", actual_value=period)

        product = self._get_product(product_id, seller_id)
        history = self._sales_history(product_id, seller_id)
        forecast_date = datetime.now(timezone.utc) + timedelta(days=FORECAST_PERIOD_DAYS[period])

        if not history:
            logger.info(f"[forecast] no sales history for product {product_id}, using default forecast")
            return self._persist(DemandForecast(
                product_id=product_id,
                seller_id=seller_id,
                forecast_date=forecast_date,
                forecast_period=period,
                predicted_demand=NO_HISTORY_DEMAND,
                confidence_score=NO_HISTORY_CONFIDENCE,
                factors_considered={
                    "seasonality": "unknown",
                    "trends": "unknown",
                    "events": [],
                    "competition": "unknown",
                },
                status=ArtifactStatus.PENDING,
            ))

        prompt = f"""
You are an AI-powered demand forecasting system for e-commerce.
Use the following historical sales data to predict {period} demand for the product "{product.name}" (ID: {product_id}).

Historical Sales Data:
{json.dumps([record.to_prompt_dict() for record in history], indent=2, ensure_ascii=False)}

Product Details:
{json.dumps(product.to_prompt_dict(), indent=2, ensure_ascii=False)}

Analyze seasonality, trends, and patterns in the data.
Return the forecast as a JSON object with the following structure:
{{
  "predictedDemand": number, // Predicted unit sales for the next {period}
  "confidenceScore": number, // Between 0.1 and 1.0
  "factorsConsidered": {{
    "seasonality": string, // e.g., "holiday", "summer", etc.
    "trends": string,      // e.g., "upward", "downward", "stable"
    "events": string[],    // e.g., ["Black Friday", "Christmas"]
    "competition": string  // e.g., "high", "medium", "low"
  }}
}}

Important: Only return the JSON object, no additional text.
"""
        raw = await self._call_model(prompt, product_id)
        result = self._decode(raw, ForecastContract, product_id)

        return self._persist(DemandForecast(
            product_id=product_id,
            seller_id=seller_id,
            forecast_date=forecast_date,
            forecast_period=period,
            predicted_demand=result.predicted_demand,
            confidence_score=result.confidence_score,
            factors_considered=result.factors_considered.model_dump(),
            status=ArtifactStatus.PENDING,
        ))
