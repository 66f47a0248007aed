import json
from typing import Optional

from sqlalchemy import desc, select

from merchandising.models import ArtifactStatus, DemandForecast, InventoryOptimization
from merchandising.services.optimization.base import ArtifactGenerator
from merchandising.services.optimization.contracts import InventoryContract


class InventoryOptimizationGenerator(ArtifactGenerator):
    """
    현재 재고, 판매 이력, 최신 수요 예측으로 적정 재고 수준을 생성합니다.
    """

    artifact_label = "inventory optimization"

    def _latest_forecast(self, product_id: int, seller_id: int) -> Optional[DemandForecast]:
        stmt = (
            select(DemandForecast)
            .where(DemandForecast.product_id == product_id, DemandForecast.seller_id == seller_id)
            .order_by(desc(DemandForecast.created_at), desc(DemandForecast.id))
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    async def generate(self, product_id: int, seller_id: int) -> InventoryOptimization:
        product = self._get_product(product_id, seller_id)
        current_stock = product.stock or 0
        history = self._sales_history(product_id, seller_id)
        forecast = self._latest_forecast(product_id, seller_id)
        forecast_payload = forecast.to_prompt_dict() if forecast else "No forecast available"

        prompt = f"""
You are an AI-powered inventory optimization system for e-commerce.
Analyze the following data and suggest optimal inventory levels for the product "{product.name}" (ID: {product_id}).

Product Details:
{json.dumps(product.to_prompt_dict(), indent=2, ensure_ascii=False)}

Current Stock Level: {current_stock}

Historical Sales Data:
{json.dumps([record.to_prompt_dict() for record in history], indent=2, ensure_ascii=False)}

Latest Demand Forecast:
{json.dumps(forecast_payload, indent=2, ensure_ascii=False)}

Return the inventory optimization recommendation as a JSON object with the following structure:
{{
  "recommendedStock": number, // Recommended inventory level
  "reorderPoint": number, // Stock level at which to reorder
  "maxStock": number, // Maximum stock level to maintain
  "safetyStock": number, // Buffer stock to prevent stockouts
  "leadTime": number, // Estimated lead time for restocking in days
  "reason": string, // Brief explanation for the recommendation
  "priorityLevel": string, // "low", "medium", "high", or "critical"
  "restockingAdvice": string, // Specific advice for restocking this product
  "seasonalConsiderations": string, // Any seasonal factors to consider
  "leadTimeRecommendations": string // Recommendations related to lead time and supply chain
}}

Important: Only return the JSON object, no additional text.
"""
        raw = await self._call_model(prompt, product_id)
        result = self._decode(raw, InventoryContract, product_id)

        return self._persist(InventoryOptimization(
            product_id=product_id,
            seller_id=seller_id,
            current_stock=current_stock,
            recommended_stock=result.recommended_stock,
            reorder_point=result.reorder_point,
            max_stock=result.max_stock,
            safety_stock=result.safety_stock,
            lead_time=result.lead_time,
            reason=result.reason,
            priority_level=result.priority_level,
            restocking_advice=result.restocking_advice,
            seasonal_considerations=result.seasonal_considerations,
            lead_time_recommendations=result.lead_time_recommendations,
            status=ArtifactStatus.PENDING,
        ))
