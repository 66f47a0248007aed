import json

from merchandising.models import ArtifactStatus, PriceOptimization
from merchandising.services.optimization.base import ArtifactGenerator
from merchandising.services.optimization.contracts import PriceContract


PRICE_EXAMPLE = {
    "currentPrice": 1000,
    "suggestedPrice": 1100,
    "projectedRevenue": 50000,
    "projectedSales": 45,
    "confidenceScore": 0.9,
    "reasoningFactors": {
        "demandElasticity": "medium",
        "competitivePricing": "at market",
        "margin": "high",
        "reasoning": "Raising the price slightly will increase margin without significantly reducing sales.",
    },
    "pricingRationale": "The suggested price is based on recent sales trends and competitor pricing, aiming to maximize profit while maintaining sales volume.",
    "marketAnalysis": "The current market is stable with moderate competition. Most competitors are priced between 1050 and 1150.",
}


class PriceOptimizationGenerator(ArtifactGenerator):
    """
    판매 이력과 원가를 근거로 권장 판매가를 생성합니다.
    pricingRationale / marketAnalysis 가 비어 있으면 저장하지 않습니다.
    """

    artifact_label = "price optimization"

    async def generate(self, product_id: int, seller_id: int) -> PriceOptimization:
        product = self._get_product(product_id, seller_id)
        history = self._sales_history(product_id, seller_id)

        cost_price = product.purchase_price if product.purchase_price is not None else "Unknown"
        prompt = f"""
You are an AI price optimization assistant.

IMPORTANT: You MUST include the following fields in your JSON response, and they must be non-empty strings:
- pricingRationale: Concise explanation of why this price is recommended.
- marketAnalysis: Brief summary of the current market conditions and competition.

If you do not include these fields, your response will be rejected.

Example response:
{json.dumps(PRICE_EXAMPLE, indent=2)}

---
Product and sales data:
Product Name: {product.name}
Current Price: {product.price}
Cost Price: {cost_price}

Historical Sales Data:
{json.dumps([record.to_prompt_dict() for record in history], indent=2, ensure_ascii=False)}

Return the price optimization recommendation as a JSON object with the structure above.
Important: Only return the JSON object, no additional text.
"""
        raw = await self._call_model(prompt, product_id)
        result = self._decode(raw, PriceContract, product_id)

        return self._persist(PriceOptimization(
            product_id=product_id,
            seller_id=seller_id,
            current_price=result.current_price if result.current_price is not None else product.price,
            suggested_price=result.suggested_price,
            projected_revenue=result.projected_revenue,
            projected_sales=result.projected_sales,
            confidence_score=result.confidence_score,
            reasoning_factors=result.reasoning_factors,
            pricing_rationale=result.pricing_rationale,
            market_analysis=result.market_analysis,
            status=ArtifactStatus.PENDING,
        ))
