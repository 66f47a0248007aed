"""
최적화 산출물 생성기 테스트

- 실패한 생성은 아무것도 저장하지 않는다
- 성공한 생성은 항상 pending 상태로 저장된다
"""
import json
import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from merchandising.exceptions import GenerationError, ModelUnavailable, NotAuthorized, NotFound, ValidationError
from merchandising.models import (
    AIGeneratedContent, ArtifactStatus, DemandForecast, InventoryOptimization, PriceOptimization, Product
)
from merchandising.services.activity_service import ActivityService
from merchandising.services.optimization.content import ContentGenerator
from merchandising.services.optimization.forecast import ForecastGenerator
from merchandising.services.optimization.inventory import InventoryOptimizationGenerator
from merchandising.services.optimization.pricing import PriceOptimizationGenerator


pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

SELLER_ID = 1

FORECAST_RESPONSE = json.dumps({
    "predictedDemand": 42,
    "confidenceScore": 0.8,
    "factorsConsidered": {
        "seasonality": "festive",
        "trends": "upward",
        "events": ["Diwali"],
        "competition": "medium",
    },
})

PRICE_RESPONSE = {
    "currentPrice": 1000,
    "suggestedPrice": 1150,
    "projectedRevenue": 57500,
    "projectedSales": 50,
    "confidenceScore": 0.85,
    "reasoningFactors": {"margin": "high"},
    "pricingRationale": "Demand is strong relative to cost.",
    "marketAnalysis": "Competitors sit between 1100 and 1200.",
}

INVENTORY_RESPONSE = json.dumps({
    "recommendedStock": 120,
    "reorderPoint": 30,
    "maxStock": 200,
    "safetyStock": 15,
    "leadTime": 7,
    "reason": "Sales are accelerating.",
    "priorityLevel": "High",
    "restockingAdvice": "Restock before the festive week.",
    "seasonalConsiderations": "Festive season demand spike.",
    "leadTimeRecommendations": "Order a week ahead.",
})


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


def _record_sales(session, product, days_ago=(30, 20, 10)):
    service = ActivityService(session)
    for offset in days_ago:
        service.record_sales_data(
            product_id=product.id,
            seller_id=SELLER_ID,
            quantity=5,
            revenue=5000.0,
            cost_price=3500.0,
            date=datetime.now(timezone.utc) - timedelta(days=offset),
        )


class TestForecastGenerator:
    async def test_no_history_uses_default_without_model_call(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, provider = make_gateway(FORECAST_RESPONSE)

        forecast = await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert provider.call_count == 0
        assert forecast.predicted_demand == 10
        assert forecast.confidence_score == 0.3
        assert forecast.status == ArtifactStatus.PENDING
        assert forecast.forecast_period == "monthly"
        assert forecast.factors_considered["trends"] == "unknown"

    async def test_forecast_from_history(self, test_session, make_gateway, make_product):
        product = make_product(name="Cotton Kurta")
        _record_sales(test_session, product)
        gateway, provider = make_gateway(f"```json\n{FORECAST_RESPONSE}\n```")

        forecast = await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID, period="weekly")

        assert provider.call_count == 1
        assert "Cotton Kurta" in provider.calls[0]["prompt"]
        assert "weekly" in provider.calls[0]["prompt"]
        assert forecast.id is not None
        assert forecast.predicted_demand == 42
        assert forecast.confidence_score == 0.8
        assert forecast.factors_considered["events"] == ["Diwali"]
        assert forecast.status == ArtifactStatus.PENDING

    async def test_invalid_period(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, provider = make_gateway(FORECAST_RESPONSE)

        with pytest.raises(ValidationError):
            await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID, period="yearly")

        assert provider.call_count == 0
        assert _count(test_session, DemandForecast) == 0

    async def test_overflowing_demand_is_validation_error(self, test_session, make_gateway, make_product):
        product = make_product()
        _record_sales(test_session, product)
        gateway, _ = make_gateway('{"predictedDemand": 1e400, "confidenceScore": 0.5}')

        with pytest.raises(ValidationError):
            await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, DemandForecast) == 0

    async def test_unparseable_response_persists_nothing(self, test_session, make_gateway, make_product):
        product = make_product()
        _record_sales(test_session, product)
        gateway, _ = make_gateway("Demand will be roughly 40 units.")

        with pytest.raises(ValidationError):
            await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, DemandForecast) == 0

    async def test_timeout_persists_nothing(self, test_session, make_gateway, make_product):
        product = make_product()
        _record_sales(test_session, product)
        gateway, _ = make_gateway(FORECAST_RESPONSE, delay=0.5, timeout=0.05)

        with pytest.raises(GenerationError):
            await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, DemandForecast) == 0

    async def test_unconfigured_model(self, test_session, make_gateway, make_product):
        product = make_product()
        _record_sales(test_session, product)
        gateway, provider = make_gateway(FORECAST_RESPONSE, configured=False)

        with pytest.raises(ModelUnavailable):
            await ForecastGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert provider.call_count == 0
        assert _count(test_session, DemandForecast) == 0


class TestPriceOptimizationGenerator:
    async def test_pending_price_optimization(self, test_session, make_gateway, make_product):
        product = make_product(price=1000.0, purchase_price=700.0)
        _record_sales(test_session, product)
        gateway, provider = make_gateway(json.dumps(PRICE_RESPONSE))

        optimization = await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert "Cost Price: 700.0" in provider.calls[0]["prompt"]
        assert optimization.suggested_price == 1150
        assert optimization.current_price == 1000
        assert optimization.projected_sales == 50
        assert optimization.pricing_rationale == "Demand is strong relative to cost."
        assert optimization.status == ArtifactStatus.PENDING
        assert optimization.applied_at is None

    async def test_current_price_defaults_to_product_price(self, test_session, make_gateway, make_product):
        product = make_product(price=799.0)
        payload = {k: v for k, v in PRICE_RESPONSE.items() if k != "currentPrice"}
        gateway, provider = make_gateway(json.dumps(payload))

        optimization = await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert "Cost Price: Unknown" in provider.calls[0]["prompt"]
        assert optimization.current_price == 799.0

    @pytest.mark.parametrize("field", ["marketAnalysis", "pricingRationale"])
    async def test_missing_rationale_is_rejected(self, test_session, make_gateway, make_product, field):
        product = make_product()
        payload = {k: v for k, v in PRICE_RESPONSE.items() if k != field}
        gateway, _ = make_gateway(json.dumps(payload))

        with pytest.raises(ValidationError):
            await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, PriceOptimization) == 0

    async def test_blank_market_analysis_is_rejected(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway(json.dumps({**PRICE_RESPONSE, "marketAnalysis": "   "}))

        with pytest.raises(ValidationError):
            await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, PriceOptimization) == 0

    async def test_json_array_is_rejected(self, test_session, make_gateway, make_product, caplog):
        product = make_product()
        gateway, _ = make_gateway(json.dumps([PRICE_RESPONSE]))

        with caplog.at_level(logging.ERROR, logger="merchandising.services.optimization.base"):
            with pytest.raises(ValidationError):
                await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, PriceOptimization) == 0
        assert any("non-object response" in record.getMessage() for record in caplog.records)

    async def test_infinite_price_persists_nothing(self, test_session, make_gateway, make_product):
        product = make_product(price=1000.0)
        raw = '{"suggestedPrice": Infinity, "pricingRationale": "r", "marketAnalysis": "m"}'
        gateway, _ = make_gateway(raw)

        with pytest.raises(ValidationError):
            await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, PriceOptimization) == 0
        test_session.expire_all()
        assert test_session.get(Product, product.id).price == 1000.0

    async def test_provider_error_persists_nothing(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway(error=RuntimeError("quota exceeded"))

        with pytest.raises(GenerationError):
            await PriceOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, PriceOptimization) == 0


class TestInventoryOptimizationGenerator:
    async def test_pending_inventory_optimization(self, test_session, make_gateway, make_product):
        product = make_product(stock=25)
        _record_sales(test_session, product)
        gateway, provider = make_gateway(INVENTORY_RESPONSE)

        optimization = await InventoryOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert "Current Stock Level: 25" in provider.calls[0]["prompt"]
        assert "No forecast available" in provider.calls[0]["prompt"]
        assert optimization.current_stock == 25
        assert optimization.recommended_stock == 120
        assert optimization.reorder_point == 30
        assert optimization.priority_level == "high"
        assert optimization.status == ArtifactStatus.PENDING

    async def test_latest_forecast_in_prompt(self, test_session, make_gateway, make_product):
        product = make_product()
        forecast_gateway, _ = make_gateway()
        await ForecastGenerator(test_session, forecast_gateway).generate(product.id, SELLER_ID, period="daily")

        gateway, provider = make_gateway(INVENTORY_RESPONSE)
        await InventoryOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        prompt = provider.calls[0]["prompt"]
        assert "No forecast available" not in prompt
        assert '"forecastPeriod": "daily"' in prompt

    async def test_missing_recommended_stock(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway(json.dumps({"reorderPoint": 30}))

        with pytest.raises(ValidationError):
            await InventoryOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, InventoryOptimization) == 0

    async def test_overflowing_stock_persists_nothing(self, test_session, make_gateway, make_product):
        product = make_product(stock=10)
        gateway, _ = make_gateway('{"recommendedStock": 1e400, "reorderPoint": Infinity}')

        with pytest.raises(ValidationError):
            await InventoryOptimizationGenerator(test_session, gateway).generate(product.id, SELLER_ID)

        assert _count(test_session, InventoryOptimization) == 0


class TestOwnership:
    async def test_unknown_product(self, test_session, make_gateway):
        gateway, provider = make_gateway(INVENTORY_RESPONSE)

        with pytest.raises(NotFound):
            await InventoryOptimizationGenerator(test_session, gateway).generate(404, SELLER_ID)
        assert provider.call_count == 0

    async def test_other_sellers_product(self, test_session, make_gateway, make_product):
        product = make_product(seller_id=SELLER_ID)
        gateway, provider = make_gateway(json.dumps(PRICE_RESPONSE))

        with pytest.raises(NotAuthorized):
            await PriceOptimizationGenerator(test_session, gateway).generate(product.id, seller_id=99)

        assert provider.call_count == 0
        assert _count(test_session, PriceOptimization) == 0


class TestContentGenerator:
    async def test_description_is_sanitized(self, test_session, make_gateway, make_product):
        product = make_product(name="Cotton Tee", description="Plain tee")
        raw = "## Great Shirt\n\n**Soft** cotton <b>tee</b>. [Buy now](https://shop.example/tee)"
        gateway, provider = make_gateway(raw)

        content = await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "description")

        assert content.generated_content == "Great Shirt Soft cotton tee. Buy now"
        assert content.content_type == "description"
        assert content.status == ArtifactStatus.PENDING
        assert content.prompt_used == provider.calls[0]["prompt"]
        assert "Original Description: Plain tee" in content.prompt_used

    async def test_original_data_overrides_description_in_prompt(self, test_session, make_gateway, make_product):
        product = make_product(description="Old text")
        gateway, provider = make_gateway("A fresh description.")

        content = await ContentGenerator(test_session, gateway).generate(
            product.id, SELLER_ID, "description", original_data="Seller notes"
        )

        assert "Original Description: Seller notes" in provider.calls[0]["prompt"]
        assert content.original_data == "Seller notes"

    async def test_features_rendered_from_array(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway('["Breathable fabric", "Machine washable", "N/A"]')

        content = await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "features")

        assert content.generated_content == "Breathable fabric. Machine washable."

    async def test_specifications_rendered_from_object(self, test_session, make_gateway, make_product):
        product = make_product()
        raw = '```json\n{"Material": "Cotton", "Weight": "250g", "Origin": "unknown"}\n```'
        gateway, _ = make_gateway(raw)

        content = await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "specifications")

        assert content.generated_content == "Material: Cotton. Weight: 250g."

    async def test_unsupported_content_type(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, provider = make_gateway("anything")

        with pytest.raises(ValidationError):
            await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "reviews")

        assert provider.call_count == 0
        assert _count(test_session, AIGeneratedContent) == 0

    async def test_unparseable_features(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway("- Breathable\n- Washable")

        with pytest.raises(ValidationError):
            await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "features")

        assert _count(test_session, AIGeneratedContent) == 0

    async def test_scalar_specifications_rejected(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway('"Cotton, 250g"')

        with pytest.raises(ValidationError):
            await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "specifications")

        assert _count(test_session, AIGeneratedContent) == 0

    async def test_description_empty_after_sanitizing(self, test_session, make_gateway, make_product):
        product = make_product()
        gateway, _ = make_gateway("<p></p> **")

        with pytest.raises(ValidationError):
            await ContentGenerator(test_session, gateway).generate(product.id, SELLER_ID, "description")

        assert _count(test_session, AIGeneratedContent) == 0
