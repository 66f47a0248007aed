"""
모델 응답 출력 계약 단위 테스트
"""
import json

import pytest
from pydantic import ValidationError

from merchandising.services.optimization.contracts import ForecastContract, InventoryContract, PriceContract


pytestmark = pytest.mark.unit


VALID_PRICE = {
    "currentPrice": 1000,
    "suggestedPrice": 1100,
    "projectedRevenue": 50000,
    "projectedSales": 45,
    "confidenceScore": 0.9,
    "reasoningFactors": {"margin": "high"},
    "pricingRationale": "Raise slightly to improve margin.",
    "marketAnalysis": "Stable market, moderate competition.",
}


class TestPriceContract:
    def test_valid(self):
        contract = PriceContract.model_validate(VALID_PRICE)
        assert contract.suggested_price == 1100
        assert contract.reasoning_factors == {"margin": "high"}

    @pytest.mark.parametrize("missing", ["pricingRationale", "marketAnalysis", "suggestedPrice"])
    def test_required_fields(self, missing):
        payload = {k: v for k, v in VALID_PRICE.items() if k != missing}
        with pytest.raises(ValidationError):
            PriceContract.model_validate(payload)

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_blank_rationale_rejected(self, blank):
        with pytest.raises(ValidationError):
            PriceContract.model_validate({**VALID_PRICE, "marketAnalysis": blank})

    def test_optional_fields_coerced(self):
        contract = PriceContract.model_validate({
            "suggestedPrice": 999,
            "pricingRationale": "r",
            "marketAnalysis": "m",
            "reasoningFactors": None,
            "projectedSales": 12.6,
        })
        assert contract.reasoning_factors == {}
        assert contract.projected_sales == 13
        assert contract.current_price is None
        assert contract.confidence_score == 0.0


class TestForecastContract:
    def test_valid_with_float_demand(self):
        contract = ForecastContract.model_validate({
            "predictedDemand": 41.7,
            "confidenceScore": 0.75,
            "factorsConsidered": {"seasonality": "summer", "trends": "upward", "events": ["Diwali"], "competition": "low"},
        })
        assert contract.predicted_demand == 42
        assert contract.factors_considered.events == ["Diwali"]

    def test_missing_factors_coerced(self):
        contract = ForecastContract.model_validate({"predictedDemand": 5, "confidenceScore": 0.5, "factorsConsidered": None})
        assert contract.factors_considered.model_dump() == {
            "seasonality": "", "trends": "", "events": [], "competition": "",
        }

    def test_confidence_out_of_range(self):
        with pytest.raises(ValidationError):
            ForecastContract.model_validate({"predictedDemand": 5, "confidenceScore": 1.5})

    def test_missing_demand(self):
        with pytest.raises(ValidationError):
            ForecastContract.model_validate({"confidenceScore": 0.5})


class TestInventoryContract:
    def test_minimal_payload(self):
        contract = InventoryContract.model_validate({"recommendedStock": "120"})
        assert contract.recommended_stock == 120
        assert contract.priority_level == "medium"
        assert contract.restocking_advice == ""
        assert contract.reorder_point is None

    def test_priority_normalized(self):
        contract = InventoryContract.model_validate({"recommendedStock": 10, "priorityLevel": "HIGH"})
        assert contract.priority_level == "high"

        contract = InventoryContract.model_validate({"recommendedStock": 10, "priorityLevel": "urgent"})
        assert contract.priority_level == "medium"

    def test_missing_recommended_stock(self):
        with pytest.raises(ValidationError):
            InventoryContract.model_validate({"reorderPoint": 10})

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            InventoryContract.model_validate({"recommendedStock": -5})


class TestNonFiniteNumbers:
    """모델이 1e400 / Infinity / NaN 을 돌려주는 경우"""

    def test_overflowing_demand_rejected(self):
        payload = json.loads('{"predictedDemand": 1e400, "confidenceScore": 0.5}')
        with pytest.raises(ValidationError):
            ForecastContract.model_validate(payload)

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "Infinity", "1e400"])
    def test_non_finite_stock_rejected(self, value):
        with pytest.raises(ValidationError):
            InventoryContract.model_validate({"recommendedStock": value})

    @pytest.mark.parametrize("field", ["reorderPoint", "maxStock", "safetyStock", "leadTime"])
    def test_non_finite_optional_ints_rejected(self, field):
        with pytest.raises(ValidationError):
            InventoryContract.model_validate({"recommendedStock": 10, field: float("inf")})

    def test_integer_beyond_column_range_rejected(self):
        with pytest.raises(ValidationError):
            InventoryContract.model_validate({"recommendedStock": 10 ** 12})

    def test_infinite_projected_sales_rejected(self):
        with pytest.raises(ValidationError):
            PriceContract.model_validate({**VALID_PRICE, "projectedSales": float("inf")})

    @pytest.mark.parametrize("field", ["suggestedPrice", "currentPrice", "projectedRevenue"])
    def test_infinite_prices_rejected(self, field):
        payload = json.loads(json.dumps({**VALID_PRICE, field: float("inf")}))
        with pytest.raises(ValidationError):
            PriceContract.model_validate(payload)

    def test_nan_confidence_rejected(self):
        with pytest.raises(ValidationError):
            ForecastContract.model_validate({"predictedDemand": 5, "confidenceScore": float("nan")})
