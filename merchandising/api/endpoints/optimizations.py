"""
판매자용 최적화 API 엔드포인트

산출물 생성(예측/가격/재고/콘텐츠), 목록 조회, 적용/거절을 제공합니다.
판매자 ID 는 외부 인증 계층이 전달합니다.
"""
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from merchandising.api.deps import get_model_gateway
from merchandising.db import get_session
from merchandising.exceptions import (
    GenerationError, InvalidStateTransition, MerchandisingError, ModelUnavailable, NotAuthorized, NotFound, ValidationError
)
from merchandising.schemas.merchandising import (
    ContentRequest, DemandForecastResponse, GeneratedContentResponse, InventoryOptimizationResponse, PriceOptimizationResponse
)
from merchandising.services.ai.gateway import ModelGateway
from merchandising.services.optimization.content import ContentGenerator
from merchandising.services.optimization.forecast import ForecastGenerator
from merchandising.services.optimization.inventory import InventoryOptimizationGenerator
from merchandising.services.optimization.lifecycle import ArtifactKind, LifecycleManager
from merchandising.services.optimization.pricing import PriceOptimizationGenerator

router = APIRouter()
logger = logging.getLogger(__name__)

RESPONSE_MODELS = {
    ArtifactKind.FORECAST: DemandForecastResponse,
    ArtifactKind.PRICE: PriceOptimizationResponse,
    ArtifactKind.INVENTORY: InventoryOptimizationResponse,
    ArtifactKind.CONTENT: GeneratedContentResponse,
}


def _raise_http(error: MerchandisingError, artifact_label: str = "artifact") -> NoReturn:
    """도메인 에러를 HTTP 상태 코드로 변환"""
    if isinstance(error, NotFound):
        raise HTTPException(status_code=404, detail=error.message)
    if isinstance(error, NotAuthorized):
        raise HTTPException(status_code=403, detail=error.message)
    if isinstance(error, InvalidStateTransition):
        raise HTTPException(status_code=409, detail=error.message)
    if isinstance(error, ModelUnavailable):
        raise HTTPException(status_code=503, detail="AI model is not configured")
    if isinstance(error, (GenerationError, ValidationError)):
        raise HTTPException(status_code=502, detail=f"Failed to generate {artifact_label}")
    raise HTTPException(status_code=500, detail=error.message)


def _serialize(kind: ArtifactKind, artifact) -> dict:
    return RESPONSE_MODELS[kind].model_validate(artifact).model_dump(mode="json")


# ==================== 생성 ====================

@router.post("/products/{product_id}/forecasts", response_model=DemandForecastResponse)
async def generate_forecast(
    product_id: int,
    seller_id: int = Query(...),
    period: str = Query(default="monthly", pattern="^(daily|weekly|monthly)$"),
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    try:
        return await ForecastGenerator(session, gateway).generate(product_id, seller_id, period)
    except MerchandisingError as e:
        _raise_http(e, "demand forecast")


@router.post("/products/{product_id}/price-optimizations", response_model=PriceOptimizationResponse)
async def generate_price_optimization(
    product_id: int,
    seller_id: int = Query(...),
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    try:
        return await PriceOptimizationGenerator(session, gateway).generate(product_id, seller_id)
    except MerchandisingError as e:
        _raise_http(e, "price optimization")


@router.post("/products/{product_id}/inventory-optimizations", response_model=InventoryOptimizationResponse)
async def generate_inventory_optimization(
    product_id: int,
    seller_id: int = Query(...),
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    try:
        return await InventoryOptimizationGenerator(session, gateway).generate(product_id, seller_id)
    except MerchandisingError as e:
        _raise_http(e, "inventory optimization")


@router.post("/products/{product_id}/content", response_model=GeneratedContentResponse)
async def generate_content(
    product_id: int,
    request: ContentRequest,
    seller_id: int = Query(...),
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    try:
        return await ContentGenerator(session, gateway).generate(
            product_id, seller_id, request.content_type, request.original_data
        )
    except MerchandisingError as e:
        _raise_http(e, "product content")


# ==================== 조회 / 적용 / 거절 ====================

@router.get("/products/{product_id}/artifacts/{kind}", response_model=List[dict])
def list_artifacts(
    product_id: int,
    kind: ArtifactKind,
    seller_id: int = Query(...),
    session: Session = Depends(get_session),
):
    """판매자의 상품별 산출물 목록 (최신순)"""
    artifacts = LifecycleManager(session).list_artifacts(kind, product_id, seller_id)
    return [_serialize(kind, a) for a in artifacts]


@router.post("/artifacts/{kind}/{artifact_id}/apply", response_model=dict)
def apply_artifact(
    kind: ArtifactKind,
    artifact_id: int,
    seller_id: int = Query(...),
    session: Session = Depends(get_session),
):
    try:
        artifact = LifecycleManager(session).apply(kind, artifact_id, seller_id)
    except MerchandisingError as e:
        _raise_http(e)
    return _serialize(kind, artifact)


@router.post("/artifacts/{kind}/{artifact_id}/reject", response_model=dict)
def reject_artifact(
    kind: ArtifactKind,
    artifact_id: int,
    seller_id: int = Query(...),
    session: Session = Depends(get_session),
):
    try:
        artifact = LifecycleManager(session).reject(kind, artifact_id, seller_id)
    except MerchandisingError as e:
        _raise_http(e)
    return _serialize(kind, artifact)
