"""
구매자용 추천 API 엔드포인트

추천은 실패를 노출하지 않는다. 오류 시에도 빈 목록 또는 confidence 0 응답을 반환한다.
자연어 검색 해석만 모델 실패를 상태 코드(400/502/503)로 돌려준다.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from merchandising.api.deps import get_model_gateway
from merchandising.db import get_session
from merchandising.exceptions import GenerationError, ModelUnavailable, ValidationError
from merchandising.schemas.merchandising import (
    ProductResponse, SearchFiltersResponse, SearchRequest, SearchResponse, SizeRecommendationResponse
)
from merchandising.services.ai.gateway import ModelGateway
from merchandising.services.assistant.search import ProductSearchService
from merchandising.services.recommendation.engine import RecommendationEngine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/personalized", response_model=List[ProductResponse])
def get_personalized_recommendations(
    user_id: Optional[int] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=50),
    session: Session = Depends(get_session),
):
    """사용자 맞춤 추천 (비회원은 신상품)"""
    return RecommendationEngine(session).get_personalized_recommendations(user_id=user_id, limit=limit)


@router.get("/products/{product_id}/complementary", response_model=List[ProductResponse])
def get_complementary_products(
    product_id: int,
    limit: int = Query(default=5, ge=1, le=50),
    session: Session = Depends(get_session),
):
    """함께 구매하면 좋은 상품"""
    return RecommendationEngine(session).get_complementary_products(product_id, limit=limit)


@router.get("/products/{product_id}/size", response_model=SizeRecommendationResponse)
def get_size_recommendation(
    product_id: int,
    user_id: Optional[int] = Query(default=None),
    category: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
):
    return RecommendationEngine(session).get_size_recommendation(user_id, product_id, category)


@router.post("/search", response_model=SearchResponse)
async def search_products(
    request: SearchRequest,
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """자연어 검색어를 검색 필터로 변환"""
    service = ProductSearchService(session, gateway)
    try:
        result = await service.interpret_query(request.query, user_id=request.user_id, session_id=request.session_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ModelUnavailable:
        raise HTTPException(status_code=503, detail="AI model is not configured")
    except GenerationError as e:
        logger.error(f"AI search failed for '{request.query}': {e.message}")
        raise HTTPException(status_code=502, detail="Failed to process search query")

    return SearchResponse(
        query=result.query,
        filters=SearchFiltersResponse(**result.filters.model_dump(exclude={"enhanced_query"})),
        enhanced_query=result.enhanced_query,
    )
