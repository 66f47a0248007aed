"""
AI 쇼핑 어시스턴트 API 엔드포인트
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from merchandising.api.deps import get_model_gateway
from merchandising.db import get_session
from merchandising.schemas.merchandising import (
    ChatRequest, ChatResponse, ProductAnswerResponse, ProductQuestionRequest, SessionResponse
)
from merchandising.services.activity_service import generate_session_id
from merchandising.services.ai.gateway import ModelGateway
from merchandising.services.assistant.service import ShoppingAssistant

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/session", response_model=SessionResponse)
def create_session():
    return {"session_id": generate_session_id()}


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """
    어시스턴트 대화

    session_id 가 없으면 새로 발급하여 응답에 포함합니다.
    """
    session_id = request.session_id or generate_session_id()
    assistant = ShoppingAssistant(session, gateway)
    reply = await assistant.get_response(
        [m.model_dump() for m in request.messages],
        user_id=request.user_id,
        product_id=request.product_id,
        category_id=request.category_id,
        session_id=session_id,
    )
    return {"reply": reply, "session_id": session_id}


@router.post("/products/{product_id}/questions", response_model=ProductAnswerResponse)
async def ask_product_question(
    product_id: int,
    request: ProductQuestionRequest,
    session: Session = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    assistant = ShoppingAssistant(session, gateway)
    answer = await assistant.answer_product_question(
        product_id,
        request.question,
        user_id=request.user_id,
        session_id=request.session_id,
    )
    return {"answer": answer}
