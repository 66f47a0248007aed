"""
Merchandising Exception Classes

머천다이징 서비스의 구조화된 에러 정의.
생성기/라이프사이클/게이트웨이가 같은 형태의 에러를 던지고, API 계층이 HTTP 상태로 변환한다.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """에러 심각도 레벨"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MerchandisingError(Exception):
    """
    Base exception for all merchandising errors

    Attributes:
        message: 에러 메시지
        error_code: 에러 코드
        severity: 에러 심각도
        context: 추가 컨텍스트 정보
        recoverable: 운영자가 재시도로 회복 가능한지 여부
    """

    default_code = "MERCHANDISING_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.severity = severity
        self.context = context or {}
        self.recoverable = recoverable
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """에러 정보를 딕셔너리로 변환"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "recoverable": self.recoverable
        }


class NotFound(MerchandisingError):
    """상품 또는 산출물이 존재하지 않음"""

    default_code = "NOT_FOUND"

    def __init__(self, message: str, entity: Optional[str] = None, entity_id: Optional[Any] = None, **kwargs):
        context = {"entity": entity, "entity_id": entity_id}
        context.update(kwargs)
        super().__init__(message, severity=ErrorSeverity.LOW, context=context)
        self.entity = entity
        self.entity_id = entity_id


class NotAuthorized(MerchandisingError):
    """산출물 소유 판매자와 요청자가 다름"""

    default_code = "NOT_AUTHORIZED"

    def __init__(self, message: str, seller_id: Optional[int] = None, owner_id: Optional[int] = None, **kwargs):
        context = {"seller_id": seller_id, "owner_id": owner_id}
        context.update(kwargs)
        super().__init__(message, severity=ErrorSeverity.MEDIUM, context=context)
        self.seller_id = seller_id
        self.owner_id = owner_id


class InvalidStateTransition(MerchandisingError):
    """종료 상태(applied/rejected)의 산출물에 다시 전이를 시도함"""

    default_code = "INVALID_STATE_TRANSITION"

    def __init__(self, message: str, current_status: Optional[str] = None, requested_status: Optional[str] = None, **kwargs):
        context = {"current_status": current_status, "requested_status": requested_status}
        context.update(kwargs)
        super().__init__(message, severity=ErrorSeverity.MEDIUM, context=context)
        self.current_status = current_status
        self.requested_status = requested_status


class ModelUnavailable(MerchandisingError):
    """생성 모델 자격 증명/설정이 없음"""

    default_code = "MODEL_UNAVAILABLE"

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        context = {"provider": provider}
        context.update(kwargs)
        super().__init__(message, severity=ErrorSeverity.HIGH, context=context)
        self.provider = provider


class GenerationError(MerchandisingError):
    """
    모델 호출 실패 또는 사용할 수 없는 응답

    Attributes:
        provider: AI 제공자 (gemini, openai, ollama)
        model: 사용된 모델
    """

    default_code = "GENERATION_ERROR"

    def __init__(self, message: str, provider: Optional[str] = None, model: Optional[str] = None, **kwargs):
        context = {"provider": provider, "model": model}
        context.update(kwargs)
        super().__init__(message, severity=ErrorSeverity.MEDIUM, context=context, recoverable=True)
        self.provider = provider
        self.model = model


class ValidationError(MerchandisingError):
    """
    모델 응답 또는 입력이 출력 계약을 만족하지 않음

    Attributes:
        field: 실패한 필드 이름
        actual_value: 실제 값
    """

    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, actual_value: Optional[Any] = None, **kwargs):
        context = {
            "field": field,
            "actual_value": str(actual_value)[:500] if actual_value is not None else None,
        }
        context.update(kwargs)
        super().__init__(message, severity=ErrorSeverity.LOW, context=context, recoverable=True)
        self.field = field
        self.actual_value = actual_value
