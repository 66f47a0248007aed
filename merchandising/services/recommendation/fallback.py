import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (단계 이름, 시도 함수) - 시도 함수는 빈 결과를 반환할 수 있다
Attempt = Tuple[str, Callable[[], Sequence[T]]]


@dataclass
class ChainResult(Generic[T]):
    items: List[T]
    tier: Optional[str] = None


def run_fallback_chain(chain_name: str, attempts: Sequence[Attempt]) -> ChainResult:
    """
    단계를 순서대로 시도하여 처음으로 비어 있지 않은 결과를 반환.

    단계에서 예외가 나면 로그만 남기고 다음 단계로 넘어간다.
    모든 단계가 비면 빈 결과를 반환한다.
    """
    for tier, attempt in attempts:
        try:
            items = list(attempt() or [])
        except Exception as e:
            logger.warning(f"[{chain_name}] tier '{tier}' failed, falling through: {e}")
            continue

        if items:
            logger.info(f"[{chain_name}] tier '{tier}' returned {len(items)} item(s)")
            return ChainResult(items=items, tier=tier)
        logger.debug(f"[{chain_name}] tier '{tier}' returned nothing")

    logger.info(f"[{chain_name}] all tiers empty")
    return ChainResult(items=[], tier=None)
