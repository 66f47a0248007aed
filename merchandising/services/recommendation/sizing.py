import re
from typing import Optional, Sequence

SIZE_ORDER = ["XXS", "XS", "S", "M", "L", "XL", "XXL", "XXXL"]

_NUMERIC_RE = re.compile(r"^\d+$")


def _is_numeric(size: str) -> bool:
    return bool(_NUMERIC_RE.match(size))


def closest_size(target: str, available: Sequence[str]) -> Optional[str]:
    """
    선호 사이즈와 가장 가까운 판매 사이즈를 결정적으로 고른다.

    - 정확히 일치하면 그대로
    - 숫자 사이즈: 절대 차이가 최소인 값, 동률이면 더 작은 값
    - 문자 사이즈(XXS..XXXL): 순서 거리가 최소인 값, 동률이면 앞선 사이즈
    - 그 외: 첫 번째 판매 사이즈
    """
    if not available:
        return None
    if target in available:
        return target

    if _is_numeric(target):
        numeric = [s for s in available if _is_numeric(s)]
        if numeric:
            target_num = int(target)
            return min(numeric, key=lambda s: (abs(int(s) - target_num), int(s)))

    if target in SIZE_ORDER:
        ordinal = [s for s in available if s in SIZE_ORDER]
        if ordinal:
            target_index = SIZE_ORDER.index(target)
            return min(ordinal, key=lambda s: (abs(SIZE_ORDER.index(s) - target_index), SIZE_ORDER.index(s)))

    return available[0]
