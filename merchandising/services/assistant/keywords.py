import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).resolve().parents[2] / "data" / "keyword_categories.json"


class KeywordCategoryMapper:
    """
    자유 입력 문장에서 상품 키워드를 찾아 카탈로그 카테고리로 매핑.
    매칭은 대소문자 구분 없는 부분 문자열 검색이며 테이블 순서를 유지한다.
    """

    def __init__(self, table: Dict[str, str]):
        self.table = {k.lower(): v for k, v in table.items() if k and v}

    @classmethod
    def load(cls, path: Optional[str] = None) -> "KeywordCategoryMapper":
        table_path = Path(path) if path else DEFAULT_TABLE_PATH
        with table_path.open(encoding="utf-8") as f:
            table = json.load(f)
        if not isinstance(table, dict):
            raise ValueError(f"Keyword table must be a JSON object: {table_path}")
        logger.debug(f"Loaded {len(table)} keyword mappings from {table_path}")
        return cls(table)

    def detect_keywords(self, text: str) -> List[str]:
        lowered = (text or "").lower()
        if not lowered:
            return []
        return [keyword for keyword in self.table if keyword in lowered]

    def categories_for_keywords(self, keywords: List[str]) -> List[str]:
        categories: List[str] = []
        for keyword in keywords:
            category = self.table.get(keyword.lower())
            if category and category not in categories:
                categories.append(category)
        return categories

    def map_text(self, text: str) -> List[str]:
        """문장에 등장한 키워드의 카테고리를 중복 없이 순서대로 반환"""
        return self.categories_for_keywords(self.detect_keywords(text))
