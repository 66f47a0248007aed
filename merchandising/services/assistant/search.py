"""
AI Product Search

자연어 검색어를 카탈로그 필터(카테고리, 가격대, 색상, 사이즈, 브랜드, 정렬, 키워드)로 변환합니다.
모델 응답을 해석할 수 없으면 검색어 단어를 키워드로 쓰는 기본 필터로 대체합니다.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as ContractViolation
from sqlalchemy import select
from sqlalchemy.orm import Session

from merchandising.exceptions import ValidationError
from merchandising.models import Product
from merchandising.services.activity_service import ActivityService
from merchandising.services.ai.decoding import decode_json
from merchandising.services.ai.gateway import ModelGateway

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("price_asc", "price_desc", "newest", "popularity")
NULL_WORDS = ("", "null", "none", "n/a", "not specified")

# 이 단어 수 이하의 짧은 검색어는 모델이 바꾼 검색어 대신 원문을 그대로 쓴다
SHORT_QUERY_WORDS = 2


def _optional_text(v: Any) -> Optional[str]:
    if v is None or isinstance(v, (dict, list)):
        return None
    text = str(v).strip()
    return None if text.lower() in NULL_WORDS else text


class SearchFilters(BaseModel):
    """모델이 돌려주는 검색 필터 계약 (camelCase 와이어 이름)"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    category: Optional[str] = None
    price_min: Optional[float] = Field(default=None, alias="priceMin", ge=0)
    price_max: Optional[float] = Field(default=None, alias="priceMax", ge=0)
    color: Optional[str] = None
    size: Optional[str] = None
    brand: Optional[str] = None
    sort_by: Optional[Literal["price_asc", "price_desc", "newest", "popularity"]] = Field(default=None, alias="sortBy")
    keywords: List[str] = Field(default_factory=list)
    enhanced_query: Optional[str] = Field(default=None, alias="enhancedQuery")

    @field_validator("category", "color", "size", "brand", "enhanced_query", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("price_min", "price_max", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Any:
        # "under 500" 처럼 숫자가 아닌 값은 조건 없음으로 본다
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(v)
        except (TypeError, ValueError):
            return None
        return value if math.isfinite(value) and value >= 0 else None

    @field_validator("sort_by", mode="before")
    @classmethod
    def coerce_sort(cls, v: Any) -> Optional[str]:
        text = _optional_text(v)
        if text is None:
            return None
        text = text.lower()
        return text if text in SORT_OPTIONS else None

    @field_validator("keywords", mode="before")
    @classmethod
    def coerce_keywords(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, (list, tuple)):
            return []
        keywords: List[str] = []
        for item in v:
            text = _optional_text(item)
            if text and text not in keywords:
                keywords.append(text)
        return keywords

    @model_validator(mode="after")
    def order_price_range(self) -> "SearchFilters":
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            self.price_min, self.price_max = self.price_max, self.price_min
        return self


@dataclass
class SearchResult:
    query: str
    filters: SearchFilters
    enhanced_query: str
    interpreted: bool  # 모델 응답을 그대로 사용했는지 여부


class ProductSearchService:
    """
    자연어 상품 검색 해석기
    """

    def __init__(self, db: Session, gateway: ModelGateway):
        self.db = db
        self.gateway = gateway

    def available_categories(self) -> List[str]:
        stmt = (
            select(Product.category)
            .where(Product.category.is_not(None), Product.category != "")
            .distinct()
            .order_by(Product.category)
        )
        return list(self.db.scalars(stmt).all())

    async def interpret_query(
        self,
        query: str,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> SearchResult:
        """
        검색어를 구조화된 필터로 변환합니다.

        Raises:
            ValidationError: 검색어가 비어 있음
            ModelUnavailable / GenerationError: 모델 호출 실패
        """
        cleaned = (query or "").strip()
        if not cleaned:
            raise ValidationError("Missing or invalid query parameter", field="query", actual_value=query)

        categories = self.available_categories()
        raw = await self.gateway.generate(self._build_prompt(cleaned, categories))

        filters = self._parse_filters(raw, cleaned)
        interpreted = filters is not None
        if filters is None:
            filters = SearchFilters(keywords=cleaned.split())

        filters.category = _match_category(filters.category, categories)

        if len(cleaned.split()) <= SHORT_QUERY_WORDS:
            enhanced = cleaned
        else:
            enhanced = filters.enhanced_query or cleaned

        if session_id:
            ActivityService(self.db).track_user_activity(
                session_id,
                "search",
                user_id=user_id,
                search_query=cleaned,
                additional_data={"filters": filters.model_dump(by_alias=True, exclude={"enhanced_query"})},
            )

        return SearchResult(query=cleaned, filters=filters, enhanced_query=enhanced, interpreted=interpreted)

    def _parse_filters(self, raw: str, query: str) -> Optional[SearchFilters]:
        decoded = decode_json(raw)
        if not decoded.ok:
            # 설명 문장 속에 JSON 객체가 섞여 온 경우
            start, end = raw.find("{"), raw.rfind("}")
            if start != -1 and end > start:
                decoded = decode_json(raw[start:end + 1])
        if not decoded.ok or not isinstance(decoded.value, dict):
            logger.warning(f"AI search response for '{query}' is not a JSON object ({decoded.error}), using default filters")
            return None

        try:
            return SearchFilters.model_validate(decoded.value)
        except ContractViolation as e:
            logger.warning(f"AI search response for '{query}' failed the filter contract: {e.errors()[0].get('msg')}")
            return None

    def _build_prompt(self, query: str, categories: List[str]) -> str:
        return f"""
You are a shopping assistant for an e-commerce platform.
A user has provided a search query in natural language.
Your task is to extract structured search parameters from this query.

Available product categories: {', '.join(categories)}

User query: "{query}"

Analyze this query and extract the following information:
1. The main product category they're looking for
2. Any price constraints (minimum and maximum price)
3. Color preferences
4. Size preferences
5. Brand preferences
6. Any sorting preferences (price low to high, high to low, newest, popularity)
7. Other relevant keywords for the search

Return your analysis as a valid JSON object with the following structure:
{{
  "category": "string or null if not specified",
  "priceMin": number or null if not specified,
  "priceMax": number or null if not specified,
  "color": "string or null if not specified",
  "size": "string or null if not specified",
  "brand": "string or null if not specified",
  "sortBy": "price_asc", "price_desc", "newest", "popularity" or null if not specified,
  "keywords": ["array", "of", "relevant", "keywords"],
  "enhancedQuery": "An improved search query based on the user's intent"
}}

IMPORTANT RULES:
- For queries with 1-2 words, keep the enhancedQuery the same as the original query.
- Only add additional terms to more complex, multi-word queries where clarification is helpful.
- Always include the original search term as the first keyword.

Only include fields that you can confidently extract from the query. If a field is not mentioned, set it to null.
Important: Only return the JSON object, no additional text.
"""


def _match_category(category: Optional[str], categories: List[str]) -> Optional[str]:
    """카탈로그에 있는 카테고리면 카탈로그 표기로 맞춘다"""
    if not category:
        return None
    for name in categories:
        if name.lower() == category.lower():
            return name
    return category
