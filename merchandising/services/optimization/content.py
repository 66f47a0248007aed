import logging
import re
from typing import Any, List

from merchandising.exceptions import ValidationError
from merchandising.models import AIGeneratedContent, ArtifactStatus, Product
from merchandising.services.ai.decoding import decode_json
from merchandising.services.optimization.base import ArtifactGenerator

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("description", "features", "specifications")

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_MD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_MD_SYMBOL_RE = re.compile(r"[#*_`>~\[\]]")
_LIST_MARKER_RE = re.compile(r"^\s*(?:(?:[-+]|\d+[.)])\s+)+", re.MULTILINE)
_WHITESPACE_RE = re.compile(r"\s+")

PLACEHOLDER_RE = re.compile(r"^(unspecified|n/a|not available|unknown)$", re.IGNORECASE)
MAX_VALUE_WORDS = 20


def sanitize_description(text: str) -> str:
    """
    모델이 만든 설명을 평문으로 정리. 여러 번 적용해도 결과가 같다.
    """
    plain = _HTML_TAG_RE.sub("", text or "")
    plain = _MD_IMAGE_RE.sub(r"\1", plain)
    plain = _MD_LINK_RE.sub(r"\1", plain)
    plain = _MD_SYMBOL_RE.sub("", plain)
    plain = _LIST_MARKER_RE.sub("", plain)
    return _WHITESPACE_RE.sub(" ", plain).strip()


def truncate_words(text: str, max_words: int = MAX_VALUE_WORDS) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text.strip()
    return " ".join(words[:max_words]) + "..."


def _usable(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(value.strip()) and not PLACEHOLDER_RE.match(value.strip())


def render_structured(value: Any, content_type: str) -> str:
    """
    JSON 배열/객체를 "키: 값. 키2: 값2." 형태의 문단으로 변환 (배열은 값만)
    """
    entries: List[str] = []
    if isinstance(value, dict):
        for key, item in value.items():
            if _usable(item):
                entries.append(f"{key}: {truncate_words(str(item))}")
    elif isinstance(value, list):
        for item in value:
            if _usable(item):
                entries.append(truncate_words(str(item)))
    else:
        raise ValidationError(
            f"Invalid {content_type} format returned by AI: expected a JSON array or object",
            field=content_type,
            actual_value=value,
        )

    if not entries:
        return f"No relevant {content_type} available."
    return ". ".join(entries) + "."


class ContentGenerator(ArtifactGenerator):
    """
    상품 설명 / 특징 / 스펙 콘텐츠 생성
    """

    artifact_label = "content"

    async def generate(self, product_id: int, seller_id: int, content_type: str, original_data: str = "") -> AIGeneratedContent:
        if content_type not in CONTENT_TYPES:
            raise ValidationError(f"Unsupported content type: {content_type}", field="content_type", actual_value=content_type)

        product = self._get_product(product_id, seller_id)
        prompt = self._build_prompt(product, content_type, original_data)
        raw = await self._call_model(prompt, product_id)

        if content_type == "description":
            generated = sanitize_description(raw)
            if not generated:
                raise ValidationError("AI returned an empty description", field="description", actual_value=raw)
        else:
            decoded = decode_json(raw)
            if not decoded.ok:
                logger.error(f"[content] unparseable {content_type} response for product {product_id}: {decoded.error}")
                raise ValidationError(
                    f"Invalid {content_type} format returned by AI: {decoded.error}",
                    field=content_type,
                    actual_value=raw,
                )
            generated = render_structured(decoded.value, content_type)

        return self._persist(AIGeneratedContent(
            product_id=product_id,
            seller_id=seller_id,
            content_type=content_type,
            original_data=original_data or "",
            generated_content=generated,
            prompt_used=prompt,
            status=ArtifactStatus.PENDING,
        ))

    def _build_prompt(self, product: Product, content_type: str, original_data: str) -> str:
        if content_type == "description":
            return f"""
You are an AI-powered product description writer for an e-commerce platform.
Generate a compelling, SEO-friendly product description for the following product:

Product Name: {product.name}
Category: {product.category}
Original Description: {original_data or product.description or ""}

Your description should:
- Be between 150-200 words
- Highlight key features and benefits
- Include relevant keywords for SEO
- Use persuasive language to drive conversions
- Have a clear call-to-action

Return only the generated description as plain text, no additional text.
"""
        if content_type == "features":
            return f"""
You are an AI-powered product features writer for an e-commerce platform.
Generate a list of compelling product features for the following product:

Product Name: {product.name}
Category: {product.category}
Description: {product.description or ""}
Original Features: {original_data or ""}

Return a JSON array of feature strings, each being a concise bullet point.
For example: ["Feature 1", "Feature 2", "Feature 3"]

Important: Only return the JSON array, no additional text.
"""
        return f"""
You are an AI-powered product specifications writer for an e-commerce platform.
Generate a comprehensive list of technical specifications for the following product:

Product Name: {product.name}
Category: {product.category}
Description: {product.description or ""}
Original Specifications: {original_data or product.specifications or ""}

Return a JSON object where each key is a specification category and value is the specification detail.
For example: {{"Material": "Cotton", "Dimensions": "10 x 15 cm", "Weight": "250g"}}

Important: Only return the JSON object, no additional text.
"""
