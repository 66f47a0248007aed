import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ContractViolation
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from merchandising.exceptions import GenerationError, NotAuthorized, NotFound, ValidationError
from merchandising.models import Product, SalesHistory
from merchandising.services.ai.decoding import decode_json
from merchandising.services.ai.gateway import ModelGateway

logger = logging.getLogger(__name__)

ContractT = TypeVar("ContractT", bound=BaseModel)


class ArtifactGenerator:
    """
    최적화 산출물 생성기의 공통 흐름

    상품 조회 → 판매 이력 조회 → 프롬프트 → 모델 1회 호출 → 디코딩/계약 검증 → pending 저장.
    어느 단계에서든 실패하면 아무것도 저장하지 않는다.
    """

    artifact_label = "artifact"

    def __init__(self, db: Session, gateway: ModelGateway, timeout: Optional[float] = None):
        self.db = db
        self.gateway = gateway
        self.timeout = timeout

    def _get_product(self, product_id: int, seller_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFound(f"Product not found: {product_id}", entity="product", entity_id=product_id)
        if product.seller_id is not None and product.seller_id != seller_id:
            raise NotAuthorized(
                f"Seller {seller_id} does not own product {product_id}",
                seller_id=seller_id,
                owner_id=product.seller_id,
            )
        return product

    def _sales_history(self, product_id: int, seller_id: int) -> List[SalesHistory]:
        stmt = (
            select(SalesHistory)
            .where(SalesHistory.product_id == product_id, SalesHistory.seller_id == seller_id)
            .order_by(desc(SalesHistory.date), desc(SalesHistory.id))
        )
        return list(self.db.scalars(stmt).all())

    async def _call_model(self, prompt: str, product_id: int) -> str:
        try:
            return await self.gateway.generate(prompt, timeout=self.timeout)
        except GenerationError as e:
            logger.error(f"[{self.artifact_label}] generation failed for product {product_id}: {e.message}")
            raise

    def _decode(self, raw: str, contract: Type[ContractT], product_id: int) -> ContractT:
        decoded = decode_json(raw)
        if not decoded.ok:
            logger.error(f"[{self.artifact_label}] unparseable response for product {product_id}: {decoded.error}")
            raise ValidationError(
                f"Invalid {self.artifact_label} format returned by AI: {decoded.error}",
                actual_value=raw,
            )
        if not isinstance(decoded.value, dict):
            logger.error(
                f"[{self.artifact_label}] non-object response for product {product_id}: {type(decoded.value).__name__}"
            )
            raise ValidationError(
                f"Invalid {self.artifact_label} format returned by AI: expected a JSON object",
                actual_value=raw,
            )

        try:
            return contract.model_validate(decoded.value)
        except ContractViolation as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            logger.error(f"[{self.artifact_label}] contract violation for product {product_id} at '{field}': {first.get('msg')}")
            raise ValidationError(
                f"AI response failed the {self.artifact_label} contract: {field} {first.get('msg')}",
                field=field,
                actual_value=decoded.value,
            ) from e

    def _persist(self, artifact):
        self.db.add(artifact)
        self.db.commit()
        self.db.refresh(artifact)
        logger.info(f"[{self.artifact_label}] created pending artifact {artifact.id} for product {artifact.product_id}")
        return artifact
