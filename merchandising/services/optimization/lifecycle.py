"""
Optimization Lifecycle Manager

pending 상태의 산출물을 운영자가 적용(apply) 또는 거절(reject)합니다.

- 소유 판매자 확인이 모든 쓰기보다 먼저 수행된다
- 상태 전이는 `WHERE status='pending'` 조건부 UPDATE 한 번으로 원자적으로 처리된다
- 상태 commit 이후에 상품 반영이 수행된다 (중간 실패 시 applied 산출물 + 미반영 상품으로 남아 추적 가능)
"""
import enum
import logging
from datetime import datetime, timezone
from typing import List, Type, Union

from sqlalchemy import desc, select, update
from sqlalchemy.orm import Session

from merchandising.exceptions import InvalidStateTransition, NotAuthorized, NotFound, ValidationError
from merchandising.models import (
    AIGeneratedContent, ArtifactStatus, DemandForecast, InventoryOptimization, PriceOptimization, Product
)

logger = logging.getLogger(__name__)

Artifact = Union[DemandForecast, PriceOptimization, InventoryOptimization, AIGeneratedContent]


class ArtifactKind(str, enum.Enum):
    FORECAST = "forecast"
    PRICE = "price"
    INVENTORY = "inventory"
    CONTENT = "content"


ARTIFACT_MODELS = {
    ArtifactKind.FORECAST: DemandForecast,
    ArtifactKind.PRICE: PriceOptimization,
    ArtifactKind.INVENTORY: InventoryOptimization,
    ArtifactKind.CONTENT: AIGeneratedContent,
}

# 콘텐츠 유형 → 상품 텍스트 필드. features 는 표시 전용이라 반영 대상이 없다.
CONTENT_FIELD_MAP = {
    "description": "description",
    "specifications": "specifications",
}


class LifecycleManager:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _model_for(kind: Union[ArtifactKind, str]) -> Type[Artifact]:
        try:
            return ARTIFACT_MODELS[ArtifactKind(kind)]
        except ValueError as e:
            raise ValidationError(f"Unknown artifact type: {kind}", field="kind", actual_value=kind) from e

    def _load_owned(self, kind: Union[ArtifactKind, str], artifact_id: int, seller_id: int) -> Artifact:
        model = self._model_for(kind)
        artifact = self.db.get(model, artifact_id)
        if artifact is None:
            raise NotFound(f"{ArtifactKind(kind).value} artifact not found: {artifact_id}", entity=model.__tablename__, entity_id=artifact_id)
        if artifact.seller_id != seller_id:
            raise NotAuthorized(
                f"Seller {seller_id} is not allowed to modify artifact {artifact_id}",
                seller_id=seller_id,
                owner_id=artifact.seller_id,
            )
        return artifact

    def _transition(self, artifact: Artifact, seller_id: int, target: ArtifactStatus) -> Artifact:
        model = type(artifact)
        now = datetime.now(timezone.utc)
        values = {"status": target, "updated_at": now}
        if target is ArtifactStatus.APPLIED:
            values["applied_at"] = now

        stmt = (
            update(model)
            .where(
                model.id == artifact.id,
                model.seller_id == seller_id,
                model.status == ArtifactStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.rollback()
            self.db.refresh(artifact)
            current = artifact.status.value if isinstance(artifact.status, ArtifactStatus) else str(artifact.status)
            raise InvalidStateTransition(
                f"Artifact {artifact.id} is already {current}",
                current_status=current,
                requested_status=target.value,
            )

        self.db.commit()
        self.db.refresh(artifact)
        logger.info(f"[Lifecycle] {model.__tablename__}#{artifact.id} -> {target.value} by seller {seller_id}")
        return artifact

    def reject(self, kind: Union[ArtifactKind, str], artifact_id: int, seller_id: int) -> Artifact:
        """산출물을 거절합니다. 상품은 변경하지 않습니다."""
        artifact = self._load_owned(kind, artifact_id, seller_id)
        return self._transition(artifact, seller_id, ArtifactStatus.REJECTED)

    def apply(self, kind: Union[ArtifactKind, str], artifact_id: int, seller_id: int) -> Artifact:
        """
        산출물을 적용합니다.

        가격 → product.price, 재고 → product.stock, 콘텐츠(description/specifications) → 같은 이름의 상품 필드.
        수요 예측과 features 콘텐츠는 상태만 전이합니다.
        """
        artifact = self._load_owned(kind, artifact_id, seller_id)
        artifact = self._transition(artifact, seller_id, ArtifactStatus.APPLIED)
        self._apply_to_product(artifact)
        return artifact

    def _apply_to_product(self, artifact: Artifact) -> None:
        if isinstance(artifact, PriceOptimization):
            field, value = "price", artifact.suggested_price
        elif isinstance(artifact, InventoryOptimization):
            field, value = "stock", artifact.recommended_stock
        elif isinstance(artifact, AIGeneratedContent) and artifact.content_type in CONTENT_FIELD_MAP:
            field, value = CONTENT_FIELD_MAP[artifact.content_type], artifact.generated_content
        else:
            logger.info(f"[Lifecycle] {type(artifact).__tablename__}#{artifact.id} is display-only, product unchanged")
            return

        product = self.db.get(Product, artifact.product_id)
        if product is None:
            # 상태는 이미 applied 로 기록되어 있으므로 재조정 대상으로 남긴다
            logger.error(f"[Lifecycle] product {artifact.product_id} missing while applying {type(artifact).__tablename__}#{artifact.id}")
            raise NotFound(f"Product not found: {artifact.product_id}", entity="product", entity_id=artifact.product_id)

        setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"[Lifecycle] product {product.id}.{field} updated from {type(artifact).__tablename__}#{artifact.id}")

    def list_artifacts(self, kind: Union[ArtifactKind, str], product_id: int, seller_id: int) -> List[Artifact]:
        """판매자의 상품별 산출물 목록 (최신순)"""
        model = self._model_for(kind)
        stmt = (
            select(model)
            .where(model.product_id == product_id, model.seller_id == seller_id)
            .order_by(desc(model.created_at), desc(model.id))
        )
        return list(self.db.scalars(stmt).all())
