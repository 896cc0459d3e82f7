"""
WriterID Portal Backend — Writer Identification Model ORM Model
================================================================

What:  A trained writer-identification model artifact plus its training
       lineage (the dataset it was trained on). Artifacts and the
       `training-results.json` report live in the `model-<id>` container.

Named WriterModel to avoid shadowing the generic word "model" used for
ORM and pydantic classes throughout the package. The table is `models`.
"""

import uuid
from typing import Any, Dict, Optional

from sqlalchemy import JSON, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from writerid_portal.database import Base
from writerid_portal.models.mixins import ProcessedEntityMixin

CONTAINER_PREFIX = "model"


class WriterModel(ProcessedEntityMixin, Base):
    __tablename__ = "models"

    training_dataset_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("datasets.id"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    training_result: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_models_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<WriterModel(id={self.id}, name='{self.name}', status='{self.status.value}')>"
