"""
Column mixins shared by every portal table.

Ids are generated in Python (uuid4) rather than by the database so that
services can derive container names before the first flush.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column

from writerid_portal.models.status import ProcessingStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def container_name_for(prefix: str, entity_id: uuid.UUID) -> str:
    """Blob container name for an entity: `dataset-<id>`, `model-<id>`, `task-<id>`."""
    return f"{prefix}-{entity_id}"


# Persist enum values ("Completed") instead of member names ("COMPLETED")
status_column_type = SAEnum(
    ProcessingStatus,
    name="processing_status",
    native_enum=False,
    length=20,
    values_callable=lambda members: [m.value for m in members],
    validate_strings=True,
)


class EntityMixin:
    """Primary key, audit timestamps and the soft-delete flag."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    # Soft delete: rows are never purged, only hidden from user-facing reads
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )


class ProcessedEntityMixin(EntityMixin):
    """Adds the name, blob container and processing status columns."""

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    container_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    status: Mapped[ProcessingStatus] = mapped_column(
        status_column_type,
        nullable=False,
        default=ProcessingStatus.CREATED,
    )
