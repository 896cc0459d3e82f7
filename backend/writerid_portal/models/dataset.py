"""
WriterID Portal Backend — Dataset ORM Model
============================================

What:  A named collection of handwriting samples stored in its own blob
       container (`dataset-<id>`).

Lifecycle:
    1. Created when a user initiates an upload (status = Created). The client
       uploads samples directly to the container using the access URL.
    2. /analyze moves it to Processing and enqueues an analysis message.
    3. The executor calls back with Completed or Failed and writes
       `analysis-results.json` into the container.
    4. Delete clears is_active and removes the container; the row stays.
"""

import uuid
from typing import Any, Dict, Optional

from sqlalchemy import JSON, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from writerid_portal.database import Base
from writerid_portal.models.mixins import ProcessedEntityMixin

CONTAINER_PREFIX = "dataset"


class Dataset(ProcessedEntityMixin, Base):
    __tablename__ = "datasets"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    # Cached copy of analysis-results.json once it has been fetched
    analysis_result: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_datasets_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Dataset(id={self.id}, name='{self.name}', status='{self.status.value}')>"
