"""
WriterID Portal Backend — Prediction Task ORM Model
====================================================

What:  A single prediction request comparing a query image against a
       selected set of writers from a dataset.

Lifecycle:
    Created ──▶ Processing ──▶ Completed (results populated)
                          └──▶ Failed
    The row itself is the durable record of the outcome; the HTTP response
    to the triggering call is not.

Invariant: model_id is set only when use_default_model is False.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from writerid_portal.database import Base
from writerid_portal.models.mixins import ProcessedEntityMixin

CONTAINER_PREFIX = "task"

# Well-known blob name of the uploaded query image inside the task container
QUERY_IMAGE_BLOB = "query.png"


class Task(ProcessedEntityMixin, Base):
    __tablename__ = "tasks"

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    use_default_model: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    model_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("models.id"),
        nullable=True,
    )
    dataset_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("datasets.id"),
        nullable=False,
    )
    selected_writers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # "<container>/<blob>", e.g. task-<id>/query.png
    query_image_path: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    results: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, default=None)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_tasks_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, name='{self.name}', status='{self.status.value}')>"
