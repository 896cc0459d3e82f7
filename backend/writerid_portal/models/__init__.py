"""ORM models. Importing this package registers every table with Base.metadata."""

from writerid_portal.models.dataset import Dataset
from writerid_portal.models.status import ProcessingStatus, can_transition, ensure_transition
from writerid_portal.models.task import Task
from writerid_portal.models.user import User
from writerid_portal.models.writer_model import WriterModel

__all__ = [
    "Dataset",
    "ProcessingStatus",
    "Task",
    "User",
    "WriterModel",
    "can_transition",
    "ensure_transition",
]
