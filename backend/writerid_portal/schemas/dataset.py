"""
WriterID Portal Backend — Dataset Schemas
==========================================

What:  API contracts for dataset CRUD, container access descriptors and the
       `analysis-results.json` file the executor writes after analysis.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from writerid_portal.models.status import ProcessingStatus


class DatasetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200, description="Display name of the dataset")


class DatasetUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class DatasetResponse(BaseModel):
    id: uuid.UUID
    name: str
    container_name: str
    status: ProcessingStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContainerAccess(BaseModel):
    """
    Time-limited read/write/list access to one blob container.

    The client uploads dataset samples straight to storage with upload_url;
    nothing passes through this backend.
    """
    container_name: str
    upload_url: str = Field(description="URL granting write access to the container")
    download_url: str = Field(description="URL granting read/list access to the container")
    expires_at: datetime = Field(description="When both URLs stop working (UTC)")


class DatasetCreateResponse(BaseModel):
    dataset: DatasetResponse
    access: ContainerAccess


class DatasetAnalysisResult(BaseModel):
    """
    Contents of `analysis-results.json`, written by the executor.

    Example:
        {"num_writers": 2, "writer_names": ["w1", "w2"],
         "min_samples": 4, "max_samples": 9,
         "writer_counts": {"w1": 4, "w2": 9}}
    """
    num_writers: int = Field(ge=0)
    writer_names: List[str] = Field(default_factory=list)
    min_samples: int = Field(default=0, ge=0)
    max_samples: int = Field(default=0, ge=0)
    writer_counts: Dict[str, int] = Field(default_factory=dict)


class AnalysisResultsResponse(BaseModel):
    """`available` is False while the executor has not written results yet."""
    dataset_id: uuid.UUID
    status: ProcessingStatus
    available: bool
    results: Optional[DatasetAnalysisResult] = None
