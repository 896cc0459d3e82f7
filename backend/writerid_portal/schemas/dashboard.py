"""Dashboard aggregate schema."""

from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    total_tasks: int = Field(ge=0, description="Active tasks owned by the user")
    completed_tasks: int = Field(ge=0, description="Active tasks with status Completed")
    total_datasets: int = Field(ge=0)
    total_models: int = Field(ge=0)
