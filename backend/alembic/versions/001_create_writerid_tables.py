"""Create users, datasets, models and tasks tables

Revision ID: 001
Revises: None
Create Date: 2025-07-01 00:00:00.000000+00:00

What:  Initial portal schema. Every entity table shares the same audit
       columns (id, created_at, updated_at, is_active); datasets, models and
       tasks add name, container_name and a processing status stored as its
       display value ("Created", "Processing", "Completed", "Failed").

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUS_VALUES = ("Created", "Processing", "Completed", "Failed")


def _entity_columns() -> list:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
    ]


def _processed_columns() -> list:
    return _entity_columns() + [
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("container_name", sa.String(100), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                *STATUS_VALUES,
                name="processing_status",
                native_enum=False,
                length=20,
                create_constraint=False,
            ),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_entity_columns(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "datasets",
        *_processed_columns(),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("analysis_result", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_datasets_user_active", "datasets", ["user_id", "is_active"])

    op.create_table(
        "models",
        *_processed_columns(),
        sa.Column("training_dataset_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("training_result", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["training_dataset_id"], ["datasets.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_models_user_active", "models", ["user_id", "is_active"])

    op.create_table(
        "tasks",
        *_processed_columns(),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("use_default_model", sa.Boolean(), nullable=False),
        sa.Column("model_id", sa.Uuid(), nullable=True),
        sa.Column("dataset_id", sa.Uuid(), nullable=False),
        sa.Column("selected_writers", sa.JSON(), nullable=False),
        sa.Column("query_image_path", sa.String(300), nullable=True),
        sa.Column("results", sa.JSON(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["model_id"], ["models.id"]),
        sa.ForeignKeyConstraint(["dataset_id"], ["datasets.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_tasks_user_active", "tasks", ["user_id", "is_active"])


def downgrade() -> None:
    op.drop_index("idx_tasks_user_active", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("idx_models_user_active", table_name="models")
    op.drop_table("models")
    op.drop_index("idx_datasets_user_active", table_name="datasets")
    op.drop_table("datasets")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
