"""
User ORM model.

Created at registration, never hard-deleted. Every dataset, model and task
belongs to exactly one user and ownership never transfers.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from writerid_portal.database import Base
from writerid_portal.models.mixins import EntityMixin


class User(EntityMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # bcrypt hash, never the password itself
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
