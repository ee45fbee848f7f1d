"""SQLModel definitions for rehab projects and their contractor-facing records."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

PROJECT_STATUSES: tuple[str, ...] = ("Active", "Completed", "On Hold", "Planning")
COMPLETED_STATUSES = frozenset({"Completed", "Closed", "Done"})
TASK_STATUSES: tuple[str, ...] = ("Todo", "Doing", "Waiting", "Done")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RehabProject(SQLModel, table=True):
    """A rehab project attached to a property."""

    __tablename__: ClassVar[str] = "rehab_project"

    id: Optional[int] = Field(default=None, primary_key=True)
    property_id: int = Field(foreign_key="property.id", index=True, nullable=False)
    title: str = Field(nullable=False, max_length=255)
    status: str = Field(default="Active", nullable=False, max_length=32)
    budget_target: Optional[float] = Field(default=None)
    budget_locked: bool = Field(default=False, nullable=False)
    start_date: Optional[date] = Field(default=None)
    target_end_date: Optional[date] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class RehabMember(SQLModel, table=True):
    """Grants a user (owner or contractor) access to a project."""

    __tablename__: ClassVar[str] = "rehab_member"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_rehab_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="rehab_project.id", index=True, nullable=False)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    role: str = Field(default="contractor", nullable=False, max_length=32)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class RehabTask(SQLModel, table=True):
    __tablename__: ClassVar[str] = "rehab_task"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="rehab_project.id", index=True, nullable=False)
    title: str = Field(nullable=False, max_length=255)
    status: str = Field(default="Todo", nullable=False, max_length=16)
    due_date: Optional[date] = Field(default=None)
    cost_est: Optional[float] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class RehabNote(SQLModel, table=True):
    __tablename__: ClassVar[str] = "rehab_note"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="rehab_project.id", index=True, nullable=False)
    author_user_id: str = Field(nullable=False, max_length=64)
    note: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class RehabPhoto(SQLModel, table=True):
    """Pointer to a progress photo or invoice held in object storage."""

    __tablename__: ClassVar[str] = "rehab_photo"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="rehab_project.id", index=True, nullable=False)
    author_user_id: str = Field(nullable=False, max_length=64)
    storage_path: str = Field(nullable=False, max_length=1024)
    caption: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)

    @property
    def is_invoice(self) -> bool:
        return (self.caption or "").lower().startswith("invoice:")
