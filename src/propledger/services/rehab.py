"""Rehab project workflows with membership-based access control."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from ..domain.repositories.rehab import RehabRepository
from ..models.rehab import (
    COMPLETED_STATUSES,
    PROJECT_STATUSES,
    TASK_STATUSES,
    RehabMember,
    RehabNote,
    RehabPhoto,
    RehabProject,
    RehabTask,
)
from .auth import AuthSession, IdentityProvider
from .storage import ObjectStore, photo_object_path

logger = logging.getLogger(__name__)

UPDATABLE_PROJECT_FIELDS = ("title", "status", "budget_target", "start_date", "target_end_date")
_PROJECT_STATUS_CHOICES = frozenset(PROJECT_STATUSES) | COMPLETED_STATUSES


class ProjectNotFoundError(LookupError):
    pass


class ProjectAccessError(PermissionError):
    def __init__(self, message: str = "You are not a member of this rehab project."):
        super().__init__(message)


class UnknownUserError(LookupError):
    def __init__(self, message: str = "No user found for that email."):
        super().__init__(message)


class MemberExistsError(ValueError):
    def __init__(self, message: str = "That user is already a member of this project."):
        super().__init__(message)


def require_member(repo: RehabRepository, project_id: int, session: AuthSession) -> RehabProject:
    """Return the project when ``session`` belongs to it.

    Raises:
        ProjectNotFoundError: the project does not exist.
        ProjectAccessError: the caller is not a member.
    """

    project = repo.get_project(project_id)
    if project is None:
        raise ProjectNotFoundError(f"Rehab project {project_id} was not found.")
    if repo.get_member(project_id, session.user_id) is None:
        raise ProjectAccessError()
    return project


def create_project(
    repo: RehabRepository,
    session: AuthSession,
    *,
    property_id: int,
    title: str,
    status: str = "Active",
    budget_target: Optional[float] = None,
    start_date: Optional[date] = None,
    target_end_date: Optional[date] = None,
) -> RehabProject:
    """Create a project; the creator becomes its ``owner`` member."""

    project = repo.create_project(
        RehabProject(
            property_id=property_id,
            title=title.strip(),
            status=status,
            budget_target=budget_target,
            start_date=start_date,
            target_end_date=target_end_date,
        ),
        owner_user_id=session.user_id,
    )
    logger.info(
        "Rehab project created", extra={"project_id": project.id, "user_id": session.user_id}
    )
    return project


def split_projects(projects: Iterable[RehabProject]) -> dict[str, list[RehabProject]]:
    active: list[RehabProject] = []
    completed: list[RehabProject] = []
    for project in projects:
        (completed if project.status in COMPLETED_STATUSES else active).append(project)
    return {"active": active, "completed": completed}


def update_project(
    repo: RehabRepository,
    session: AuthSession,
    project_id: int,
    changes: Mapping[str, Any],
) -> RehabProject:
    """Apply a partial update; only known fields present in ``changes`` are touched."""

    project = require_member(repo, project_id, session)
    payload = {key: changes[key] for key in UPDATABLE_PROJECT_FIELDS if key in changes}
    if not payload:
        raise ValueError("No fields to update.")
    if "title" in payload:
        title = (payload["title"] or "").strip()
        if not title:
            raise ValueError("Title cannot be empty.")
        payload["title"] = title
    if "status" in payload and payload["status"] not in _PROJECT_STATUS_CHOICES:
        raise ValueError(f"Unknown project status: {payload['status']}")
    for key, value in payload.items():
        setattr(project, key, value)
    return repo.update_project(project)


def delete_project(repo: RehabRepository, session: AuthSession, project_id: int) -> None:
    require_member(repo, project_id, session)
    repo.delete_project(project_id)
    logger.info(
        "Rehab project deleted", extra={"project_id": project_id, "user_id": session.user_id}
    )


def list_members(
    repo: RehabRepository, identity: IdentityProvider, session: AuthSession, project_id: int
) -> list[dict[str, Any]]:
    require_member(repo, project_id, session)
    return [
        {
            "user_id": member.user_id,
            "email": identity.email_for(member.user_id),
            "role": member.role,
        }
        for member in repo.list_members(project_id)
    ]


def add_member(
    repo: RehabRepository,
    identity: IdentityProvider,
    session: AuthSession,
    project_id: int,
    *,
    user_id: str | None = None,
    email: str | None = None,
    role: str | None = None,
) -> RehabMember:
    """Add a member by user id or email.

    Raises:
        ValueError: neither ``user_id`` nor ``email`` was supplied.
        UnknownUserError: ``email`` does not resolve to a user.
        MemberExistsError: the user is already a member.
    """

    require_member(repo, project_id, session)
    target = (user_id or "").strip()
    if not target:
        if not (email or "").strip():
            raise ValueError("Email or user ID is required.")
        target = identity.find_user_id(email.strip()) or ""  # type: ignore[union-attr]
        if not target:
            raise UnknownUserError()
    if repo.get_member(project_id, target) is not None:
        raise MemberExistsError()
    return repo.add_member(
        RehabMember(project_id=project_id, user_id=target, role=(role or "contractor").strip())
    )


def add_task(
    repo: RehabRepository,
    session: AuthSession,
    project_id: int,
    *,
    title: str,
    status: str = "Todo",
    due_date: Optional[date] = None,
    cost_est: Optional[float] = None,
) -> RehabTask:
    require_member(repo, project_id, session)
    if not title.strip():
        raise ValueError("Task title is required.")
    if status not in TASK_STATUSES:
        raise ValueError(f"Unknown task status: {status}")
    return repo.save_task(
        RehabTask(
            project_id=project_id,
            title=title.strip(),
            status=status,
            due_date=due_date,
            cost_est=cost_est,
        )
    )


def set_task_status(
    repo: RehabRepository, session: AuthSession, task_id: int, status: str
) -> RehabTask:
    task = repo.get_task(task_id)
    if task is None:
        raise LookupError(f"Task {task_id} was not found.")
    require_member(repo, task.project_id, session)
    if status not in TASK_STATUSES:
        raise ValueError(f"Unknown task status: {status}")
    task.status = status
    return repo.save_task(task)


@dataclass(frozen=True)
class TaskSummary:
    total: int
    by_status: dict[str, int]
    estimated_cost: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_status": self.by_status,
            "estimated_cost": round(self.estimated_cost, 2),
        }


def summarize_tasks(tasks: Iterable[RehabTask]) -> TaskSummary:
    rows = list(tasks)
    counts = Counter(task.status for task in rows)
    return TaskSummary(
        total=len(rows),
        by_status={status: counts.get(status, 0) for status in TASK_STATUSES},
        estimated_cost=sum(task.cost_est or 0.0 for task in rows),
    )


def add_note(
    repo: RehabRepository, session: AuthSession, project_id: int, text: str
) -> RehabNote:
    require_member(repo, project_id, session)
    if not text.strip():
        raise ValueError("Note text is required.")
    return repo.add_note(
        RehabNote(project_id=project_id, author_user_id=session.user_id, note=text.strip())
    )


def upload_photo(
    repo: RehabRepository,
    store: ObjectStore,
    session: AuthSession,
    project_id: int,
    *,
    filename: str,
    data: bytes,
    bucket: str,
    caption: str | None = None,
    invoice: bool = False,
    content_type: str | None = None,
) -> RehabPhoto:
    """Store a progress photo or invoice and record its pointer on the project."""

    project = require_member(repo, project_id, session)
    path = photo_object_path(project.property_id, filename, invoice=invoice)
    store.upload(bucket, path, data, content_type=content_type)
    if invoice:
        caption = f"Invoice: {filename}"
    return repo.add_photo(
        RehabPhoto(
            project_id=project_id,
            author_user_id=session.user_id,
            storage_path=path,
            caption=(caption or "").strip() or None,
        )
    )


def split_photos(photos: Iterable[RehabPhoto]) -> dict[str, list[RehabPhoto]]:
    invoices: list[RehabPhoto] = []
    progress: list[RehabPhoto] = []
    for photo in photos:
        (invoices if photo.is_invoice else progress).append(photo)
    return {"invoices": invoices, "photos": progress}
