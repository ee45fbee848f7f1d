"""SQLModel implementation of the rehab project repository."""

from __future__ import annotations

from typing import Optional, TypeVar

from sqlalchemy import delete, update
from sqlmodel import Session, SQLModel, col, select

from ...models.ledger import LedgerEntry
from ...models.rehab import RehabMember, RehabNote, RehabPhoto, RehabProject, RehabTask
from ..database import SessionFactory

ModelT = TypeVar("ModelT", bound=SQLModel)


def delete_project_rows(session: Session, project_id: int) -> None:
    """Remove a project with its photos, notes, tasks and members.

    Ledger rows pointing at the project are kept but unlinked.
    """

    for model in (RehabPhoto, RehabNote, RehabTask, RehabMember):
        session.execute(delete(model).where(col(model.project_id) == project_id))
    session.execute(
        update(LedgerEntry)
        .where(col(LedgerEntry.rehab_project_id) == project_id)
        .values(rehab_project_id=None)
    )
    session.execute(delete(RehabProject).where(col(RehabProject.id) == project_id))


class SQLModelRehabRepository:
    """SQLModel-based rehab repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def _add(self, obj: ModelT) -> ModelT:
        with self.session_factory() as session:
            obj = session.merge(obj)
            session.flush()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def _list(self, model: type[ModelT], project_id: int, order_by) -> list[ModelT]:
        with self.session_factory() as session:
            statement = (
                select(model)
                .where(col(model.project_id) == project_id)
                .order_by(order_by, col(model.id))
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_project(self, project_id: int) -> Optional[RehabProject]:
        with self.session_factory() as session:
            obj = session.get(RehabProject, project_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_projects(self) -> list[RehabProject]:
        with self.session_factory() as session:
            statement = select(RehabProject).order_by(
                col(RehabProject.created_at).desc(), col(RehabProject.id).desc()
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_projects_for_user(self, user_id: str) -> list[RehabProject]:
        """Projects the user is a member of, newest first."""

        with self.session_factory() as session:
            statement = (
                select(RehabProject)
                .join(RehabMember, col(RehabMember.project_id) == col(RehabProject.id))
                .where(RehabMember.user_id == user_id)
                .order_by(col(RehabProject.created_at).desc(), col(RehabProject.id).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create_project(self, project: RehabProject, *, owner_user_id: str) -> RehabProject:
        with self.session_factory() as session:
            session.add(project)
            session.flush()
            session.add(
                RehabMember(
                    project_id=project.id,  # type: ignore[arg-type]
                    user_id=owner_user_id,
                    role="owner",
                )
            )
            session.flush()
            session.refresh(project)
            session.expunge_all()
            return project

    def update_project(self, project: RehabProject) -> RehabProject:
        return self._add(project)

    def delete_project(self, project_id: int) -> None:
        with self.session_factory() as session:
            delete_project_rows(session, project_id)

    def get_member(self, project_id: int, user_id: str) -> Optional[RehabMember]:
        with self.session_factory() as session:
            obj = session.exec(
                select(RehabMember)
                .where(RehabMember.project_id == project_id)
                .where(RehabMember.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_members(self, project_id: int) -> list[RehabMember]:
        return self._list(RehabMember, project_id, col(RehabMember.created_at))

    def add_member(self, member: RehabMember) -> RehabMember:
        return self._add(member)

    def list_tasks(self, project_id: int) -> list[RehabTask]:
        return self._list(RehabTask, project_id, col(RehabTask.created_at))

    def get_task(self, task_id: int) -> Optional[RehabTask]:
        with self.session_factory() as session:
            obj = session.get(RehabTask, task_id)
            if obj:
                session.expunge(obj)
            return obj

    def save_task(self, task: RehabTask) -> RehabTask:
        return self._add(task)

    def list_notes(self, project_id: int) -> list[RehabNote]:
        return self._list(RehabNote, project_id, col(RehabNote.created_at).desc())

    def add_note(self, note: RehabNote) -> RehabNote:
        return self._add(note)

    def list_photos(self, project_id: int) -> list[RehabPhoto]:
        return self._list(RehabPhoto, project_id, col(RehabPhoto.created_at).desc())

    def add_photo(self, photo: RehabPhoto) -> RehabPhoto:
        return self._add(photo)
