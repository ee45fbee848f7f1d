"""Rehab project repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.rehab import RehabMember, RehabNote, RehabPhoto, RehabProject, RehabTask


class RehabRepository(Protocol):
    """Repository for rehab projects and their members, tasks, notes and photos."""

    def get_project(self, project_id: int) -> Optional[RehabProject]:
        ...

    def list_projects_for_user(self, user_id: str) -> list[RehabProject]:
        ...

    def list_projects(self) -> list[RehabProject]:
        ...

    def create_project(self, project: RehabProject, *, owner_user_id: str) -> RehabProject:
        ...

    def update_project(self, project: RehabProject) -> RehabProject:
        ...

    def delete_project(self, project_id: int) -> None:
        ...

    def get_member(self, project_id: int, user_id: str) -> Optional[RehabMember]:
        ...

    def list_members(self, project_id: int) -> list[RehabMember]:
        ...

    def add_member(self, member: RehabMember) -> RehabMember:
        ...

    def list_tasks(self, project_id: int) -> list[RehabTask]:
        ...

    def get_task(self, task_id: int) -> Optional[RehabTask]:
        ...

    def save_task(self, task: RehabTask) -> RehabTask:
        ...

    def list_notes(self, project_id: int) -> list[RehabNote]:
        ...

    def add_note(self, note: RehabNote) -> RehabNote:
        ...

    def list_photos(self, project_id: int) -> list[RehabPhoto]:
        ...

    def add_photo(self, photo: RehabPhoto) -> RehabPhoto:
        ...
