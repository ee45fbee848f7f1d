"""Rehab project routes: projects, members, tasks, notes and photos."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from flask import jsonify, request

from ...extensions import (
    get_config,
    get_identity_provider,
    get_object_store,
    property_repository,
    rehab_repository,
)
from ...models.rehab import RehabNote, RehabPhoto, RehabProject, RehabTask
from ...services import rehab as rehab_service
from ...services.rehab import MemberExistsError, ProjectAccessError
from ...services.storage import ObjectExistsError
from .. import current_session, error_response, request_data, require_auth
from ..forms import BaseForm
from . import bp
from .forms import ProjectForm, TaskForm


@bp.errorhandler(ProjectAccessError)
def _forbidden(exc: ProjectAccessError):
    return error_response("forbidden", str(exc), 403)


@bp.errorhandler(LookupError)
def _not_found(exc: LookupError):
    return error_response("not_found", str(exc.args[0] if exc.args else exc), 404)


@bp.errorhandler(MemberExistsError)
@bp.errorhandler(ObjectExistsError)
def _conflict(exc: Exception):
    return error_response("conflict", str(exc), 409)


@bp.errorhandler(ValueError)
def _bad_request(exc: ValueError):
    return error_response("invalid_request", str(exc), 400)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _project_dict(project: RehabProject) -> dict[str, Any]:
    return {
        "id": project.id,
        "property_id": project.property_id,
        "title": project.title,
        "status": project.status,
        "budget_target": project.budget_target,
        "budget_locked": project.budget_locked,
        "start_date": _iso(project.start_date),
        "target_end_date": _iso(project.target_end_date),
    }


def _task_dict(task: RehabTask) -> dict[str, Any]:
    return {
        "id": task.id,
        "project_id": task.project_id,
        "title": task.title,
        "status": task.status,
        "due_date": _iso(task.due_date),
        "cost_est": task.cost_est,
    }


def _note_dict(note: RehabNote) -> dict[str, Any]:
    return {
        "id": note.id,
        "author_user_id": note.author_user_id,
        "note": note.note,
        "created_at": note.created_at.isoformat() if note.created_at else None,
    }


def _photo_dict(photo: RehabPhoto) -> dict[str, Any]:
    config = get_config()
    return {
        "id": photo.id,
        "caption": photo.caption,
        "storage_path": photo.storage_path,
        "is_invoice": photo.is_invoice,
        "url": get_object_store().signed_url(
            config.PHOTOS_BUCKET, photo.storage_path, expires_in=config.SIGNED_URL_TTL
        ),
    }


def _invalid(form: BaseForm):
    return error_response(
        "invalid_form", "Please correct the highlighted fields.", 400, fields=form.errors
    )


@bp.get("/")
@require_auth
def list_projects():
    """Projects the caller belongs to, split into active and completed."""

    projects = rehab_repository().list_projects_for_user(current_session().user_id)
    groups = rehab_service.split_projects(projects)
    return jsonify({name: [_project_dict(p) for p in rows] for name, rows in groups.items()})


@bp.post("/")
@require_auth
def create_project():
    form = ProjectForm.from_mapping(request_data())
    if not form.validate():
        return _invalid(form)
    if property_repository().get_by_id(form.property_id) is None:  # type: ignore[arg-type]
        return error_response("not_found", f"Property {form.property_id} was not found.", 404)

    project = rehab_service.create_project(
        rehab_repository(),
        current_session(),
        property_id=form.property_id,  # type: ignore[arg-type]
        title=form.title or "",
        status=form.status,
        budget_target=form.budget_target,
        start_date=form.start_date,
        target_end_date=form.target_end_date,
    )
    return jsonify({"project": _project_dict(project)}), 201


@bp.get("/<int:project_id>")
@require_auth
def get_project(project_id: int):
    """Project detail with tasks, notes and photos grouped for the workspace view."""

    repo = rehab_repository()
    project = rehab_service.require_member(repo, project_id, current_session())
    tasks = repo.list_tasks(project_id)
    photos = rehab_service.split_photos(repo.list_photos(project_id))
    return jsonify(
        {
            "project": _project_dict(project),
            "tasks": [_task_dict(task) for task in tasks],
            "task_summary": rehab_service.summarize_tasks(tasks).to_dict(),
            "notes": [_note_dict(note) for note in repo.list_notes(project_id)],
            "invoices": [_photo_dict(photo) for photo in photos["invoices"]],
            "photos": [_photo_dict(photo) for photo in photos["photos"]],
        }
    )


@bp.route("/<int:project_id>", methods=["PUT", "PATCH"])
@require_auth
def update_project(project_id: int):
    form = ProjectForm.from_mapping(request_data())
    form.partial = True
    if not form.validate():
        return _invalid(form)
    project = rehab_service.update_project(
        rehab_repository(), current_session(), project_id, form.changes()
    )
    return jsonify({"project": _project_dict(project)})


@bp.delete("/<int:project_id>")
@require_auth
def delete_project(project_id: int):
    rehab_service.delete_project(rehab_repository(), current_session(), project_id)
    return jsonify({"ok": True})


@bp.get("/<int:project_id>/members")
@require_auth
def list_members(project_id: int):
    members = rehab_service.list_members(
        rehab_repository(), get_identity_provider(), current_session(), project_id
    )
    return jsonify({"members": members})


@bp.post("/<int:project_id>/members")
@require_auth
def add_member(project_id: int):
    """Invite a user by ``user_id`` or ``email`` with an optional ``role``."""

    data = request_data()
    member = rehab_service.add_member(
        rehab_repository(),
        get_identity_provider(),
        current_session(),
        project_id,
        user_id=data.get("user_id"),
        email=data.get("email"),
        role=data.get("role"),
    )
    return jsonify({"member": {"user_id": member.user_id, "role": member.role}}), 201


@bp.post("/<int:project_id>/tasks")
@require_auth
def add_task(project_id: int):
    form = TaskForm.from_mapping(request_data())
    if not form.validate():
        return _invalid(form)
    task = rehab_service.add_task(
        rehab_repository(),
        current_session(),
        project_id,
        title=form.title,
        status=form.status,
        due_date=form.due_date,
        cost_est=form.cost_est,
    )
    return jsonify({"task": _task_dict(task)}), 201


@bp.patch("/tasks/<int:task_id>")
@require_auth
def set_task_status(task_id: int):
    status = str(request_data().get("status") or "").strip()
    task = rehab_service.set_task_status(rehab_repository(), current_session(), task_id, status)
    return jsonify({"task": _task_dict(task)})


@bp.post("/<int:project_id>/notes")
@require_auth
def add_note(project_id: int):
    text = str(request_data().get("note") or "")
    note = rehab_service.add_note(rehab_repository(), current_session(), project_id, text)
    return jsonify({"note": _note_dict(note)}), 201


@bp.post("/<int:project_id>/photos")
@require_auth
def upload_photo(project_id: int):
    """Upload a progress photo, or an invoice when ``invoice`` is truthy."""

    file_storage = request.files.get("file")
    if file_storage is None or not file_storage.filename:
        return error_response("missing_file", "Please choose a file to upload.", 400)

    photo = rehab_service.upload_photo(
        rehab_repository(),
        get_object_store(),
        current_session(),
        project_id,
        filename=file_storage.filename,
        data=file_storage.read(),
        bucket=get_config().PHOTOS_BUCKET,
        caption=request.form.get("caption"),
        invoice=request.form.get("invoice", "").lower() in {"1", "true", "yes", "on"},
        content_type=file_storage.mimetype,
    )
    return jsonify({"photo": _photo_dict(photo)}), 201
