"""Serve objects behind HMAC-signed, expiring URLs."""

from __future__ import annotations

from flask import request, send_file

from ...extensions import get_object_store
from ...services.storage import LocalObjectStore
from .. import error_response
from . import bp


@bp.get("/<bucket>/<path:object_path>")
def download(bucket: str, object_path: str):
    store = get_object_store()
    if not isinstance(store, LocalObjectStore):
        return error_response("not_found", "File downloads are not served locally.", 404)

    expires = request.args.get("expires", type=int)
    signature = request.args.get("signature", "")
    if expires is None or not signature:
        return error_response("forbidden", "Missing or invalid signature.", 403)

    try:
        target = store.open_signed(bucket, object_path, expires=expires, signature=signature)
    except ValueError:
        return error_response("forbidden", "Missing or invalid signature.", 403)
    if target is None:
        return error_response("forbidden", "Link expired or file not found.", 403)
    return send_file(target)
