# Overview: Gallery images; stores uploads under UPLOAD_DIR and keeps GymImage metadata.

from __future__ import annotations

import logging
import os
import secrets

from flask import current_app
from werkzeug.utils import secure_filename

from ..extensions import db
from ..models import GymImage
from ..models.gym import IMAGE_CATEGORIES, IMAGE_VISIBILITIES, VISIBILITY_PUBLIC
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_choice,
    validate_payload,
)


logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
UPLOAD_URL_PREFIX = "/uploads/"

IMAGE_POLICY = ModelValidationPolicy(
    writable_fields={"title", "category", "visibility", "sort_order"},
    required_on_create=set(),
)


def allowed_file(filename: str | None) -> bool:
    return bool(filename) and "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def upload_dir() -> str:
    path = os.path.abspath(current_app.config.get("UPLOAD_DIR", "./uploads"))
    os.makedirs(path, exist_ok=True)
    return path


def _image_patch(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=GymImage, payload=payload, policy=IMAGE_POLICY, partial=partial)
    if "category" in patch:
        patch["category"] = require_choice("category", patch["category"], IMAGE_CATEGORIES)
    if "visibility" in patch:
        patch["visibility"] = require_choice("visibility", patch["visibility"], IMAGE_VISIBILITIES)
    return patch


def save_upload(file_storage) -> str:
    """Write an uploaded file under a random name; returns the stored file name."""
    original = secure_filename(file_storage.filename or "")
    if not allowed_file(original):
        raise ValidationError(f"File type not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}")
    ext = original.rsplit(".", 1)[1].lower()
    file_name = f"{secrets.token_hex(16)}.{ext}"
    file_storage.save(os.path.join(upload_dir(), file_name))
    return file_name


def remove_upload(file_name: str) -> None:
    """Delete a stored upload. A missing file is not an error."""
    path = os.path.join(upload_dir(), file_name)
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning("Image file already gone: %s", path)


def create_image(*, file_storage, payload: dict) -> GymImage:
    if file_storage is None or not file_storage.filename:
        raise ValidationError("image file is required")

    patch = _image_patch(payload, partial=False)
    title = patch.pop("title", None) or os.path.splitext(secure_filename(file_storage.filename))[0] or "Untitled"

    file_name = save_upload(file_storage)
    image = GymImage(
        title=title,
        image_url=UPLOAD_URL_PREFIX + file_name,
        file_name=file_name,
        **patch,
    )
    db.session.add(image)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        remove_upload(file_name)
        raise
    return image


def list_images(*, include_admin_only: bool = False, category: str | None = None) -> list[GymImage]:
    query = db.session.query(GymImage)
    if not include_admin_only:
        query = query.filter(GymImage.visibility == VISIBILITY_PUBLIC)
    if category:
        query = query.filter(GymImage.category == require_choice("category", category, IMAGE_CATEGORIES))
    return query.order_by(GymImage.sort_order.asc(), GymImage.uploaded_at.desc(), GymImage.id.desc()).all()


def get_image(image_id: int) -> GymImage:
    image = db.session.get(GymImage, image_id)
    if not image:
        raise NotFoundError("Image not found")
    return image


def update_image(*, image_id: int, payload: dict) -> GymImage:
    image = get_image(image_id)
    patch = _image_patch(payload, partial=True)
    for key, value in patch.items():
        setattr(image, key, value)
    db.session.commit()
    return image


def delete_image(*, image_id: int) -> None:
    """Delete the row, then the file. A missing file is not an error."""
    image = get_image(image_id)
    file_name = image.file_name
    db.session.delete(image)
    db.session.commit()

    if file_name:
        remove_upload(file_name)
