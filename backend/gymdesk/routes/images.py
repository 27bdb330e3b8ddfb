# Overview: Flask API routes for gallery images (multipart upload, metadata, delete).

from flask import Blueprint, current_app, request

from ..decorators import is_admin, require_admin, require_auth
from ..responses import created, fail, internal_error, ok
from ..services import gallery_service
from ..validation import NotFoundError, ValidationError


images_bp = Blueprint("images", __name__, url_prefix="/api/images")


@images_bp.get("/public")
def public_images_route():
    """Landing-page gallery; PUBLIC images only, no login needed."""
    try:
        images = gallery_service.list_images(category=request.args.get("category"))
    except ValidationError as e:
        return fail(str(e), 400)
    return ok([i.to_dict() for i in images])


@images_bp.get("")
@require_auth
def list_images_route():
    """Admins also see ADMIN_ONLY images."""
    try:
        images = gallery_service.list_images(
            include_admin_only=is_admin(),
            category=request.args.get("category"),
        )
    except ValidationError as e:
        return fail(str(e), 400)
    return ok([i.to_dict() for i in images])


@images_bp.post("")
@require_auth
@require_admin
def upload_image_route():
    """
    multipart/form-data: image (file), title?, category?, visibility?, sort_order?
    """
    payload = {
        key: request.form[key]
        for key in ("title", "category", "visibility", "sort_order")
        if request.form.get(key) not in (None, "")
    }
    try:
        image = gallery_service.create_image(file_storage=request.files.get("image"), payload=payload)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to upload image")
        return internal_error()
    return created(image.to_dict(), "Image uploaded successfully")


@images_bp.put("/<int:image_id>")
@require_auth
@require_admin
def update_image_route(image_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        image = gallery_service.update_image(image_id=image_id, payload=payload)
    except NotFoundError as e:
        return fail(str(e), 404)
    except ValidationError as e:
        return fail(str(e), 400)
    return ok(image.to_dict(), "Image updated successfully")


@images_bp.delete("/<int:image_id>")
@require_auth
@require_admin
def delete_image_route(image_id: int):
    try:
        gallery_service.delete_image(image_id=image_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to delete image")
        return internal_error()
    return ok(None, "Image deleted successfully")
