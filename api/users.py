from __future__ import annotations

import logging

from flask import Blueprint, request, g

from models.schemas.user import PasswordUpdateSchema, UserOutSchema, UserUpdateSchema
from models.user_store import UserChangeset
from utils.decorators import jwt_required
from utils.exceptions import Conflict, UploadError, ValidationError
from utils.security import verify_password

from .deps import has_file, media_uploader, upload_file, user_store
from .responses import api_response

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()
password_update_schema = PasswordUpdateSchema()
user_out_schema = UserOutSchema()


@bp.get("/current-user")
@jwt_required()
def current_user():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(200, "Current user fetched successfully", user_out_schema.dump(g.current_user))


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update full name and/or email.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      409: { description: Email already in use }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = g.current_user
    store = user_store()
    if "email" in data and store.identity_taken(email=data["email"], exclude_id=user.id):
        raise Conflict("Email is already in use")

    user = store.update(user, data)
    return api_response(200, "Account details updated successfully", user_out_schema.dump(user))


@bp.patch("/update-password")
@jwt_required()
def update_password():
    """
    Change password; the old password must match.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200: { description: OK }
      400: { description: Missing fields or incorrect old password }
    """
    data = password_update_schema.load(request.get_json(silent=True) or {})
    user = g.current_user
    store = user_store()
    if not verify_password(data["old_password"], user.password_hash, store.hasher):
        raise ValidationError("Incorrect old password")

    user = store.update(user, UserChangeset(password=data["new_password"]))
    logger.info("Password changed for user %s", user.id)
    return api_response(200, "Password updated successfully", user_out_schema.dump(user))


def _replace_image(form_key: str, field: str, public_id_field: str, label: str):
    file = request.files.get(form_key)
    if not has_file(file):
        raise ValidationError(f"{label} is required")

    asset = upload_file(file)
    user = g.current_user
    previous = getattr(user, public_id_field)
    user = user_store().update(user, {field: asset.url, public_id_field: asset.public_id})

    if previous and previous != asset.public_id:
        try:
            media_uploader().delete(previous)
        except UploadError:
            logger.warning("Could not delete previous %s %s for user %s", field, previous, user.id)
    return user


@bp.patch("/update-avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Avatar missing }
    """
    user = _replace_image("avatar", "avatar", "avatar_public_id", "Avatar")
    return api_response(200, "Avatar updated successfully", user_out_schema.dump(user))


@bp.patch("/update-cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Cover image missing }
    """
    user = _replace_image("coverImage", "cover_image", "cover_image_public_id", "Cover image")
    return api_response(200, "Cover image updated successfully", user_out_schema.dump(user))
