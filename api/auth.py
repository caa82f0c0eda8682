"""
Authentication blueprint (mounted at /api/v1/users):
- POST /register
- POST /login
- POST /logout
- POST /renew-token

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Stores the current refresh token on the user row so renewal can rotate it and
  reject a token that was already used
"""
from __future__ import annotations

import hmac
import logging

from flask import Blueprint, g, request

from models.schemas.user import UserLoginSchema, UserOutSchema, UserRegisterSchema
from models.user_store import UserChangeset
from utils.decorators import REFRESH_COOKIE, jwt_required
from utils.exceptions import (
    AppError,
    Conflict,
    InvalidCredential,
    NotFound,
    TokenError,
    TokenReuseDetected,
    Unauthenticated,
    ValidationError,
)
from utils.security import TokenKind, verify_password

from .deps import (
    clear_auth_cookies,
    discard_assets,
    has_file,
    set_auth_cookies,
    token_service,
    upload_file,
    user_store,
)
from .responses import api_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()


@bp.post("/register")
def register():
    """
    register a new user.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: userName, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Missing fields or avatar
      409:
        description: Username or email already registered
      500:
        description: Upload or database failure, already uploaded images are removed
    """
    data = user_register_schema.load(request.form.to_dict())

    store = user_store()
    if store.identity_taken(user_name=data["user_name"], email=data["email"]):
        raise Conflict("User with this email or username already exists")

    avatar_file = request.files.get("avatar")
    if not has_file(avatar_file):
        raise ValidationError("Avatar is required")

    uploaded = []
    try:
        avatar = upload_file(avatar_file)
        uploaded.append(avatar)
        cover_file = request.files.get("coverImage")
        cover = None
        if has_file(cover_file):
            cover = upload_file(cover_file)
            uploaded.append(cover)

        user = store.create(
            UserChangeset(
                full_name=data["full_name"],
                user_name=data["user_name"],
                email=data["email"],
                password=data["password"],
                avatar=avatar.url,
                avatar_public_id=avatar.public_id,
                cover_image=cover.url if cover else "",
                cover_image_public_id=cover.public_id if cover else None,
            )
        )
    except AppError:
        discard_assets(uploaded)
        raise

    logger.info("Registered user %s", user.id)
    return api_response(201, "User created successfully", user_out_schema.dump(user))


@bp.post("/login")
def login():
    """
    Login: return the user plus access and refresh tokens, also set as cookies
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             userName: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Missing identity or password
      401:
        description: Incorrect password
      404:
        description: No such user
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    user_name = payload.get("user_name")
    email = payload.get("email")
    password = payload.get("password")
    if not user_name and not email:
        raise ValidationError("Username or email is required")
    if not password:
        raise ValidationError("Password is required")

    store = user_store()
    user = store.find_by_identity(user_name=user_name, email=email)
    if not user:
        raise NotFound("User not found")
    if not verify_password(password, user.password_hash, store.hasher):
        raise InvalidCredential("Incorrect password")

    pair = token_service().issue_pair(user.id)
    logger.info("User %s logged in", user.id)

    response = api_response(
        200,
        "User logged in successfully",
        {
            "user": user_out_schema.dump(user),
            "accessToken": pair.access_token,
            "refreshToken": pair.refresh_token,
        },
    )
    return set_auth_cookies(response, pair)


@bp.post("/logout")
@jwt_required()
def logout():
    """
    logout: forgets the stored refresh token and clears both cookies.
    Access tokens already handed out stay valid until they expire.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    user = g.current_user
    user_store().update(user, {"refresh_token": None})
    logger.info("User %s logged out", user.id)
    return clear_auth_cookies(api_response(200, "User logged out successfully"))


@bp.post("/renew-token")
def renew_token():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: false
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    incoming = request.cookies.get(REFRESH_COOKIE) or payload.get("refreshToken")
    if not incoming or not isinstance(incoming, str):
        raise Unauthenticated("Unauthorized request")

    tokens = token_service()
    try:
        decoded = tokens.verify(incoming, TokenKind.REFRESH)
    except TokenError:
        raise Unauthenticated("Invalid refresh token")

    user = user_store().find_by_id(decoded.get("sub"))
    if not user:
        raise Unauthenticated("Invalid refresh token")

    stored = user.refresh_token or ""
    if not hmac.compare_digest(stored.encode(), incoming.encode()):
        logger.warning("Rejected stale refresh token for user %s", user.id)
        raise TokenReuseDetected("Refresh token is expired or used")

    pair = tokens.issue_pair(user.id)
    logger.info("Renewed tokens for user %s", user.id)
    response = api_response(
        200,
        "Access token renewed successfully",
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
    )
    return set_auth_cookies(response, pair)
