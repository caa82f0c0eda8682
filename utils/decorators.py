from __future__ import annotations
from functools import wraps
from typing import Optional
from flask import current_app, g, request
from utils.exceptions import TokenError, Unauthenticated
from utils.security import TokenKind

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def extract_access_token() -> Optional[str]:
    """Access token from the cookie, falling back to an Authorization: Bearer header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = extract_access_token()
            if not token:
                raise Unauthenticated("Unauthorized access")

            token_service = current_app.extensions["token_service"]
            try:
                decoded = token_service.verify(token, TokenKind.ACCESS)
            except TokenError:
                # expired and malformed tokens are reported the same way
                raise Unauthenticated("Invalid access token")

            user = current_app.extensions["user_store"].find_by_id(decoded.get("sub"))
            if not user:
                raise Unauthenticated("Invalid access token")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
