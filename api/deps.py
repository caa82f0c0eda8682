"""Request-time access to the services create_app() wires into app.extensions."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from flask import current_app
from werkzeug.datastructures import FileStorage

from models.user_store import UserStore
from utils.exceptions import UploadError
from utils.media import MediaAsset, MediaUploader, stage_upload
from utils.security import TokenPair, TokenService
from utils.decorators import ACCESS_COOKIE, REFRESH_COOKIE

logger = logging.getLogger(__name__)


def user_store() -> UserStore:
    return current_app.extensions["user_store"]


def token_service() -> TokenService:
    return current_app.extensions["token_service"]


def media_uploader() -> MediaUploader:
    return current_app.extensions["media_uploader"]


def has_file(file: Optional[FileStorage]) -> bool:
    return file is not None and bool(file.filename)


def upload_file(file: FileStorage) -> MediaAsset:
    """Stage a multipart file on disk and push it to the media host."""
    uploader = media_uploader()
    path = stage_upload(file, uploader.config.upload_dir)
    return uploader.upload(path)


def discard_assets(assets: Iterable[MediaAsset]) -> None:
    """Best-effort removal of assets uploaded by a request that then failed."""
    uploader = media_uploader()
    for asset in assets:
        if not asset.public_id:
            continue
        try:
            uploader.delete(asset.public_id, resource_type=asset.resource_type)
        except UploadError:
            logger.warning("Could not delete orphaned asset %s", asset.public_id)


def _cookie_options() -> dict:
    return {"httponly": True, "secure": current_app.config.get("COOKIE_SECURE", True)}


def set_auth_cookies(response, pair: TokenPair):
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, pair.access_token, **options)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token, **options)
    return response


def clear_auth_cookies(response):
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response
