"""
Media host client (Cloudinary).

Multipart uploads are first staged on local disk (UPLOAD_TMP_DIR), then pushed
to the media host. The staged copy is always removed afterwards, whether the
upload succeeded or not.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from utils.exceptions import ConfigError, UploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaConfig:
    cloud_name: Optional[str]
    api_key: Optional[str]
    api_secret: Optional[str]
    upload_dir: str = "public/temp"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "MediaConfig":
        return cls(
            cloud_name=config.get("CLOUDINARY_CLOUD_NAME"),
            api_key=config.get("CLOUDINARY_API_KEY"),
            api_secret=config.get("CLOUDINARY_API_SECRET"),
            upload_dir=config.get("UPLOAD_TMP_DIR", cls.upload_dir),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: Optional[str] = None
    duration: Optional[float] = None
    resource_type: str = "image"


def stage_upload(file: Optional[FileStorage], upload_dir: str) -> Optional[str]:
    """Save an uploaded file under upload_dir and return its path (None if no file was sent)."""
    if file is None or not file.filename:
        return None
    os.makedirs(upload_dir, exist_ok=True)
    name = secure_filename(file.filename) or "upload"
    path = os.path.join(upload_dir, f"{uuid.uuid4().hex}-{name}")
    file.save(path)
    return path


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class MediaUploader:
    """Uploads staged files to Cloudinary and deletes hosted assets."""

    def __init__(self, config: MediaConfig):
        self.config = config
        if config.is_configured:
            cloudinary.config(
                cloud_name=config.cloud_name,
                api_key=config.api_key,
                api_secret=config.api_secret,
                secure=True,
            )
        else:
            logger.info("Media: Cloudinary credentials not configured, uploads will fail")

    def _require_config(self) -> None:
        if not self.config.is_configured:
            raise ConfigError("Media host is not configured")

    def upload(self, local_path: str) -> MediaAsset:
        try:
            self._require_config()
            response = cloudinary.uploader.upload(local_path, resource_type="auto")
        except (CloudinaryError, OSError) as exc:
            logger.error("Failed to upload %s: %s", os.path.basename(local_path), exc)
            raise UploadError("Failed to upload file")
        finally:
            _discard(local_path)

        url = response.get("secure_url") or response.get("url")
        if not url:
            raise UploadError("Media host returned no URL")
        return MediaAsset(
            url=url,
            public_id=response.get("public_id"),
            duration=response.get("duration"),
            resource_type=response.get("resource_type", "image"),
        )

    def delete(self, public_id: str, resource_type: str = "image") -> None:
        self._require_config()
        try:
            response = cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except (CloudinaryError, OSError) as exc:
            logger.error("Failed to delete %s: %s", public_id, exc)
            raise UploadError("Failed to delete file")
        if response.get("result") not in ("ok", "not found"):
            raise UploadError("Failed to delete file")
