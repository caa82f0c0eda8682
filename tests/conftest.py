from __future__ import annotations

import io
import os
from typing import Dict, List, Optional

import pytest
from sqlalchemy.exc import SQLAlchemyError

from api import create_app
from models import storage
from utils.exceptions import UploadError
from utils.media import MediaAsset, MediaConfig


class FakeUploader:
    """Stands in for the Cloudinary client; records calls and removes staged files like the real one."""

    def __init__(self, upload_dir: str):
        self.config = MediaConfig(cloud_name=None, api_key=None, api_secret=None, upload_dir=upload_dir)
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.deleted_resource_types: List[str] = []
        self.fail_uploads = False
        # uploads succeed until this many assets exist, then fail
        self.fail_after: Optional[int] = None
        self.fail_deletes = False
        self._counter = 0

    def upload(self, local_path: str) -> MediaAsset:
        self.uploaded.append(os.path.basename(local_path))
        if os.path.exists(local_path):
            os.remove(local_path)
        if self.fail_uploads or (self.fail_after is not None and self._counter >= self.fail_after):
            raise UploadError("Failed to upload file")
        self._counter += 1
        public_id = f"media-{self._counter}"
        is_video = local_path.endswith(".mp4")
        return MediaAsset(
            url=f"https://media.example/{public_id}",
            public_id=public_id,
            duration=12.5 if is_video else None,
            resource_type="video" if is_video else "image",
        )

    def delete(self, public_id: str, resource_type: str = "image") -> None:
        if self.fail_deletes:
            raise UploadError("Failed to delete file")
        self.deleted.append(public_id)
        self.deleted_resource_types.append(resource_type)


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app("testing")
    app.extensions["media_uploader"] = FakeUploader(str(tmp_path / "uploads"))
    return app


@pytest.fixture
def break_storage(monkeypatch):
    """Returns a switch; once called, every commit fails the way a lost database would."""

    def _break():
        def save():
            storage.get_session().rollback()
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(storage, "save", save)

    return _break


@pytest.fixture
def uploader(app) -> FakeUploader:
    return app.extensions["media_uploader"]


@pytest.fixture
def client(app):
    # cookies are passed explicitly so each test controls exactly what is sent
    return app.test_client(use_cookies=False)


def image(name: str = "avatar.png") -> tuple:
    return (io.BytesIO(b"\x89PNG fake image bytes"), name)


def registration_form(**overrides) -> Dict:
    form = {
        "fullName": "Ann Lee",
        "userName": "ann",
        "email": "ann@x.com",
        "password": "secret123",
        "avatar": image(),
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


def set_cookies(response) -> Dict[str, str]:
    """Cookie name -> value for every Set-Cookie header on the response."""
    cookies = {}
    for header in response.headers.getlist("Set-Cookie"):
        pair = header.split(";", 1)[0]
        name, _, value = pair.partition("=")
        cookies[name.strip()] = value.strip().strip('"')
    return cookies


@pytest.fixture
def register(client):
    def _register(**overrides):
        return client.post(
            "/api/v1/users/register",
            data=registration_form(**overrides),
            content_type="multipart/form-data",
        )

    return _register


@pytest.fixture
def login(client):
    def _login(password: str = "secret123", user_name: Optional[str] = "ann", email: Optional[str] = None):
        body = {"password": password}
        if user_name is not None:
            body["userName"] = user_name
        if email is not None:
            body["email"] = email
        return client.post("/api/v1/users/login", json=body)

    return _login


@pytest.fixture
def tokens(register, login) -> Dict[str, str]:
    """Registers and logs in the default user; returns its token pair."""
    assert register().status_code == 201
    resp = login()
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    return {"access": data["accessToken"], "refresh": data["refreshToken"]}


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
