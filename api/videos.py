from __future__ import annotations

import logging

from flask import Blueprint, request, g
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from models.video import Video
from models.schemas.video import VideoCreateSchema, VideoOutSchema
from utils.decorators import jwt_required
from utils.exceptions import AppError, PersistenceError, ValidationError

from .deps import discard_assets, has_file, upload_file
from .responses import api_response

logger = logging.getLogger(__name__)

bp = Blueprint("videos", __name__)

video_create_schema = VideoCreateSchema()
video_out_schema = VideoOutSchema()


@bp.post("/", strict_slashes=False)
@jwt_required()
def publish_video():
    """
    Publish a video
    ---
    tags: [Videos]
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: title, type: string, required: true }
      - { in: formData, name: description, type: string, required: true }
      - { in: formData, name: videoFile, type: file, required: true }
      - { in: formData, name: thumbnail, type: file, required: true }
    responses:
      201: { description: Created }
      400: { description: Missing fields or files }
      500: { description: Upload or database failure, already uploaded files are removed }
    """
    data = video_create_schema.load(request.form.to_dict())

    video_file = request.files.get("videoFile")
    if not has_file(video_file):
        raise ValidationError("Video file is required")
    thumbnail_file = request.files.get("thumbnail")
    if not has_file(thumbnail_file):
        raise ValidationError("Thumbnail is required")

    uploaded = []
    try:
        video_asset = upload_file(video_file)
        uploaded.append(video_asset)
        thumbnail_asset = upload_file(thumbnail_file)
        uploaded.append(thumbnail_asset)

        video = Video(
            title=data["title"],
            description=data["description"],
            video_file=video_asset.url,
            thumbnail=thumbnail_asset.url,
            duration=video_asset.duration,
            owner_id=g.current_user.id,
        )
        storage.new(video)
        try:
            storage.save()
        except SQLAlchemyError:
            logger.exception("Failed to save video for user %s", g.current_user.id)
            raise PersistenceError("Failed to publish video")
    except AppError:
        discard_assets(uploaded)
        raise

    logger.info("User %s published video %s", g.current_user.id, video.id)
    return api_response(201, "Video published successfully", video_out_schema.dump(video))
