from marshmallow import Schema, fields

from models.schemas.common import FormSchema, not_blank


class VideoCreateSchema(FormSchema):
    title = fields.String(required=True, validate=not_blank)
    description = fields.String(required=True, validate=not_blank)


class VideoOutSchema(Schema):
    id = fields.String(data_key="_id")
    video_file = fields.String(data_key="videoFile")
    thumbnail = fields.String()
    owner_id = fields.String(data_key="owner")
    title = fields.String()
    description = fields.String()
    duration = fields.Float(allow_none=True)
    views = fields.Integer()
    is_published = fields.Boolean(data_key="isPublished")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
