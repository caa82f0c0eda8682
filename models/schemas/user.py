from marshmallow import Schema, fields, pre_load, validate, validates_schema, ValidationError

from models.schemas.common import FormSchema, not_blank

# widths of the matching users columns
USER_NAME_MAX = 64
EMAIL_MAX = 255
FULL_NAME_MAX = 255


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class UserRegisterSchema(FormSchema):
    full_name = fields.String(
        required=True, data_key="fullName", validate=[not_blank, validate.Length(max=FULL_NAME_MAX)]
    )
    user_name = fields.String(
        required=True, data_key="userName", validate=[not_blank, validate.Length(max=USER_NAME_MAX)]
    )
    # any non-empty string is accepted as an email address
    email = fields.String(required=True, validate=[not_blank, validate.Length(max=EMAIL_MAX)])
    password = fields.String(required=True, load_only=True, validate=not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        for key in ("fullName", "userName", "email"):
            if key in data:
                data[key] = _strip(data[key])
        return data


class UserLoginSchema(FormSchema):
    user_name = fields.String(data_key="userName", allow_none=True)
    email = fields.String(allow_none=True)
    password = fields.String(allow_none=True)


class UserUpdateSchema(FormSchema):
    full_name = fields.String(data_key="fullName", validate=[not_blank, validate.Length(max=FULL_NAME_MAX)])
    email = fields.String(validate=[not_blank, validate.Length(max=EMAIL_MAX)])

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        for key in ("fullName", "email"):
            if key in data:
                data[key] = _strip(data[key])
        return data

    @validates_schema
    def require_one(self, data, **kwargs):
        if not data:
            raise ValidationError("fullName or email is required.")


class PasswordUpdateSchema(FormSchema):
    old_password = fields.String(required=True, data_key="oldPassword", validate=not_blank)
    new_password = fields.String(required=True, data_key="newPassword", validate=not_blank)


class UserOutSchema(Schema):
    """Sanitized user: never carries the password hash or refresh token."""
    id = fields.String(data_key="_id")
    user_name = fields.String(data_key="userName")
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
