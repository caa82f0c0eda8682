from marshmallow import Schema, ValidationError, EXCLUDE


def not_blank(value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Must be a non-empty string.")


class FormSchema(Schema):
    """Base for request schemas: unknown form/json keys are ignored rather than rejected."""

    class Meta:
        unknown = EXCLUDE
