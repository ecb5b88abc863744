from marshmallow import fields, validate, validates_schema, pre_load, post_load, ValidationError

from ..extensions import ma
from ..models.polls import Poll
from ..utils.clock import to_naive_utc

def _not_blank(value: str) -> None:
    if not value.strip():
        raise ValidationError("Must not be blank")

def _strip(data, keys):
    # Length limits apply to the trimmed text
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for key in keys:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    return data

class OptionCreateSchema(ma.Schema):
    text = fields.String(required=True, validate=[validate.Length(min=1, max=500), _not_blank])
    order = fields.Integer(required=False, allow_none=True, strict=True)
    image_url = fields.Url(required=False, allow_none=True)

    @pre_load
    def strip_text(self, data, **kwargs):
        return _strip(data, ("text",))

class PollFieldsSchema(ma.Schema):
    title = fields.String(validate=[validate.Length(min=1, max=200), _not_blank])
    description = fields.String(allow_none=True)
    allow_anonymous = fields.Boolean()
    max_rankings = fields.Integer(allow_none=True, strict=True, validate=validate.Range(min=1))
    expires_at = fields.DateTime(allow_none=True)

    @pre_load
    def strip_text(self, data, **kwargs):
        return _strip(data, ("title", "description"))

    @post_load
    def normalize(self, data, **kwargs):
        if "description" in data:
            data["description"] = data["description"] or None
        if data.get("expires_at") is not None:
            data["expires_at"] = to_naive_utc(data["expires_at"])
        if "options" in data:
            data["options"] = [
                {
                    "text": opt["text"],
                    "order": opt["order"] if opt.get("order") is not None else index,
                    "image_url": opt.get("image_url") or None,
                }
                for index, opt in enumerate(data["options"])
            ]
        return data

class PollCreateSchema(PollFieldsSchema):
    title = fields.String(required=True, validate=[validate.Length(min=1, max=200), _not_blank])
    options = fields.List(fields.Nested(OptionCreateSchema), required=True, validate=validate.Length(min=2))

class PollUpdateSchema(PollFieldsSchema):
    options = fields.List(fields.Nested(OptionCreateSchema), required=False, validate=validate.Length(min=2))
    status = fields.String(required=False)

    @validates_schema
    def at_least_one_field(self, data, **kwargs):
        if not data:
            raise ValidationError("At least one field must be provided")

class PollStatusSchema(ma.Schema):
    status = fields.String(required=True)

class PollListQuerySchema(ma.Schema):
    status = fields.String(required=False, validate=validate.OneOf(Poll.VALID_STATUSES))
    creator_id = fields.String(required=False)

class OptionReadSchema(ma.Schema):
    id = fields.UUID()
    text = fields.String()
    order = fields.Integer()
    image_url = fields.String(allow_none=True)

class PollReadSchema(ma.Schema):
    id = fields.UUID()
    owner_id = fields.String()
    title = fields.String()
    description = fields.String(allow_none=True)
    status = fields.String()
    shareable_link = fields.String()
    allow_anonymous = fields.Boolean()
    max_rankings = fields.Integer(allow_none=True)
    expires_at = fields.DateTime(allow_none=True)
    closed_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    options = fields.List(fields.Nested(OptionReadSchema))
