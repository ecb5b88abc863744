import uuid

from marshmallow import fields, post_load

from ..extensions import ma

def _as_option_id(value):
    # Ids that are not UUIDs cannot belong to the poll; the ranking validator
    # reports them as UNKNOWN_OPTION
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return str(value)

class RankingSubmitSchema(ma.Schema):
    poll_option_id = fields.Raw(required=True)
    rank = fields.Integer(required=True, strict=True)

    @post_load
    def coerce_option_id(self, data, **kwargs):
        data["poll_option_id"] = _as_option_id(data["poll_option_id"])
        return data

class BallotSubmitSchema(ma.Schema):
    # Loaded by VotingService once the poll is known to accept votes.
    # guest_id is not part of it: any value reaches the identity resolver,
    # which replaces malformed ones.
    rankings = fields.List(fields.Nested(RankingSubmitSchema), required=True)

class BallotStatusQuerySchema(ma.Schema):
    guest_id = fields.String(required=False, allow_none=True)

class RankingReadSchema(ma.Schema):
    poll_option_id = fields.UUID()
    rank = fields.Integer()

class BallotReadSchema(ma.Schema):
    id = fields.UUID()
    poll_id = fields.UUID()
    is_anonymous = fields.Boolean()
    submitted_at = fields.DateTime()
    rankings = fields.List(fields.Nested(RankingReadSchema))
