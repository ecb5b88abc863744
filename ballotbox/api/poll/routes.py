from flask import Blueprint, request, current_app
from flasgger import swag_from
from flask_jwt_extended import jwt_required, get_jwt_identity
from sqlalchemy.exc import SQLAlchemyError

from ...errors import Forbidden, InvalidState, InvalidStatus, NotFound
from ...extensions import db
from ...models.ballot import Ballot
from ...models.option import PollOption
from ...models.polls import Poll
from ...schemas.poll import (
    PollCreateSchema,
    PollListQuerySchema,
    PollReadSchema,
    PollStatusSchema,
    PollUpdateSchema,
)
from ...services import lifecycle
from ...utils.audit import audit_log, safe_audit
from ...utils.clock import utcnow
from ...utils.identity_provider import bearer_credential
from ...utils.validation import validate_or_abort

polls_bp = Blueprint("polls", __name__)

poll_create_schema = PollCreateSchema()
poll_update_schema = PollUpdateSchema()
poll_status_schema = PollStatusSchema()
poll_list_query_schema = PollListQuerySchema()
poll_read_schema = PollReadSchema()
poll_read_many_schema = PollReadSchema(many=True)


def _voting_service():
    return current_app.extensions["ballotbox.voting"]


def _optional_user_id():
    """Caller's user id when a valid bearer token is sent, else None."""
    return _voting_service().resolver.identity_provider.verify(bearer_credential())


def _get_visible_poll(poll: Poll | None) -> Poll:
    # Drafts are only visible to their creator
    if poll is None or (poll.status == Poll.STATUS_DRAFT and poll.owner_id != _optional_user_id()):
        raise NotFound("Poll")
    return poll


def _get_owned_poll(poll_id) -> Poll:
    poll = _voting_service().get_poll(poll_id)
    if poll.owner_id != str(get_jwt_identity()):
        raise Forbidden()
    return poll


def _replace_options(poll: Poll, options: list) -> None:
    poll.options.clear()
    db.session.flush()
    for opt in options:
        poll.options.append(PollOption(text=opt["text"], order=opt["order"], image_url=opt["image_url"]))


@polls_bp.post("/")
@jwt_required()
@swag_from({
    "tags": ["Polls"],
    "summary": "Create a poll (starts as draft)",
    "security": [{"BearerAuth": []}],
    "responses": {201: {"description": "Created"}, 400: {"description": "Validation error"}, 401: {"description": "Unauthorized"}}
})
def create_poll():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(poll_create_schema, payload)

    owner_id = str(get_jwt_identity())
    poll = Poll(
        owner_id=owner_id,
        title=payload["title"],
        description=payload.get("description"),
        status=Poll.STATUS_DRAFT,
        allow_anonymous=payload.get("allow_anonymous", False),
        max_rankings=payload.get("max_rankings"),
        expires_at=payload.get("expires_at"),
    )
    for opt in payload["options"]:
        poll.options.append(PollOption(text=opt["text"], order=opt["order"], image_url=opt["image_url"]))

    try:
        db.session.add(poll)
        db.session.flush()

        audit_log(
            action="POLL_CREATED",
            actor_user_id=owner_id,
            entity_type="POLL",
            entity_id=poll.id,
            details={"title": poll.title, "options": len(payload["options"])},
        )

        db.session.commit()
        return {"poll": poll_read_schema.dump(poll)}, 201

    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error creating poll")
        return {"message": "Failed to create poll"}, 500


@polls_bp.get("/")
@swag_from({
    "tags": ["Polls"],
    "summary": "List polls",
    "description": "Filter by status and creator_id. Drafts are only listed for their creator.",
    "parameters": [
        {"in": "query", "name": "status", "required": False, "type": "string"},
        {"in": "query", "name": "creator_id", "required": False, "type": "string"},
    ],
    "responses": {200: {"description": "OK"}, 400: {"description": "Validation error"}}
})
def list_polls():
    filters = validate_or_abort(poll_list_query_schema, request.args.to_dict())
    user_id = _optional_user_id()

    query = db.select(Poll).order_by(Poll.created_at.desc())
    if "status" in filters:
        query = query.filter(Poll.status == filters["status"])
    if "creator_id" in filters:
        query = query.filter(Poll.owner_id == filters["creator_id"])
    query = query.filter(db.or_(Poll.status != Poll.STATUS_DRAFT, Poll.owner_id == user_id))

    polls = db.session.scalars(query).all()
    return {"polls": poll_read_many_schema.dump(polls)}, 200


@polls_bp.get("/<uuid:poll_id>")
@swag_from({"tags": ["Polls"], "summary": "Get poll details", "responses": {200: {}, 404: {}}})
def get_poll(poll_id):
    poll = _get_visible_poll(db.session.get(Poll, poll_id))
    return {"poll": poll_read_schema.dump(poll)}, 200


@polls_bp.get("/link/<string:shareable_link>")
@swag_from({"tags": ["Polls"], "summary": "Get poll by its shareable link", "responses": {200: {}, 404: {}}})
def get_poll_by_link(shareable_link):
    poll = db.session.scalars(db.select(Poll).filter_by(shareable_link=shareable_link)).first()
    poll = _get_visible_poll(poll)
    return {"poll": poll_read_schema.dump(poll)}, 200


@polls_bp.put("/<uuid:poll_id>")
@jwt_required()
@swag_from({
    "tags": ["Polls"],
    "summary": "Update poll fields, options (draft only) and status (creator only)",
    "security": [{"BearerAuth": []}],
    "responses": {200: {}, 400: {}, 403: {}, 404: {}, 409: {"description": "Poll is closed / options frozen"}}
})
def update_poll(poll_id):
    poll = _get_owned_poll(poll_id)
    lifecycle.check_editable(poll)

    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(poll_update_schema, payload)
    if "status" in payload and payload["status"] not in Poll.VALID_STATUSES:
        raise InvalidStatus(payload["status"])

    if "options" in payload:
        if not lifecycle.can_edit_options(poll):
            raise InvalidState("Cannot update options for an open or closed poll", details={"status": poll.status})
        has_ballots = db.session.scalars(db.select(Ballot.id).filter_by(poll_id=poll.id).limit(1)).first()
        if has_ballots is not None:
            raise InvalidState("Cannot update options of a poll that already has ballots")

    try:
        for field in ("title", "description", "allow_anonymous", "max_rankings", "expires_at"):
            if field in payload:
                setattr(poll, field, payload[field])

        if "options" in payload:
            _replace_options(poll, payload["options"])

        # Status last, so option edits are judged against the current status
        if "status" in payload:
            lifecycle.transition(poll, payload["status"], utcnow())

        audit_log(
            action="POLL_UPDATED",
            actor_user_id=poll.owner_id,
            entity_type="POLL",
            entity_id=poll.id,
            details={"updated_fields": sorted(payload.keys())},
        )

        db.session.commit()
        return {"poll": poll_read_schema.dump(poll)}, 200

    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error updating poll")
        return {"message": "Failed to update poll"}, 500


@polls_bp.post("/<uuid:poll_id>/status")
@jwt_required()
@swag_from({
    "tags": ["Polls"],
    "summary": "Change poll status (draft/open/closed); closed polls are final",
    "security": [{"BearerAuth": []}],
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {"type": "object", "properties": {"status": {"type": "string", "example": "open"}}},
    }],
    "responses": {200: {}, 400: {"description": "Invalid status"}, 403: {}, 404: {}, 409: {"description": "Poll is closed"}}
})
def transition_poll_status(poll_id):
    poll = _get_owned_poll(poll_id)
    payload = validate_or_abort(poll_status_schema, request.get_json(silent=True) or {})

    previous = poll.status
    poll = _voting_service().transition_poll_status(poll.id, payload["status"], utcnow())

    safe_audit(
        "POLL_STATUS_CHANGED",
        actor_user_id=poll.owner_id,
        entity_type="POLL",
        entity_id=poll.id,
        details={"from_status": previous, "to_status": poll.status},
    )
    return {"poll": poll_read_schema.dump(poll)}, 200


@polls_bp.delete("/<uuid:poll_id>")
@jwt_required()
@swag_from({"tags": ["Polls"], "summary": "Delete poll with its options and ballots (creator only)", "responses": {200: {}, 403: {}, 404: {}}})
def delete_poll(poll_id):
    poll = _get_owned_poll(poll_id)

    try:
        audit_log(
            action="POLL_DELETED",
            actor_user_id=poll.owner_id,
            entity_type="POLL",
            entity_id=poll.id,
            details={"title": poll.title},
        )

        db.session.delete(poll)
        db.session.commit()
        return {"message": "Poll deleted successfully"}, 200

    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error deleting poll")
        return {"message": "Failed to delete poll"}, 500
