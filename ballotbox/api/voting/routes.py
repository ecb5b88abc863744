from flask import Blueprint, request, current_app
from flasgger import swag_from

from ...errors import BallotConflict
from ...schemas.ballot import BallotReadSchema, BallotStatusQuerySchema
from ...utils.audit import safe_audit
from ...utils.clock import utcnow
from ...utils.identity_provider import bearer_credential
from ...utils.validation import validate_or_abort

voting_bp = Blueprint("voting", __name__)
ballot_status_query_schema = BallotStatusQuerySchema()
ballot_read_schema = BallotReadSchema()


def _voting_service():
    return current_app.extensions["ballotbox.voting"]


@voting_bp.post("/<uuid:poll_id>/ballot")
@swag_from({
    "tags": ["Voting"],
    "summary": "Submit a ranked ballot (authenticated or anonymous)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "rankings": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "poll_option_id": {"type": "string", "example": "uuid"},
                            "rank": {"type": "integer", "example": 1},
                        },
                    },
                },
                "guest_id": {"type": "string", "example": "optional-guest-id-for-anon"},
            },
            "required": ["rankings"],
        },
    }],
    "responses": {
        201: {"description": "Ballot recorded"},
        400: {"description": "Validation error / ballot rejected"},
        401: {"description": "Authentication required"},
        403: {"description": "Poll not open or expired"},
        404: {"description": "Poll not found"},
        409: {"description": "Already voted"},
        503: {"description": "Storage temporarily unavailable"},
    },
})
def submit_ballot(poll_id):
    # The body is only checked once the poll is known to accept votes
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}

    try:
        receipt = _voting_service().submit_ballot(
            poll_id,
            credential=bearer_credential(),
            guest_id=payload.get("guest_id"),
            rankings=payload.get("rankings"),
            now=utcnow(),
        )
    except BallotConflict:
        safe_audit(
            "BALLOT_DUPLICATE_ATTEMPT",
            entity_type="BALLOT",
            details={"poll_id": str(poll_id)},
        )
        raise

    ballot = receipt.ballot

    safe_audit(
        "BALLOT_SUBMITTED",
        actor_user_id=ballot.user_id,
        entity_type="BALLOT",
        entity_id=ballot.id,
        details={
            "poll_id": str(poll_id),
            "mode": "anonymous" if ballot.is_anonymous else "authenticated",
            "guest_id_minted": receipt.guest_id_minted,
            "rankings": len(ballot.rankings),
        },
    )

    response = {
        "message": "Ballot recorded",
        "ballot": ballot_read_schema.dump(ballot),
    }
    if receipt.guest_id:
        response["guest_id"] = receipt.guest_id  # client keeps this for later requests

    return response, 201


@voting_bp.get("/<uuid:poll_id>/ballot")
@swag_from({
    "tags": ["Voting"],
    "summary": "Check whether the current user or guest has already voted",
    "parameters": [
        {"in": "query", "name": "guest_id", "required": False, "type": "string"},
    ],
    "responses": {200: {"description": "OK"}, 404: {"description": "Poll not found"}},
})
def ballot_status(poll_id):
    query = validate_or_abort(ballot_status_query_schema, request.args.to_dict())

    status = _voting_service().check_has_voted(
        poll_id,
        credential=bearer_credential(),
        guest_id=query.get("guest_id"),
    )
    return {
        "has_voted": status.voted,
        "ballot": ballot_read_schema.dump(status.ballot) if status.ballot else None,
    }, 200
