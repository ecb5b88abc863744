from flask import jsonify, g
from werkzeug.exceptions import HTTPException


class PollingError(Exception):
    """Base class for failures reported to the caller with a stable code."""

    code = "POLLING_ERROR"
    status = 400
    message = "Request could not be processed"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details or None


class NotFound(PollingError):
    code = "NOT_FOUND"
    status = 404
    message = "Resource not found"

    def __init__(self, resource: str = "Poll", message: str | None = None):
        super().__init__(message or f"{resource} not found", details={"resource": resource.lower()})


class Forbidden(PollingError):
    code = "FORBIDDEN"
    status = 403
    message = "Only the poll creator can manage this poll"


class InvalidState(PollingError):
    code = "INVALID_STATE"
    status = 409
    message = "Poll cannot be changed in its current state"


class InvalidStatus(PollingError):
    code = "INVALID_STATUS"
    status = 400
    message = "Invalid status"

    def __init__(self, status):
        super().__init__(f"Invalid status: {status!r}", details={"field": "status", "value": status})


class AuthenticationRequired(PollingError):
    code = "AUTHENTICATION_REQUIRED"
    status = 401
    message = "This poll requires authentication"


class PollNotOpen(PollingError):
    code = "POLL_NOT_OPEN"
    status = 403
    message = "Voting is not allowed on this poll"


class PollExpired(PollingError):
    code = "POLL_EXPIRED"
    status = 403
    message = "This poll has expired"


class BallotRejected(PollingError):
    """A ranking failed validation; ``reason`` is one of ``RankingReason``."""

    code = "BALLOT_REJECTED"
    status = 400
    message = "Ballot rejected"

    def __init__(self, reason, field: str = "rankings", message: str | None = None):
        self.reason = reason
        super().__init__(message, details={"reason": getattr(reason, "value", reason), "field": field})


class InvalidBallotPayload(PollingError):
    """The ballot body is structurally malformed (missing list, non-integer rank)."""

    code = "VALIDATION_ERROR"
    status = 400
    message = "Validation error"


class BallotConflict(PollingError):
    code = "ALREADY_VOTED"
    status = 409
    message = "You have already voted in this poll"


class TransientStoreFailure(PollingError):
    code = "STORE_UNAVAILABLE"
    status = 503
    message = "Storage is temporarily unavailable, please retry"


def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
            },
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )

def register_error_handlers(app):
    @app.errorhandler(PollingError)
    def handle_polling_error(e: PollingError):
        return _payload(code=e.code, message=e.message, details=e.details, status=e.status)

    # Generic HTTP errors (404, 403, 401, etc.)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # If we pass structured error info via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(_):
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(500)
    def handle_500(_):
        # Don't leak internals
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
