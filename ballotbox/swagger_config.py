def swagger_template(app=None):
    title = "Ranked-Choice Polling API"
    version = "1.0.0"

    if app:
        title = app.config.get("SWAGGER_TITLE", title)
        version = app.config.get("SWAGGER_VERSION", version)

    return {
        "swagger": "2.0",
        "info": {"title": title, "version": version},
        "securityDefinitions": {
            "BearerAuth": {
                "type": "apiKey",
                "name": "Authorization",
                "in": "header",
                "description": "JWT Authorization header: Bearer <token>"
            }
        },
        "definitions": {
            "ErrorResponse": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": False},
                    "error": {
                        "type": "object",
                        "properties": {
                            "code": {"type": "string", "example": "BALLOT_REJECTED"},
                            "message": {"type": "string", "example": "Each rank can only be used once"},
                            "details": {
                                "type": "object",
                                "example": {"reason": "DUPLICATE_RANK", "field": "rankings"}
                            }
                        }
                    },
                    "request_id": {"type": "string"}
                }
            },
            "Ballot": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "poll_id": {"type": "string"},
                    "is_anonymous": {"type": "boolean"},
                    "submitted_at": {"type": "string", "format": "date-time"},
                    "rankings": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "poll_option_id": {"type": "string"},
                                "rank": {"type": "integer"}
                            }
                        }
                    }
                }
            }
        }
    }
