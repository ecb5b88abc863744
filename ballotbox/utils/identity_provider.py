from flask import current_app, request
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError


def bearer_credential() -> str | None:
    """
    Raw token from an ``Authorization: Bearer <token>`` header, if any.
    Anything else in the header is treated as no credential.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class JWTIdentityProvider:
    """
    Verifies access tokens issued by the identity provider.
    Invalid, expired or non-access tokens verify to None instead of raising.
    """

    def verify(self, credential: str | None) -> str | None:
        if not credential:
            return None
        try:
            claims = decode_token(credential)
        except (JWTExtendedException, PyJWTError) as e:
            current_app.logger.debug("Credential verification failed: %s", e)
            return None

        if claims.get("type") != "access":
            return None
        user_id = claims.get(current_app.config["JWT_IDENTITY_CLAIM"])
        return str(user_id) if user_id is not None else None
