import hashlib
import hmac
import re
import secrets

from flask import current_app

# UUIDs (what browsers typically persist) and token_urlsafe output both match
GUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")


def generate_guest_id(length: int = 32) -> str:
    return secrets.token_urlsafe(length)


def is_valid_guest_id(value) -> bool:
    return isinstance(value, str) and GUEST_ID_PATTERN.fullmatch(value) is not None


def guest_id_digest(guest_id: str) -> str:
    """
    HMAC-SHA256 of a guest id keyed with SECRET_KEY.
    This is what ballots store; the raw guest id stays with the client.
    """
    secret = current_app.config["SECRET_KEY"].encode("utf-8")
    return hmac.new(secret, guest_id.encode("utf-8"), hashlib.sha256).hexdigest()
