from typing import Optional, Dict, Any
from flask import current_app, has_request_context, request

from ..extensions import db
from ..models.audit_log import AuditLog

def audit_log(
    action: str,
    actor_user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id=None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Stage an audit row in the current session; the caller commits."""
    ip = ua = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        ua = request.headers.get("User-Agent")

    log = AuditLog(
        actor_user_id=actor_user_id or None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id or None,
        ip_address=ip,
        user_agent=ua[:255] if ua else None,
        details=details or None,
    )
    db.session.add(log)


def safe_audit(action: str, **kwargs) -> None:
    """
    Best-effort audit committed on its own.
    Used after the main unit of work so an audit failure never undoes it.
    """
    try:
        audit_log(action, **kwargs)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Audit logging failed: %s", action)
