import uuid
from sqlalchemy import JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from ..extensions import db
from ..utils.clock import utcnow

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Who performed the action (nullable for anonymous voters)
    actor_user_id = db.Column(db.String(64), nullable=True, index=True)

    # What happened
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. BALLOT_SUBMITTED
    entity_type = db.Column(db.String(50), nullable=True, index=True)  # e.g. POLL, BALLOT
    entity_id = db.Column(Uuid, nullable=True, index=True)

    # Request context
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    # Extra structured details (safe to store JSON)
    details = db.Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
