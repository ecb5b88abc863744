import uuid
from sqlalchemy import Uuid
from ..extensions import db
from ..utils.clock import utcnow

class Poll(db.Model):
    __tablename__ = "polls"

    STATUS_DRAFT = "draft"
    STATUS_OPEN = "open"
    STATUS_CLOSED = "closed"
    VALID_STATUSES = (STATUS_DRAFT, STATUS_OPEN, STATUS_CLOSED)

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_id = db.Column(db.String(64), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=STATUS_DRAFT)
    shareable_link = db.Column(
        db.String(64), nullable=False, unique=True, default=lambda: str(uuid.uuid4())
    )
    allow_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    max_rankings = db.Column(db.Integer, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    closed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # relationships
    options = db.relationship(
        "PollOption",
        backref="poll",
        lazy=True,
        order_by="PollOption.order",
        cascade="all, delete-orphan",
    )
    ballots = db.relationship(
        "Ballot",
        backref="poll",
        lazy=True,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint(
            "max_rankings IS NULL OR max_rankings >= 1", name="ck_polls_max_rankings_positive"
        ),
    )
