import uuid
from sqlalchemy import Uuid
from ..extensions import db
from ..utils.clock import utcnow
from ..utils.guest_token import guest_id_digest
from .voter import AnonymousVoter, AuthenticatedVoter, VoterIdentity

class Ballot(db.Model):
    __tablename__ = "ballots"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    poll_id = db.Column(Uuid, db.ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)

    # Exactly one of these is set (see __init__ and ck_ballots_single_identity)
    user_id = db.Column(db.String(64), nullable=True)
    # HMAC of the guest id; the raw value stays client-side
    guest_token_hash = db.Column(db.String(64), nullable=True)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)

    submitted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    rankings = db.relationship(
        "BallotRanking",
        backref="ballot",
        lazy="selectin",
        order_by="BallotRanking.rank",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # One ballot per user per poll, and one per guest per poll. Partial so
        # that the NULL side of each row is not constrained.
        db.Index(
            "uq_ballots_poll_user", "poll_id", "user_id", unique=True,
            postgresql_where=db.text("user_id IS NOT NULL"),
            sqlite_where=db.text("user_id IS NOT NULL"),
        ),
        db.Index(
            "uq_ballots_poll_guest", "poll_id", "guest_token_hash", unique=True,
            postgresql_where=db.text("guest_token_hash IS NOT NULL"),
            sqlite_where=db.text("guest_token_hash IS NOT NULL"),
        ),
        db.CheckConstraint(
            "(user_id IS NULL) <> (guest_token_hash IS NULL)", name="ck_ballots_single_identity"
        ),
    )

    IDENTITY_INDEXES = ("uq_ballots_poll_user", "uq_ballots_poll_guest")

    def __init__(self, *, poll_id, identity: VoterIdentity, submitted_at=None, rankings=None):
        if isinstance(identity, AuthenticatedVoter) and identity.user_id:
            user_id, guest_token_hash = identity.user_id, None
        elif isinstance(identity, AnonymousVoter) and identity.guest_id:
            user_id, guest_token_hash = None, guest_id_digest(identity.guest_id)
        else:
            raise ValueError("Ballot needs exactly one voter identity, got %r" % (identity,))

        super().__init__(
            poll_id=poll_id,
            user_id=user_id,
            guest_token_hash=guest_token_hash,
            is_anonymous=guest_token_hash is not None,
            submitted_at=submitted_at or utcnow(),
            rankings=rankings or [],
        )

    def belongs_to(self, identity: VoterIdentity) -> bool:
        if isinstance(identity, AuthenticatedVoter):
            return self.user_id is not None and self.user_id == identity.user_id
        return self.guest_token_hash is not None and self.guest_token_hash == guest_id_digest(identity.guest_id)
