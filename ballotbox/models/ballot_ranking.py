from sqlalchemy import Uuid
from ..extensions import db

class BallotRanking(db.Model):
    __tablename__ = "ballot_rankings"

    id = db.Column(db.Integer, primary_key=True)
    ballot_id = db.Column(Uuid, db.ForeignKey("ballots.id", ondelete="CASCADE"), nullable=False, index=True)
    poll_option_id = db.Column(
        Uuid, db.ForeignKey("poll_options.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # 1 = first choice, 2 = second choice, ...
    rank = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("ballot_id", "rank", name="uq_ballot_rankings_rank"),
        db.UniqueConstraint("ballot_id", "poll_option_id", name="uq_ballot_rankings_option"),
        db.CheckConstraint("rank >= 1", name="ck_ballot_rankings_rank_positive"),
    )
