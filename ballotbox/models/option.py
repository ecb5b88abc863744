import uuid
from sqlalchemy import Uuid
from ..extensions import db
from ..utils.clock import utcnow

class PollOption(db.Model):
    __tablename__ = "poll_options"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    poll_id = db.Column(Uuid, db.ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)

    text = db.Column(db.String(500), nullable=False)
    # Display and tie-break ordering; need not be contiguous
    order = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(2048), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
