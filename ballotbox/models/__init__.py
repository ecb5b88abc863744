from .polls import Poll  # noqa: F401
from .option import PollOption  # noqa: F401
from .ballot import Ballot  # noqa: F401
from .ballot_ranking import BallotRanking  # noqa: F401
from .audit_log import AuditLog  # noqa: F401
from .voter import AnonymousVoter, AuthenticatedVoter, VoterIdentity  # noqa: F401

# Import ALL models so SQLAlchemy registers them

__all__ = [
    "Poll",
    "PollOption",
    "Ballot",
    "BallotRanking",
    "AuditLog",
    "AnonymousVoter",
    "AuthenticatedVoter",
    "VoterIdentity",
]
