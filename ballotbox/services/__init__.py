from .voting import BallotReceipt, VoteStatus, VotingService  # noqa: F401
