from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from flask import current_app
from marshmallow import ValidationError

from ..errors import InvalidBallotPayload, NotFound
from ..extensions import db
from ..models.ballot import Ballot
from ..models.option import PollOption
from ..models.polls import Poll
from ..schemas.ballot import BallotSubmitSchema
from . import lifecycle
from .identity import IdentityProvider, VoterIdentityResolver
from .ledger import BallotLedger, store_guard
from .ranking import validate_rankings
from ..utils.clock import utcnow

ballot_submit_schema = BallotSubmitSchema()


@dataclass(frozen=True)
class BallotReceipt:
    ballot: Ballot
    guest_id: Optional[str] = None
    guest_id_minted: bool = False


@dataclass(frozen=True)
class VoteStatus:
    voted: bool
    ballot: Optional[Ballot] = None


def load_rankings(rankings) -> List[dict]:
    """Structural check of a raw ``rankings`` value from a request body."""
    data = {} if rankings is None else {"rankings": rankings}
    try:
        return ballot_submit_schema.load(data)["rankings"]
    except ValidationError as err:
        raise InvalidBallotPayload(details=err.messages) from err


class VotingService:
    """
    Entry point for casting ballots and moving polls through their lifecycle.

    ``submit_ballot`` runs: poll lookup, lifecycle check, identity
    resolution, structural load of the rankings, ranking validation, ledger
    commit. Each step raises on failure and only the last one writes.
    """

    def __init__(self, identity_provider: IdentityProvider, ledger: Optional[BallotLedger] = None):
        self.resolver = VoterIdentityResolver(identity_provider)
        self.ledger = ledger or BallotLedger()

    def get_poll(self, poll_id) -> Poll:
        with store_guard("loading poll"):
            poll = db.session.get(Poll, poll_id, populate_existing=True)
        if poll is None:
            raise NotFound("Poll")
        return poll

    def live_option_ids(self, poll_id) -> set:
        with store_guard("loading poll options"):
            return set(db.session.scalars(db.select(PollOption.id).filter_by(poll_id=poll_id)))

    def submit_ballot(
        self,
        poll_id,
        credential=None,
        guest_id=None,
        rankings=None,
        now: Optional[datetime] = None,
    ) -> BallotReceipt:
        """
        ``rankings`` is the raw list from the request body. ``guest_id`` may
        be any value; malformed ones are replaced by a minted id.
        """
        now = now or utcnow()
        poll = self.get_poll(poll_id)
        lifecycle.check_accepting_votes(poll, now)

        voter = self.resolver.resolve(poll, credential, guest_id)
        entries = validate_rankings(self.live_option_ids(poll.id), load_rankings(rankings), poll.max_rankings)

        ballot = self.ledger.try_commit(poll.id, voter.identity, entries, now)
        current_app.logger.info(
            "Ballot recorded ballot_id=%s poll_id=%s anonymous=%s rankings=%d",
            ballot.id, poll.id, voter.identity.is_anonymous, len(entries),
        )
        return BallotReceipt(ballot=ballot, guest_id=voter.guest_id, guest_id_minted=voter.minted)

    def check_has_voted(self, poll_id, credential=None, guest_id: Optional[str] = None) -> VoteStatus:
        poll = self.get_poll(poll_id)
        identity = self.resolver.identify(credential, guest_id)
        if identity is None:
            return VoteStatus(voted=False)

        ballot = self.ledger.find(poll.id, identity)
        return VoteStatus(voted=ballot is not None, ballot=ballot)

    def transition_poll_status(self, poll_id, new_status: str, now: datetime) -> Poll:
        poll = self.get_poll(poll_id)
        previous = poll.status
        lifecycle.transition(poll, new_status, now)
        db.session.commit()
        current_app.logger.info("Poll status changed poll_id=%s %s -> %s", poll.id, previous, new_status)
        return poll
