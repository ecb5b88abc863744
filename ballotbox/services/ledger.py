from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from ..errors import BallotConflict, TransientStoreFailure
from ..extensions import db
from ..models.ballot import Ballot
from ..models.ballot_ranking import BallotRanking
from ..models.voter import AuthenticatedVoter, VoterIdentity
from ..utils.guest_token import guest_id_digest


def _is_identity_violation(exc: IntegrityError) -> bool:
    """True when ``exc`` comes from one of the one-ballot-per-voter indexes."""
    orig = exc.orig
    # psycopg2 names the violated constraint
    diag = getattr(orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint in Ballot.IDENTITY_INDEXES

    # sqlite: "UNIQUE constraint failed: ballots.poll_id, ballots.guest_token_hash"
    message = str(orig)
    return (
        any(name in message for name in Ballot.IDENTITY_INDEXES)
        or "ballots.user_id" in message
        or "ballots.guest_token_hash" in message
    )


@contextmanager
def store_guard(action: str, session=None):
    """Report a lost or locked database as ``TransientStoreFailure``."""
    session = session if session is not None else db.session
    try:
        yield
    except OperationalError as e:
        session.rollback()
        current_app.logger.exception("Store unavailable while %s", action)
        raise TransientStoreFailure() from e


class BallotLedger:
    """
    Sole authority for "one ballot per voter per poll".

    Nothing is read before the insert. The partial unique indexes on
    ``ballots`` decide, and a violation raised by the insert itself is
    reported as ``BallotConflict``.
    """

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def try_commit(self, poll_id, identity: VoterIdentity, rankings: Iterable, now: datetime) -> Ballot:
        ballot = Ballot(
            poll_id=poll_id,
            identity=identity,
            submitted_at=now,
            rankings=[BallotRanking(poll_option_id=r.poll_option_id, rank=r.rank) for r in rankings],
        )

        try:
            # Ballot and rankings are flushed and committed as one unit
            self.session.add(ballot)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if _is_identity_violation(e):
                current_app.logger.info(
                    "Duplicate ballot rejected poll_id=%s anonymous=%s", poll_id, identity.is_anonymous
                )
                raise BallotConflict(details={"poll_id": str(poll_id)}) from e
            current_app.logger.exception("Integrity error while committing ballot poll_id=%s", poll_id)
            raise
        except OperationalError as e:
            self.session.rollback()
            current_app.logger.exception("Store unavailable while committing ballot poll_id=%s", poll_id)
            raise TransientStoreFailure() from e

        return ballot

    def find(self, poll_id, identity: VoterIdentity) -> Optional[Ballot]:
        query = db.select(Ballot).filter_by(poll_id=poll_id)
        if isinstance(identity, AuthenticatedVoter):
            query = query.filter_by(user_id=identity.user_id)
        else:
            query = query.filter_by(guest_token_hash=guest_id_digest(identity.guest_id))
        with store_guard("looking up ballot", self.session):
            return self.session.scalars(query).first()
