"""
Poll status rules.

Any transition between ``draft``, ``open`` and ``closed`` is allowed as long
as the poll is not closed yet; a closed poll is final. ``now`` is always
passed in so callers decide what the current time is.
"""
from datetime import datetime

from ..errors import InvalidState, InvalidStatus, PollExpired, PollNotOpen
from ..models.polls import Poll


def can_edit_fields(poll) -> bool:
    return poll.status != Poll.STATUS_CLOSED


def can_edit_options(poll) -> bool:
    # Options freeze as soon as the poll could have received votes
    return poll.status == Poll.STATUS_DRAFT


def is_expired(poll, now: datetime) -> bool:
    return poll.expires_at is not None and now >= poll.expires_at


def can_accept_vote(poll, now: datetime) -> bool:
    return poll.status == Poll.STATUS_OPEN and not is_expired(poll, now)


def check_accepting_votes(poll, now: datetime) -> None:
    if poll.status != Poll.STATUS_OPEN:
        raise PollNotOpen(details={"status": poll.status})
    if is_expired(poll, now):
        raise PollExpired(details={"expires_at": poll.expires_at.isoformat()})


def check_editable(poll) -> None:
    if not can_edit_fields(poll):
        raise InvalidState("Cannot update a closed poll", details={"status": poll.status})


def transition(poll, new_status: str, now: datetime):
    """Move ``poll`` to ``new_status``, stamping ``closed_at`` on entering closed."""
    check_editable(poll)
    if new_status not in Poll.VALID_STATUSES:
        raise InvalidStatus(new_status)

    if new_status == Poll.STATUS_CLOSED:
        poll.closed_at = now
    poll.status = new_status
    return poll
