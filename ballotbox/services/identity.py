from dataclasses import dataclass
from typing import Optional, Protocol

from ..errors import AuthenticationRequired
from ..models.voter import AnonymousVoter, AuthenticatedVoter, VoterIdentity
from ..utils.guest_token import generate_guest_id, is_valid_guest_id


class IdentityProvider(Protocol):
    def verify(self, credential) -> Optional[str]:
        """Return the user id behind ``credential``, or None if it does not verify."""


@dataclass(frozen=True)
class ResolvedVoter:
    identity: VoterIdentity
    # Guest id the client should keep; None for authenticated voters
    guest_id: Optional[str] = None
    minted: bool = False


class VoterIdentityResolver:
    """
    Works out who is voting. Never touches poll or ballot state.

    A credential that fails verification is treated exactly like a missing
    one, so stale tokens fall back to the anonymous path instead of erroring.
    """

    def __init__(self, identity_provider: IdentityProvider):
        self.identity_provider = identity_provider

    def resolve(self, poll, credential=None, guest_id: Optional[str] = None) -> ResolvedVoter:
        user_id = self.identity_provider.verify(credential) if credential else None
        if user_id:
            return ResolvedVoter(AuthenticatedVoter(user_id))

        if not poll.allow_anonymous:
            raise AuthenticationRequired(details={"allow_anonymous": False})

        if is_valid_guest_id(guest_id):
            return ResolvedVoter(AnonymousVoter(guest_id), guest_id=guest_id)

        minted = generate_guest_id()
        return ResolvedVoter(AnonymousVoter(minted), guest_id=minted, minted=True)

    def identify(self, credential=None, guest_id: Optional[str] = None) -> Optional[VoterIdentity]:
        """Read-only variant: no minting, no failure when nobody can be identified."""
        user_id = self.identity_provider.verify(credential) if credential else None
        if user_id:
            return AuthenticatedVoter(user_id)
        if is_valid_guest_id(guest_id):
            return AnonymousVoter(guest_id)
        return None
