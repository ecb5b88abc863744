from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AuthenticatedVoter:
    user_id: str

    @property
    def is_anonymous(self) -> bool:
        return False


@dataclass(frozen=True)
class AnonymousVoter:
    guest_id: str

    @property
    def is_anonymous(self) -> bool:
        return True


# A ballot is cast by exactly one of these
VoterIdentity = Union[AuthenticatedVoter, AnonymousVoter]
