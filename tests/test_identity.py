from datetime import timedelta
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token, create_refresh_token

from ballotbox.errors import AuthenticationRequired
from ballotbox.models import AnonymousVoter, AuthenticatedVoter
from ballotbox.services.identity import VoterIdentityResolver
from ballotbox.utils.guest_token import is_valid_guest_id
from ballotbox.utils.identity_provider import JWTIdentityProvider, bearer_credential


class StubProvider:
    def __init__(self, users):
        self.users = users
        self.calls = []

    def verify(self, credential):
        self.calls.append(credential)
        return self.users.get(credential)


OPEN_TO_GUESTS = SimpleNamespace(allow_anonymous=True)
MEMBERS_ONLY = SimpleNamespace(allow_anonymous=False)


@pytest.fixture
def resolver():
    return VoterIdentityResolver(StubProvider({"good-token": "user-7"}))


def test_verified_credential_wins_over_guest_id(resolver):
    voter = resolver.resolve(OPEN_TO_GUESTS, "good-token", "g1")
    assert voter.identity == AuthenticatedVoter("user-7")
    assert voter.guest_id is None
    assert not voter.minted


def test_authenticated_voter_on_members_only_poll(resolver):
    assert resolver.resolve(MEMBERS_ONLY, "good-token").identity == AuthenticatedVoter("user-7")


def test_bad_credential_falls_back_to_guest(resolver):
    voter = resolver.resolve(OPEN_TO_GUESTS, "expired-token", "g1")
    assert voter.identity == AnonymousVoter("g1")
    assert voter.guest_id == "g1"
    assert not voter.minted


@pytest.mark.parametrize("credential", [None, "", "expired-token"])
def test_members_only_poll_requires_authentication(resolver, credential):
    with pytest.raises(AuthenticationRequired):
        resolver.resolve(MEMBERS_ONLY, credential, "g1")


@pytest.mark.parametrize("guest_id", [None, "", "has spaces", "x" * 129, 42])
def test_missing_or_malformed_guest_id_is_replaced(resolver, guest_id):
    voter = resolver.resolve(OPEN_TO_GUESTS, None, guest_id)
    assert voter.minted
    assert isinstance(voter.identity, AnonymousVoter)
    assert voter.identity.guest_id == voter.guest_id
    assert is_valid_guest_id(voter.guest_id)


def test_minted_guest_ids_are_unique(resolver):
    minted = {resolver.resolve(OPEN_TO_GUESTS).guest_id for _ in range(50)}
    assert len(minted) == 50


def test_uuid_guest_ids_are_accepted(resolver):
    guest_id = "0b8d6f0e-2a4c-4bde-9d4c-3f0f3a6f1c2e"
    assert resolver.resolve(OPEN_TO_GUESTS, None, guest_id).identity == AnonymousVoter(guest_id)


def test_absent_credential_is_not_sent_to_provider(resolver):
    resolver.resolve(OPEN_TO_GUESTS, None, "g1")
    assert resolver.identity_provider.calls == []


def test_identify_never_mints_or_fails(resolver):
    assert resolver.identify("good-token", "g1") == AuthenticatedVoter("user-7")
    assert resolver.identify("expired-token", "g1") == AnonymousVoter("g1")
    assert resolver.identify(None, None) is None
    assert resolver.identify(None, "not valid!") is None


def test_jwt_provider_verifies_access_tokens(ctx):
    provider = JWTIdentityProvider()
    assert provider.verify(create_access_token(identity="user-7")) == "user-7"


@pytest.mark.parametrize("make_credential", [
    lambda: "not-a-jwt",
    lambda: create_refresh_token(identity="user-7"),
    lambda: create_access_token(identity="user-7", expires_delta=timedelta(seconds=-30)),
    lambda: None,
])
def test_jwt_provider_rejects_without_raising(ctx, make_credential):
    assert JWTIdentityProvider().verify(make_credential()) is None


@pytest.mark.parametrize("header, expected", [
    ("Bearer abc.def.ghi", "abc.def.ghi"),
    ("bearer abc", "abc"),
    ("Basic dXNlcjpwYXNz", None),
    ("Bearer ", None),
    (None, None),
])
def test_bearer_credential(app, header, expected):
    headers = {"Authorization": header} if header is not None else {}
    with app.test_request_context("/", headers=headers):
        assert bearer_credential() == expected
