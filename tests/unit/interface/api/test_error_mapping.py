"""Unit tests for HTTP status mapping and bearer token parsing."""

import pytest

from sharing.domain.error import (
    AlreadyAcceptedError,
    AuthenticationError,
    DomainError,
    EmailSendError,
    FriendMismatchError,
    InvalidInviteError,
    InviteExpiredError,
    MissingTokenError,
    NotAuthorizedError,
    SelfInviteError,
    StoreWriteError,
    UnsupportedSchemaVersionError,
)
from sharing.interface.api.auth import bearer_token
from sharing.interface.api.errors import error_body, status_for
from sharing.interface.error import MalformedAuthorizationError


class TestStatusFor:
    """Domain errors map to HTTP statuses."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (MissingTokenError(), 401),
            (AuthenticationError(), 401),
            (FriendMismatchError(), 403),
            (NotAuthorizedError(), 403),
            (InvalidInviteError(), 404),
            (SelfInviteError(), 400),
            (InviteExpiredError(), 400),
            (AlreadyAcceptedError(), 400),
            (UnsupportedSchemaVersionError(2), 400),
            (StoreWriteError(), 409),
            (EmailSendError(), 502),
        ],
    )
    def test_mapping(self, error, expected):
        assert status_for(error) == expected

    def test_unknown_domain_error_is_server_error(self):
        assert status_for(DomainError("boom")) == 500

    def test_error_body_shape(self):
        assert error_body("Expired", "Invite expired") == {
            "error": {"code": "Expired", "message": "Invite expired"}
        }


class TestBearerToken:
    """Authorization header parsing."""

    def test_missing_header(self):
        assert bearer_token(None) is None
        assert bearer_token("") is None

    def test_bearer_scheme_is_case_insensitive(self):
        assert bearer_token("bearer abc.def") == "abc.def"
        assert bearer_token("Bearer  abc.def ") == "abc.def"

    @pytest.mark.parametrize("header", ["Basic abc", "Bearer", "Bearer   ", "abc"])
    def test_malformed_header(self, header):
        with pytest.raises(MalformedAuthorizationError):
            bearer_token(header)
