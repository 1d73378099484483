"""Domain value objects for schedule sharing."""

from enum import Enum

from pydantic import field_validator

from sharing.domain.value.common import RootValueObject


class FriendShareStatus(str, Enum):
    """Status of a friend entry on a sender's schedule version.

    Values match the stored documents ("Pending" / "Accepted").
    """

    PENDING = "Pending"
    ACCEPTED = "Accepted"


class GrantStatus(str, Enum):
    """Target state of a grant between a sender version and a friend."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    ABSENT = "absent"


class EmailAddress(RootValueObject[str]):
    """Email address of a user, normalised to lowercase."""

    @field_validator("root")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the address has a local part and a domain."""
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or not domain or len(v) > 254:
            raise ValueError("Email address must look like user@domain")
        return v
