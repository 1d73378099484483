"""Bearer token extraction."""

from fastapi import Header

from sharing.interface.error import MalformedAuthorizationError


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Read the identity token from an ``Authorization: Bearer`` header.

    Returns:
        The token, or None when no header was sent

    Raises:
        MalformedAuthorizationError: If the header uses another scheme
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MalformedAuthorizationError("Authorization header must be a bearer token")
    return token.strip()
