"""Firebase identity adapter."""

from .identity import (
    FirebaseIdentityClient,
    MockIdentityClient,
    service_account_credentials,
)

__all__ = [
    "FirebaseIdentityClient",
    "MockIdentityClient",
    "service_account_credentials",
]
