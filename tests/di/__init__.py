"""Mock providers for testing."""

from .clock import MockClockProvider
from .email import MockEmailProvider
from .identity import MockIdentityProvider
from .persistence import MockPersistenceProvider
from .container import build_test_container

__all__ = [
    "MockClockProvider",
    "MockEmailProvider",
    "MockIdentityProvider",
    "MockPersistenceProvider",
    "build_test_container",
]
