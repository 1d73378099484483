"""Adapter layer errors.

Domain-level failures (bad token, unknown email, undeliverable mail) are
raised as domain errors by the adapters themselves. These cover the
provider being unreachable or misconfigured.
"""


class AdapterError(Exception):
    """Base adapter error."""

    pass


class ProviderError(AdapterError):
    """An external provider call failed."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")
