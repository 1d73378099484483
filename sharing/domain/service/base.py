"""Base service class for domain services."""


class Service:
    """Base class for domain services.

    Services that mutate invitations or grants do so only inside
    ``EntityStore.run_transaction``. Calls to the identity provider and
    the mail server happen outside any transaction.
    """

    pass
