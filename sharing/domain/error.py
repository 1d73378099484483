"""Domain layer errors.

Every error carries a stable ``code`` that callers can switch on. The
categories mirror how a request can fail: bad input, bad identity, a state
that makes the operation meaningless, the store, or a best-effort
downstream call.
"""


class DomainError(Exception):
    """Base domain error."""

    code: str = "DomainError"
    default_message: str = "Domain error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# --- Input validation --------------------------------------------------------


class ValidationError(DomainError):
    """Domain validation error."""

    code = "InvalidArgs"
    default_message = "Invalid arguments provided"


class InvalidArgumentsError(ValidationError):
    """Raised when required request fields are missing or malformed."""


class SelfInviteError(ValidationError):
    """Raised when a user invites or accepts their own schedule."""

    code = "SelfInvite"
    default_message = "Cannot invite self to schedule"


class InvalidVersionError(ValidationError):
    """Raised when a requested schedule version does not exist."""

    code = "InvalidVersion"
    default_message = "Cannot invite friend to invalid schedule version"


class UnsupportedSchemaVersionError(ValidationError):
    """Raised when a sharing operation targets a pre-v3 schedule."""

    code = "unsupported-schema-version"

    def __init__(self, found: int):
        self.found = found
        super().__init__(
            f"Schedule schema version {found} does not support sharing; version 3 required"
        )


class EmailNotFoundError(ValidationError):
    """Raised when no user is registered with the given email."""

    code = "EmailNotFound"
    default_message = "Email does not exist in database"


# --- Authorization -----------------------------------------------------------


class AuthorizationError(DomainError):
    """Base error for identity and permission failures."""

    code = "AuthFailed"
    default_message = "User not found"


class MissingTokenError(AuthorizationError):
    """Raised when a request carries no identity token."""

    code = "NoToken"
    default_message = "IDToken not provided"


class AuthenticationError(AuthorizationError):
    """Raised when an identity token cannot be verified."""


class FriendMismatchError(AuthorizationError):
    """Raised when an email invitation is accepted by someone else."""

    code = "FriendMismatch"
    default_message = "Invitation was sent to a different user"


class NotAuthorizedError(AuthorizationError):
    """Raised when a user reads schedules they have not been granted."""

    code = "NotAuthorized"
    default_message = "Not authorized to access these schedules"


# --- State conflicts ---------------------------------------------------------


class BusinessRuleViolationError(DomainError):
    """Business rule violation error."""

    code = "BusinessRuleViolation"


class InvalidInviteError(BusinessRuleViolationError):
    """Raised when an invitation id does not resolve to a usable invitation."""

    code = "InvalidInvite"
    default_message = "Invitation does not exist or has already been used"


class InviteExpiredError(BusinessRuleViolationError):
    """Raised when an invitation is used after its validity window."""

    code = "Expired"
    default_message = "The invitation has expired"


class AlreadyAcceptedError(BusinessRuleViolationError):
    """Raised when every version of an invitation is already accepted."""

    code = "AlreadyAccepted"
    default_message = "All versions of this invitation were already accepted"


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    code = "NotFound"

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


# --- Store ---------------------------------------------------------------------


class StoreError(DomainError):
    """Base error for entity store failures."""

    code = "StoreWriteFailed"
    default_message = "Error saving records"


class StoreConflictError(StoreError):
    """Raised when a document read in a transaction changed before commit."""

    code = "StoreConflict"
    default_message = "Concurrent modification detected"


class StoreWriteError(StoreError):
    """Raised when a transaction cannot be committed."""


# --- Downstream --------------------------------------------------------------


class EmailSendError(DomainError):
    """Raised when the invitation email could not be delivered.

    The grant is already committed when this is raised.
    """

    code = "EmailSendFailed"
    default_message = "Error sending invite email"
