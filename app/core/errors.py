"""
Domain errors.

Every expected failure of a core operation is one of these. Each error has a
stable machine ``code`` that callers can branch on and a ``category`` that
decides how the HTTP layer reports it:

- validation: bad input shape, rejected before any write
- state_conflict: the requested transition no longer applies
- expiry: a code or invitation timed out; recoverable by reissuing
- not_found: the referenced record does not exist
- authentication: the caller could not be authenticated
"""

from typing import Dict


VALIDATION = "validation"
STATE_CONFLICT = "state_conflict"
EXPIRY = "expiry"
NOT_FOUND = "not_found"
AUTHENTICATION = "authentication"

STATUS_BY_CATEGORY: Dict[str, int] = {
    VALIDATION: 400,
    STATE_CONFLICT: 409,
    EXPIRY: 410,
    NOT_FOUND: 404,
    AUTHENTICATION: 401,
}


class DomainError(Exception):
    """Base class for expected domain failures."""
    code = "DomainError"
    category = VALIDATION
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_CATEGORY[self.category]

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.message}


# Accounts and credentials

class EmailTakenError(DomainError):
    code = "EmailTaken"
    category = STATE_CONFLICT
    default_message = "Email already registered"


class WeakPasswordError(DomainError):
    code = "WeakPassword"
    category = VALIDATION
    default_message = "Password is too short"


class NotFoundError(DomainError):
    code = "NotFound"
    category = NOT_FOUND
    default_message = "Account not found"


class InvalidOrExpiredCodeError(DomainError):
    code = "InvalidOrExpired"
    category = EXPIRY
    default_message = "Verification code is invalid or has expired"


class AlreadyVerifiedError(DomainError):
    code = "AlreadyVerified"
    category = STATE_CONFLICT
    default_message = "Account is already verified"


class InvalidCredentialsError(DomainError):
    code = "InvalidCredentials"
    category = AUTHENTICATION
    default_message = "Incorrect email or password"


class NotVerifiedError(DomainError):
    code = "NotVerified"
    category = AUTHENTICATION
    default_message = "Please verify your email before logging in"

    @property
    def status_code(self) -> int:
        return 403


class AccountNotVerifiedError(DomainError):
    code = "AccountNotVerified"
    category = STATE_CONFLICT
    default_message = "Both accounts must be verified"


# Invitations

class InvitationNotFoundError(NotFoundError):
    default_message = "Invitation not found"


class SelfInviteError(DomainError):
    code = "SelfInvite"
    category = VALIDATION
    default_message = "You cannot invite yourself"


class InvitationExpiredError(DomainError):
    code = "Expired"
    category = EXPIRY
    default_message = "Invitation has expired"


class AlreadyAcceptedError(DomainError):
    code = "AlreadyAccepted"
    category = STATE_CONFLICT
    default_message = "Invitation has already been used"


class EmailMismatchError(DomainError):
    code = "EmailMismatch"
    category = VALIDATION
    default_message = "Invitation was issued for a different email address"


# Friendships

class SelfFriendError(DomainError):
    code = "SelfFriend"
    category = VALIDATION
    default_message = "An account cannot befriend itself"


# Ledger

class NotFriendsError(DomainError):
    code = "NotFriends"
    category = STATE_CONFLICT
    default_message = "Expenses can only be recorded between friends"


class InvalidPayerError(DomainError):
    code = "InvalidPayer"
    category = VALIDATION
    default_message = "Payer must be one of the two participants"


class InvalidAmountError(DomainError):
    code = "InvalidAmount"
    category = VALIDATION
    default_message = "Amount must be a positive number"


class EmptyDescriptionError(DomainError):
    code = "EmptyDescription"
    category = VALIDATION
    default_message = "Description must not be empty"
