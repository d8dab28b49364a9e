"""Exception hierarchy for the banking backend.

Every error carries the HTTP status it maps to and a short message that is
safe to show to a client.
"""


class BankingError(Exception):
    """Base exception for all banking errors."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BankingError):
    """Raised when input fields are missing or invalid."""

    status_code = 400
    default_message = "Invalid request"


class MissingFields(ValidationError):
    default_message = "All fields are required"


class InvalidAmount(ValidationError):
    default_message = "Invalid amount"


class WeakPassword(ValidationError):
    default_message = "Password does not meet the minimum length"


class InvalidOrExpiredToken(ValidationError):
    default_message = "Invalid or expired token"


class NotFoundError(BankingError):
    """Raised when an account, email or record does not exist."""

    status_code = 404
    default_message = "Not found"


class AccountNotFound(NotFoundError):
    default_message = "User not found"


class NoTransactions(NotFoundError):
    default_message = "No transactions found"


class ConflictError(BankingError):
    """Raised when a request conflicts with current state."""

    status_code = 400
    default_message = "Conflict"


class DuplicateEmail(ConflictError):
    default_message = "User already exists"


class InsufficientFunds(ConflictError):
    default_message = "Insufficient balance"


class AccountNumberExhausted(ConflictError):
    """Raised when no free account number was found within the retry budget."""

    status_code = 409
    default_message = "Could not allocate an account number"


class AuthorizationError(BankingError):
    """Raised when the caller lacks the role for an operation."""

    status_code = 403
    default_message = "Forbidden"


class AdminRequired(AuthorizationError):
    default_message = "Admins only"


class AuthenticationError(AuthorizationError):
    """Raised when the caller's identity cannot be established."""

    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid email or password"


class InvalidSession(AuthenticationError):
    default_message = "Invalid token"


class DependencyError(BankingError):
    """Raised when a collaborator (hashing, token signing, mail) fails."""

    status_code = 502
    default_message = "A dependent service failed"


class LedgerAppendError(BankingError):
    """Raised when a ledger entry id is reused; entries are append-only."""


class UniqueConstraintError(BankingError):
    """Raised by storage when a unique secondary index would be violated."""

    def __init__(self, table: str, field: str):
        self.table = table
        self.field = field
        super().__init__(f"Duplicate value for {table}.{field}")
