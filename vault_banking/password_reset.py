"""
Password Reset Module

Token-gated credential replacement:

    NoPendingReset --request_reset--> ResetRequested --resolve_reset--> NoPendingReset
                                            |
                                            +--(expiry passes)--> Expired

A reset token is 256 random bits, mailed to the account owner as part of a
link and stored only as its SHA-256 digest. It is valid for a fixed window,
checked when the token is used, and is cleared on first successful use.
Requesting a new reset replaces any pending token.
"""

from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import hashlib
import hmac
import secrets

from .storage import StorageInterface
from .accounts import Account, AccountStore, AccountLocks
from .security import PasswordHasher
from .notifications import Notifier
from .exceptions import AccountNotFound, InvalidOrExpiredToken, MissingFields, WeakPassword
from .logging_config import get_logger, log_action


class ResetState(Enum):
    NO_PENDING_RESET = "no_pending_reset"
    RESET_REQUESTED = "reset_requested"
    EXPIRED = "expired"


@dataclass
class ResetTicket:
    """Result of a reset request; ``token`` is the only copy of the raw token"""
    account_id: str
    token: str
    expires_at: datetime


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class PasswordResetFlow:
    """Issues and redeems password reset tokens"""

    def __init__(
        self,
        storage: StorageInterface,
        accounts: AccountStore,
        locks: AccountLocks,
        hasher: PasswordHasher,
        notifier: Notifier,
        frontend_url: str,
        token_ttl_minutes: int = 15,
        token_bytes: int = 32,
        password_min_length: int = 1,
        activity_log_limit: int = 10,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.storage = storage
        self.accounts = accounts
        self.locks = locks
        self.hasher = hasher
        self.notifier = notifier
        self.frontend_url = frontend_url.rstrip("/")
        self.token_ttl = timedelta(minutes=token_ttl_minutes)
        self.token_bytes = token_bytes
        self.password_min_length = password_min_length
        self.activity_log_limit = activity_log_limit
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger("vault.password_reset")

    def reset_link(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password/{token}"

    def reset_state(self, account: Account) -> ResetState:
        if not account.has_pending_reset:
            return ResetState.NO_PENDING_RESET
        if account.reset_expires_at <= self._clock():
            return ResetState.EXPIRED
        return ResetState.RESET_REQUESTED

    def request_reset(self, email: str) -> ResetTicket:
        """
        Start a reset for the account owning ``email`` and mail the link

        Raises:
            MissingFields: email is blank
            AccountNotFound: no account with this email
        """
        if not email or not email.strip():
            raise MissingFields()

        account = self.accounts.get_by_email(email)
        if not account:
            raise AccountNotFound("No account found with that email")

        token = secrets.token_hex(self.token_bytes)

        with self.locks.hold(account.id):
            with self.storage.atomic():
                account = self.accounts.get(account.id)
                if not account:
                    raise AccountNotFound("No account found with that email")
                now = self._clock()
                account.reset_token_hash = hash_token(token)
                account.reset_expires_at = now + self.token_ttl
                account.updated_at = now
                self.accounts.save(account)

        log_action(self.logger, "info", "Password reset requested",
                   user_id=account.id, action="password_reset_requested")

        self.notifier.password_reset_link(
            account.email, account.first_name, self.reset_link(token),
            int(self.token_ttl.total_seconds() // 60)
        )
        return ResetTicket(account_id=account.id, token=token, expires_at=account.reset_expires_at)

    def resolve_reset(self, token: str, new_secret: str) -> Account:
        """
        Replace the password of the account holding a valid reset token

        Raises:
            MissingFields: new password is blank
            WeakPassword: new password shorter than the configured minimum
            InvalidOrExpiredToken: token unknown, already used or expired
        """
        if not new_secret:
            raise MissingFields("New password is required")
        if len(new_secret) < self.password_min_length:
            raise WeakPassword()
        if not token:
            raise InvalidOrExpiredToken()

        token_hash = hash_token(token)
        candidate = self.accounts.get_by_reset_token(token_hash)
        if not candidate or not self._is_live(candidate, token_hash):
            raise InvalidOrExpiredToken()

        new_digest = self.hasher.hash(new_secret)

        with self.locks.hold(candidate.id):
            with self.storage.atomic():
                # Another request may have redeemed or replaced the token meanwhile
                account = self.accounts.get(candidate.id)
                if not account or not self._is_live(account, token_hash):
                    raise InvalidOrExpiredToken()

                now = self._clock()
                account.password_hash = new_digest
                account.clear_reset()
                account.record_activity("Password reset", now, self.activity_log_limit)
                account.updated_at = now
                self.accounts.save(account)

        log_action(self.logger, "info", "Password reset completed",
                   user_id=account.id, action="password_reset_completed")

        self.notifier.password_reset_confirmation(account.email, account.first_name)
        return account

    def _is_live(self, account: Account, token_hash: str) -> bool:
        if not account.reset_token_hash or account.reset_expires_at is None:
            return False
        if not hmac.compare_digest(account.reset_token_hash, token_hash):
            return False
        return account.reset_expires_at > self._clock()
