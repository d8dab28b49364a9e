"""
Identity Module

Registration, login, session resolution and profile lookups. Registration
issues a unique random 10-digit account number; only password digests are
ever stored.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Callable, List, Optional
import secrets
import uuid

from .storage import StorageInterface
from .accounts import Account, AccountRole, AccountStore, AccountLocks
from .security import PasswordHasher, TokenSigner
from .notifications import Notifier
from .exceptions import (
    AccountNotFound, AccountNumberExhausted, DuplicateEmail, InvalidCredentials,
    InvalidSession, MissingFields, UniqueConstraintError, WeakPassword
)
from .logging_config import get_logger, log_action


LOGIN_ACTIVITY = "Login into dashboard"


def generate_account_number() -> str:
    """Random 10-digit account number (never starts with 0)"""
    return str(1_000_000_000 + secrets.randbelow(9_000_000_000))


@dataclass
class Session:
    """An authenticated account and its signed session token"""
    account: Account
    token: str


class IdentityService:
    """Creates accounts and authenticates their owners"""

    def __init__(
        self,
        storage: StorageInterface,
        accounts: AccountStore,
        locks: AccountLocks,
        hasher: PasswordHasher,
        signer: TokenSigner,
        notifier: Notifier,
        account_number_max_attempts: int = 5,
        password_min_length: int = 1,
        activity_log_limit: int = 10,
        number_generator: Callable[[], str] = generate_account_number,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.storage = storage
        self.accounts = accounts
        self.locks = locks
        self.hasher = hasher
        self.signer = signer
        self.notifier = notifier
        self.account_number_max_attempts = account_number_max_attempts
        self.password_min_length = password_min_length
        self.activity_log_limit = activity_log_limit
        self.number_generator = number_generator
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger("vault.identity")

    def register(
        self,
        first_name: str,
        last_name: str,
        phone: str,
        email: str,
        secret: str,
        role: AccountRole = AccountRole.USER
    ) -> Account:
        """
        Create a new account

        Args:
            first_name: Owner's first name
            last_name: Owner's last name
            phone: Contact phone number
            email: Login email, unique under the configured case policy
            secret: Plain password; only its digest is stored
            role: Account role

        Returns:
            Created Account with a zero balance

        Raises:
            MissingFields: any field blank
            DuplicateEmail: email already registered
            AccountNumberExhausted: no free account number within the retry budget
        """
        fields = [first_name, last_name, phone, email, secret]
        if any(value is None or not str(value).strip() for value in fields):
            raise MissingFields()
        if len(secret) < self.password_min_length:
            raise WeakPassword()

        email = email.strip()
        if self.accounts.get_by_email(email):
            raise DuplicateEmail()

        password_hash = self.hasher.hash(secret)
        now = self._clock()
        account = Account(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            account_number="",
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone.strip(),
            email=email,
            email_key=self.accounts.email_key(email),
            password_hash=password_hash,
            role=role
        )

        for attempt in range(1, self.account_number_max_attempts + 1):
            account.account_number = self.number_generator()
            try:
                self.accounts.insert(account)
                break
            except UniqueConstraintError as e:
                if e.field == "email_key":
                    # Lost a race with a concurrent registration
                    raise DuplicateEmail()
                log_action(
                    self.logger, "warning", "Account number collision, retrying",
                    action="account_number_collision", extra={"attempt": attempt}
                )
        else:
            raise AccountNumberExhausted()

        log_action(self.logger, "info", "Account registered",
                   user_id=account.id, action="register", resource=account.account_number)

        self.notifier.welcome(account.email, account.full_name, account.account_number)
        return account

    def login(self, email: str, secret: str) -> Session:
        """
        Verify credentials, record the login and issue a session token

        Raises:
            InvalidCredentials: unknown email or wrong password
        """
        if not email or not secret:
            raise InvalidCredentials()

        account = self.accounts.get_by_email(email)
        if not account or not self.hasher.verify(secret, account.password_hash):
            log_action(self.logger, "info", "Login failed", action="login_failed")
            raise InvalidCredentials()

        with self.locks.hold(account.id):
            with self.storage.atomic():
                account = self.accounts.get(account.id)
                if not account:
                    raise InvalidCredentials()
                now = self._clock()
                account.record_activity(LOGIN_ACTIVITY, now, self.activity_log_limit)
                account.updated_at = now
                self.accounts.save(account)

        log_action(self.logger, "info", "Login succeeded", user_id=account.id, action="login")
        return Session(account=account, token=self.issue_token(account))

    def issue_token(self, account: Account) -> str:
        return self.signer.issue(account.id)

    def authenticate(self, token: str) -> Account:
        """
        Resolve a session token to its account

        Raises:
            InvalidSession: token invalid, expired or its account no longer exists
        """
        account_id = self.signer.verify(token) if token else None
        if not account_id:
            raise InvalidSession()
        account = self.accounts.get(account_id)
        if not account:
            raise InvalidSession()
        return account

    def get_profile(self, account_id: str) -> Account:
        account = self.accounts.get(account_id)
        if not account:
            raise AccountNotFound()
        return account

    def list_users(self) -> List[Account]:
        """Accounts with the user role, for administrators"""
        return self.accounts.list_accounts(role=AccountRole.USER)

    def set_password(self, email: str, secret: str) -> Account:
        """Operator tool: overwrite an account's password without a reset token"""
        if not secret:
            raise MissingFields("Password is required")
        account = self.accounts.get_by_email(email)
        if not account:
            raise AccountNotFound()

        new_digest = self.hasher.hash(secret)
        with self.locks.hold(account.id):
            with self.storage.atomic():
                account = self.accounts.get(account.id)
                if not account:
                    raise AccountNotFound()
                account.password_hash = new_digest
                account.clear_reset()
                account.updated_at = self._clock()
                self.accounts.save(account)

        log_action(self.logger, "info", "Password set by operator",
                   user_id=account.id, action="password_set")
        return account
