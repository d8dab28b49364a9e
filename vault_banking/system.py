"""
Banking system composition root

Every collaborator (storage, hasher, token signer, mailer) is constructed once
here and passed by reference to the services that use it.
"""

from datetime import datetime
from typing import Callable, Optional

from .config import VaultConfig, get_config
from .storage import StorageInterface, create_storage
from .accounts import AccountStore, AccountLocks
from .ledger import TransactionLedger
from .security import PasswordHasher, TokenSigner
from .notifications import Mailer, Notifier, create_mailer
from .transactions import BalanceMutationEngine
from .password_reset import PasswordResetFlow
from .identity import IdentityService
from .loans import LoanDesk


class BankingSystem:
    """Banking backend with all components initialized"""

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        storage: Optional[StorageInterface] = None,
        mailer: Optional[Mailer] = None,
        hasher: Optional[PasswordHasher] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.config = config or get_config()
        cfg = self.config

        self.storage = storage or create_storage(cfg.database_url)
        self.accounts = AccountStore(self.storage, email_case_sensitive=cfg.email_case_sensitive)
        self.locks = AccountLocks()
        self.ledger = TransactionLedger(self.storage)

        self.hasher = hasher or PasswordHasher()
        self.signer = TokenSigner(cfg.jwt_secret, cfg.jwt_algorithm, cfg.jwt_expiry_hours)
        self.notifier = Notifier(mailer or create_mailer(cfg), run_async=cfg.mail_async)

        self.engine = BalanceMutationEngine(
            self.storage, self.accounts, self.ledger, self.locks,
            activity_log_limit=cfg.activity_log_limit,
            empty_transactions_is_error=cfg.empty_transactions_is_error,
            max_amount=cfg.max_transaction_amount,
            clock=clock
        )
        self.password_reset = PasswordResetFlow(
            self.storage, self.accounts, self.locks, self.hasher, self.notifier,
            frontend_url=cfg.frontend_url,
            token_ttl_minutes=cfg.reset_token_ttl_minutes,
            token_bytes=cfg.reset_token_bytes,
            password_min_length=cfg.password_min_length,
            activity_log_limit=cfg.activity_log_limit,
            clock=clock
        )
        self.identity = IdentityService(
            self.storage, self.accounts, self.locks, self.hasher, self.signer, self.notifier,
            account_number_max_attempts=cfg.account_number_max_attempts,
            password_min_length=cfg.password_min_length,
            activity_log_limit=cfg.activity_log_limit,
            clock=clock
        )
        self.loan_desk = LoanDesk(clock=clock) if clock else LoanDesk()

    def close(self) -> None:
        self.notifier.close()
        self.storage.close()
