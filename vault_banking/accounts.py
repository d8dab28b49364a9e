"""
Account Store Module

Persistent account records: identity, credential digest, balance, running
inflow/outflow totals, the bounded activity log and pending password-reset
state. Accounts are created at registration and never hard-deleted.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
from enum import Enum
from contextlib import contextmanager
import threading
import weakref

from .storage import StorageInterface, StorageRecord
from .money import ZERO


class AccountRole(Enum):
    """Account roles"""
    USER = "user"
    ADMIN = "admin"


@dataclass
class ActivityEntry:
    """One line of the account activity log"""
    action: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, str]:
        return {"action": self.action, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> 'ActivityEntry':
        return cls(action=data['action'], timestamp=datetime.fromisoformat(data['timestamp']))


@dataclass
class Account(StorageRecord):
    """
    Bank customer account.

    ``balance`` always equals the sum of the signed amounts of the account's
    ledger entries; ``inflow_total`` and ``outflow_total`` only ever grow.
    ``reset_token_hash`` and ``reset_expires_at`` are set and cleared together.
    """
    account_number: str
    first_name: str
    last_name: str
    phone: str
    email: str
    email_key: str
    password_hash: str
    role: AccountRole = AccountRole.USER
    balance: Decimal = ZERO
    inflow_total: Decimal = ZERO
    outflow_total: Decimal = ZERO
    activity_log: List[ActivityEntry] = field(default_factory=list)
    reset_token_hash: Optional[str] = None
    reset_expires_at: Optional[datetime] = None
    entry_count: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @property
    def has_pending_reset(self) -> bool:
        return self.reset_token_hash is not None

    def record_activity(self, action: str, at: datetime, limit: int = 10) -> None:
        """Prepend an activity line, keeping only the most recent ``limit`` lines"""
        self.activity_log.insert(0, ActivityEntry(action=action, timestamp=at))
        del self.activity_log[limit:]

    def clear_reset(self) -> None:
        self.reset_token_hash = None
        self.reset_expires_at = None


class AccountLocks:
    """
    Per-account mutual exclusion.

    Every read-modify-write of an account runs while holding its lock, so
    mutations of one account are linearized while different accounts proceed
    independently. Acquire the account lock before opening a storage
    transaction, never the other way round.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # Entries disappear once no caller holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, account_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, account_id: str) -> Iterator[None]:
        lock = self._lock_for(account_id)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


class AccountStore:
    """Loads and saves accounts; enforces unique email and account number"""

    table = "accounts"

    def __init__(self, storage: StorageInterface, email_case_sensitive: bool = False):
        self.storage = storage
        self.email_case_sensitive = email_case_sensitive
        self.storage.register_unique(self.table, "email_key")
        self.storage.register_unique(self.table, "account_number")

    def email_key(self, email: str) -> str:
        """Lookup form of an email under the configured case policy"""
        email = email.strip()
        return email if self.email_case_sensitive else email.lower()

    def insert(self, account: Account) -> Account:
        """
        Persist a new account.

        Raises:
            UniqueConstraintError: if the email or account number is taken
        """
        self.storage.save(self.table, account.id, self._account_to_dict(account))
        return account

    def save(self, account: Account) -> None:
        self.storage.save(self.table, account.id, self._account_to_dict(account))

    def get(self, account_id: str) -> Optional[Account]:
        data = self.storage.load(self.table, account_id)
        if data:
            return self._account_from_dict(data)
        return None

    def get_by_email(self, email: str) -> Optional[Account]:
        return self._find_one({"email_key": self.email_key(email)})

    def get_by_number(self, account_number: str) -> Optional[Account]:
        return self._find_one({"account_number": account_number})

    def get_by_reset_token(self, token_hash: str) -> Optional[Account]:
        return self._find_one({"reset_token_hash": token_hash})

    def list_accounts(self, role: Optional[AccountRole] = None) -> List[Account]:
        if role:
            records = self.storage.find(self.table, {"role": role.value})
        else:
            records = self.storage.load_all(self.table)
        return [self._account_from_dict(data) for data in records]

    def _find_one(self, filters: Dict[str, str]) -> Optional[Account]:
        records = self.storage.find(self.table, filters)
        if records:
            return self._account_from_dict(records[0])
        return None

    def _account_to_dict(self, account: Account) -> Dict:
        result = account.to_dict()
        result['activity_log'] = [entry.to_dict() for entry in account.activity_log]
        return result

    def _account_from_dict(self, data: Dict) -> Account:
        reset_expires_at = None
        if data.get('reset_expires_at'):
            reset_expires_at = datetime.fromisoformat(data['reset_expires_at'])

        return Account(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            account_number=data['account_number'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            phone=data['phone'],
            email=data['email'],
            email_key=data['email_key'],
            password_hash=data['password_hash'],
            role=AccountRole(data.get('role', AccountRole.USER.value)),
            balance=Decimal(data['balance']),
            inflow_total=Decimal(data['inflow_total']),
            outflow_total=Decimal(data['outflow_total']),
            activity_log=[ActivityEntry.from_dict(e) for e in data.get('activity_log', [])],
            reset_token_hash=data.get('reset_token_hash'),
            reset_expires_at=reset_expires_at,
            entry_count=data.get('entry_count', 0)
        )
