"""
Transaction Ledger Module

Append-only record of every balance-affecting operation. Each entry belongs to
exactly one account and captures the balance right after it was applied.
Entries are never edited once written.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Dict, List, Optional
from enum import Enum

from .storage import StorageInterface, StorageRecord
from .exceptions import LedgerAppendError


class EntryKind(Enum):
    """Kinds of ledger entry"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"  # Reserved; no operation writes transfers yet


class EntryStatus(Enum):
    """Lifecycle status of a ledger entry.

    Entries are applied synchronously, so only SUCCESSFUL is ever written.
    """
    PENDING = "Pending"
    PROCESSING = "Processing"
    SUCCESSFUL = "Successful"
    FAILED = "Failed"


@dataclass
class LedgerEntry(StorageRecord):
    """
    One immutable balance-affecting operation.

    ``amount`` is signed: positive for deposits, negative for withdrawals.
    ``sequence`` orders entries within an account (1, 2, 3, ...).
    """
    account_id: str
    reference: str
    sequence: int
    kind: EntryKind
    amount: Decimal
    description: str
    balance_after: Decimal
    status: EntryStatus = EntryStatus.SUCCESSFUL


class TransactionLedger:
    """Append-only store of ledger entries"""

    table = "ledger_entries"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def append(self, entry: LedgerEntry) -> LedgerEntry:
        if self.storage.exists(self.table, entry.id):
            raise LedgerAppendError(f"Ledger entry {entry.id} already exists")
        self.storage.save(self.table, entry.id, self._entry_to_dict(entry))
        return entry

    def get(self, entry_id: str) -> Optional[LedgerEntry]:
        data = self.storage.load(self.table, entry_id)
        if data:
            return self._entry_from_dict(data)
        return None

    def list_for_account(self, account_id: str) -> List[LedgerEntry]:
        """All entries for an account, newest first"""
        records = self.storage.find(self.table, {"account_id": account_id})
        entries = [self._entry_from_dict(data) for data in records]
        entries.sort(key=lambda e: e.sequence, reverse=True)
        return entries

    def count_for_account(self, account_id: str) -> int:
        return len(self.storage.find(self.table, {"account_id": account_id}))

    def _entry_to_dict(self, entry: LedgerEntry) -> Dict:
        return entry.to_dict()

    def _entry_from_dict(self, data: Dict) -> LedgerEntry:
        return LedgerEntry(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            account_id=data['account_id'],
            reference=data['reference'],
            sequence=data['sequence'],
            kind=EntryKind(data['kind']),
            amount=Decimal(data['amount']),
            description=data['description'],
            balance_after=Decimal(data['balance_after']),
            status=EntryStatus(data['status'])
        )
