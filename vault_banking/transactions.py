"""
Balance Mutation Module

Applies deposits and withdrawals to an account. Each mutation updates the
balance and the matching running total, appends a ledger entry carrying the
resulting balance, and records the operation in the account's activity log.

A mutation runs under the account's lock and inside one storage transaction,
so concurrent requests against the same account cannot lose updates and the
account and its new ledger entry are persisted together or not at all.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
import uuid

from .storage import StorageInterface
from .accounts import AccountStore, AccountLocks
from .ledger import TransactionLedger, LedgerEntry, EntryKind, EntryStatus
from .money import MAX_AMOUNT, exact_add, format_amount, parse_amount
from .exceptions import (
    AccountNotFound, AdminRequired, InsufficientFunds, NoTransactions, ValidationError
)
from .logging_config import get_logger, log_action


@dataclass
class MutationResult:
    """Outcome of a successful balance mutation"""
    new_balance: Decimal
    inflow_total: Decimal
    outflow_total: Decimal
    entry: LedgerEntry


@dataclass
class BalanceSummary:
    """Read-only balance view"""
    name: str
    balance: Decimal
    inflow_total: Decimal
    outflow_total: Decimal


class BalanceMutationEngine:
    """
    Applies balance-affecting operations and answers balance queries
    """

    def __init__(
        self,
        storage: StorageInterface,
        accounts: AccountStore,
        ledger: TransactionLedger,
        locks: AccountLocks,
        activity_log_limit: int = 10,
        empty_transactions_is_error: bool = True,
        max_amount: Decimal = MAX_AMOUNT,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.storage = storage
        self.accounts = accounts
        self.ledger = ledger
        self.locks = locks
        self.activity_log_limit = activity_log_limit
        self.empty_transactions_is_error = empty_transactions_is_error
        self.max_amount = max_amount
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger("vault.transactions")

    def apply_transaction(
        self,
        account_id: str,
        kind: EntryKind,
        amount: Any,
        label: str
    ) -> MutationResult:
        """
        Apply a deposit or withdrawal

        Args:
            account_id: ID of the account to mutate
            kind: EntryKind.DEPOSIT or EntryKind.WITHDRAWAL
            amount: Positive amount; strings and numbers are accepted
            label: Source (deposits) or reason (withdrawals) stored on the entry

        Returns:
            MutationResult with the new balance, totals and created entry

        Raises:
            InvalidAmount: amount missing, non-numeric, non-finite, not positive,
                above the configured maximum, or the new balance cannot be held exactly
            AccountNotFound: no account with this ID
            InsufficientFunds: withdrawal larger than the current balance
        """
        if kind not in (EntryKind.DEPOSIT, EntryKind.WITHDRAWAL):
            raise ValidationError(f"Unsupported operation: {kind.value}")

        value = parse_amount(amount, self.max_amount)

        with self.locks.hold(account_id):
            with self.storage.atomic():
                # Load inside the boundary; state read earlier may be stale
                account = self.accounts.get(account_id)
                if not account:
                    raise AccountNotFound()

                if kind == EntryKind.WITHDRAWAL and value > account.balance:
                    log_action(
                        self.logger, "info", "Withdrawal rejected: insufficient balance",
                        user_id=account_id, action="withdrawal_rejected",
                        extra={"amount": str(value)}
                    )
                    raise InsufficientFunds()

                # New values are computed before the account is touched
                if kind == EntryKind.DEPOSIT:
                    signed_amount = value
                    inflow_total = exact_add(account.inflow_total, value)
                    outflow_total = account.outflow_total
                    action = f"Deposited ${format_amount(value)}"
                else:
                    signed_amount = -value
                    inflow_total = account.inflow_total
                    outflow_total = exact_add(account.outflow_total, value)
                    action = f"Withdrew ${format_amount(value)}"
                new_balance = exact_add(account.balance, signed_amount)

                now = self._clock()
                account.balance = new_balance
                account.inflow_total = inflow_total
                account.outflow_total = outflow_total

                account.entry_count += 1
                entry_id = str(uuid.uuid4())
                entry = LedgerEntry(
                    id=entry_id,
                    created_at=now,
                    updated_at=now,
                    account_id=account.id,
                    reference=f"{kind.value.upper()}-{entry_id[:8]}",
                    sequence=account.entry_count,
                    kind=kind,
                    amount=signed_amount,
                    description=label,
                    balance_after=account.balance,
                    status=EntryStatus.SUCCESSFUL
                )

                account.record_activity(action, now, self.activity_log_limit)
                account.updated_at = now

                self.ledger.append(entry)
                self.accounts.save(account)

        log_action(
            self.logger, "info", f"{kind.value.capitalize()} applied",
            user_id=account_id, action=kind.value, resource=entry.id,
            extra={"amount": str(value), "balance_after": str(entry.balance_after)}
        )

        return MutationResult(
            new_balance=entry.balance_after,
            inflow_total=account.inflow_total,
            outflow_total=account.outflow_total,
            entry=entry
        )

    def deposit(self, account_id: str, amount: Any, source: Optional[str] = None) -> MutationResult:
        """Convenience method for deposits"""
        return self.apply_transaction(account_id, EntryKind.DEPOSIT, amount, source or "Deposit")

    def withdraw(self, account_id: str, amount: Any, reason: Optional[str] = None) -> MutationResult:
        """Convenience method for withdrawals"""
        return self.apply_transaction(account_id, EntryKind.WITHDRAWAL, amount, reason or "Withdrawal")

    def admin_credit(self, actor_id: str, account_id: str, amount: Any) -> MutationResult:
        """Credit an account on behalf of an administrator"""
        actor = self.accounts.get(actor_id)
        if not actor or not actor.is_admin:
            raise AdminRequired()

        result = self.apply_transaction(account_id, EntryKind.DEPOSIT, amount, "Admin credit")
        log_action(
            self.logger, "info", "Admin credit applied",
            user_id=actor_id, action="admin_credit", resource=account_id,
            extra={"amount": str(result.entry.amount)}
        )
        return result

    def get_balance(self, account_id: str) -> BalanceSummary:
        """Read the current balance and totals (no lock; may be momentarily stale)"""
        account = self.accounts.get(account_id)
        if not account:
            raise AccountNotFound()
        return BalanceSummary(
            name=account.full_name,
            balance=account.balance,
            inflow_total=account.inflow_total,
            outflow_total=account.outflow_total
        )

    def list_transactions(self, account_id: str) -> List[LedgerEntry]:
        """
        Ledger entries for an account, newest first

        Raises:
            AccountNotFound: no account with this ID
            NoTransactions: the account has no entries and empty lists are
                configured to be reported as an error
        """
        if not self.accounts.get(account_id):
            raise AccountNotFound()
        entries = self.ledger.list_for_account(account_id)
        if not entries and self.empty_transactions_is_error:
            raise NoTransactions()
        return entries
