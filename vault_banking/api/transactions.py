"""
Transaction endpoints
"""

from fastapi import APIRouter, Depends

from .dependencies import get_banking_system, get_current_account
from .schemas import DepositRequest, WithdrawRequest, ledger_entry, money
from ..accounts import Account
from ..money import format_amount
from ..system import BankingSystem


router = APIRouter()


@router.post("/deposit")
def deposit(
    request: DepositRequest,
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """Deposit funds (inflow)"""
    result = system.engine.deposit(account.id, request.amount, request.source)
    return {
        "message": f"Deposit of ${format_amount(result.entry.amount)} successful",
        "balance": money(result.new_balance),
        "inflowTotal": money(result.inflow_total),
        "outflowTotal": money(result.outflow_total),
        "transaction": ledger_entry(result.entry)
    }


@router.post("/withdraw")
def withdraw(
    request: WithdrawRequest,
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """Withdraw funds (outflow)"""
    result = system.engine.withdraw(account.id, request.amount, request.reason)
    return {
        "message": f"Withdrawal of ${format_amount(-result.entry.amount)} successful",
        "balance": money(result.new_balance),
        "inflowTotal": money(result.inflow_total),
        "outflowTotal": money(result.outflow_total),
        "transaction": ledger_entry(result.entry)
    }


@router.get("/balance")
def get_balance(
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get account balance and running totals"""
    summary = system.engine.get_balance(account.id)
    return {
        "message": "Balance fetched successfully",
        "name": summary.name,
        "balance": money(summary.balance),
        "inflowTotal": money(summary.inflow_total),
        "outflowTotal": money(summary.outflow_total)
    }


@router.get("/transactions")
def get_transactions(
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get transaction history, newest first"""
    entries = system.engine.list_transactions(account.id)
    return {
        "message": "Transactions fetched successfully",
        "count": len(entries),
        "transactions": [ledger_entry(entry) for entry in entries]
    }
