"""
Pydantic schemas for API requests, and serializers for responses

JSON field names are camelCase in both directions.

Request fields are optional at the schema level so that a missing field is
reported by the services with the same message as a blank one.
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ..accounts import Account
from ..ledger import LedgerEntry
from ..loans import LoanRequest


class RegisterRequest(BaseModel):
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    phone: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    new_password: Optional[str] = Field(None, alias="newPassword")


class DepositRequest(BaseModel):
    amount: Any = None
    source: Optional[str] = None


class WithdrawRequest(BaseModel):
    amount: Any = None
    reason: Optional[str] = None


class AmountRequest(BaseModel):
    amount: Any = None


class LoanRequestBody(BaseModel):
    amount: Any = None
    reason: Optional[str] = None


def money(value: Decimal) -> str:
    return str(value)


def account_profile(account: Account) -> Dict[str, Any]:
    return {
        "id": account.id,
        "firstName": account.first_name,
        "lastName": account.last_name,
        "fullName": account.full_name,
        "email": account.email,
        "phone": account.phone,
        "role": account.role.value,
        "accountNumber": account.account_number,
        "balance": money(account.balance),
        "inflowTotal": money(account.inflow_total),
        "outflowTotal": money(account.outflow_total),
        "activityLog": [
            {"action": entry.action, "timestamp": entry.timestamp.isoformat()}
            for entry in account.activity_log
        ],
        "createdAt": account.created_at.isoformat()
    }


def ledger_entry(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "reference": entry.reference,
        "sequence": entry.sequence,
        "type": entry.kind.value,
        "amount": money(entry.amount),
        "description": entry.description,
        "balanceAfter": money(entry.balance_after),
        "status": entry.status.value,
        "createdAt": entry.created_at.isoformat()
    }


def loan_request(loan: LoanRequest) -> Dict[str, Any]:
    return {
        "id": loan.id,
        "user": loan.requester_id,
        "amount": money(loan.amount),
        "reason": loan.reason,
        "status": loan.status,
        "date": loan.created_at.isoformat()
    }
