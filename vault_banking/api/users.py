"""
User endpoints: registration, login, password reset, profile and admin tools
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_banking_system, get_current_account, require_admin
from .schemas import (
    RegisterRequest, LoginRequest, ForgotPasswordRequest, ResetPasswordRequest,
    AmountRequest, account_profile, ledger_entry, money
)
from ..accounts import Account
from ..system import BankingSystem


router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    system: BankingSystem = Depends(get_banking_system)
):
    """Register a new account and return it with a session token"""
    account = system.identity.register(
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
        email=request.email,
        secret=request.password
    )
    return {**account_profile(account), "token": system.identity.issue_token(account)}


@router.post("/login")
def login(
    request: LoginRequest,
    system: BankingSystem = Depends(get_banking_system)
):
    """Log in with email and password"""
    session = system.identity.login(request.email, request.password)
    return {**account_profile(session.account), "token": session.token}


@router.post("/forgot-password")
def forgot_password(
    request: ForgotPasswordRequest,
    system: BankingSystem = Depends(get_banking_system)
):
    """Email a password reset link"""
    system.password_reset.request_reset(request.email)
    return {"message": "Password reset link sent to your email"}


@router.post("/reset-password/{token}")
def reset_password(
    token: str,
    request: ResetPasswordRequest,
    system: BankingSystem = Depends(get_banking_system)
):
    """Set a new password using a reset token"""
    system.password_reset.resolve_reset(token, request.new_password)
    return {"message": "Password reset successful"}


@router.get("/profile")
def get_profile(
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get the caller's profile"""
    return account_profile(system.identity.get_profile(account.id))


@router.get("")
def list_users(
    admin: Account = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    """List customer accounts (admin only)"""
    return [
        {
            "id": user.id,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "email": user.email,
            "balance": money(user.balance)
        }
        for user in system.identity.list_users()
    ]


@router.put("/{account_id}/increase-balance")
def increase_balance(
    account_id: str,
    request: AmountRequest,
    admin: Account = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    """Credit a customer's balance (admin only)"""
    result = system.engine.admin_credit(admin.id, account_id, request.amount)
    return {
        "message": "Balance updated",
        "balance": money(result.new_balance),
        "transaction": ledger_entry(result.entry)
    }
