"""
Loan request endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_banking_system, get_current_account
from .schemas import LoanRequestBody, loan_request
from ..accounts import Account
from ..system import BankingSystem


router = APIRouter()


@router.post("/loan-request", status_code=status.HTTP_201_CREATED)
def create_loan_request(
    request: LoanRequestBody,
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """Submit a loan request"""
    loan = system.loan_desk.submit(account.id, request.amount, request.reason)
    return {"message": "Loan request submitted", "loan": loan_request(loan)}


@router.get("")
def list_loan_requests(
    account: Account = Depends(get_current_account),
    system: BankingSystem = Depends(get_banking_system)
):
    """List loan requests received by this process"""
    return [loan_request(loan) for loan in system.loan_desk.list_requests()]
