"""
Request dependencies: banking system lookup, session authentication and the
admin role check
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..accounts import Account
from ..exceptions import AdminRequired, AuthenticationError
from ..system import BankingSystem


security = HTTPBearer(auto_error=False)


def get_banking_system(request: Request) -> BankingSystem:
    return request.app.state.system


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: BankingSystem = Depends(get_banking_system)
) -> Account:
    """Dependency that validates the bearer token and returns its account"""
    if not credentials:
        raise AuthenticationError("Not authorized, no token")
    return system.identity.authenticate(credentials.credentials)


def require_admin(account: Account = Depends(get_current_account)) -> Account:
    if not account.is_admin:
        raise AdminRequired()
    return account
