"""
Loan Request Module

Accepts loan requests and keeps them for the lifetime of the process. Loan
requests are not persisted and have no approval workflow.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional
import threading
import uuid

from .money import parse_amount
from .exceptions import MissingFields
from .logging_config import get_logger, log_action


@dataclass
class LoanRequest:
    id: str
    requester_id: str
    amount: Decimal
    reason: str
    created_at: datetime
    status: str = "Pending"


@dataclass
class LoanDesk:
    """In-process collector of loan requests"""
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))
    _requests: List[LoanRequest] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def submit(self, requester_id: str, amount: Any, reason: Optional[str]) -> LoanRequest:
        if amount is None or amount == "" or not reason or not reason.strip():
            raise MissingFields("Please provide all required fields")

        loan = LoanRequest(
            id=str(uuid.uuid4()),
            requester_id=requester_id,
            amount=parse_amount(amount),
            reason=reason.strip(),
            created_at=self.clock()
        )
        with self._lock:
            self._requests.append(loan)

        log_action(get_logger("vault.loans"), "info", "Loan request submitted",
                   user_id=requester_id, action="loan_request", resource=loan.id,
                   extra={"amount": str(loan.amount)})
        return loan

    def list_requests(self) -> List[LoanRequest]:
        with self._lock:
            return list(self._requests)
