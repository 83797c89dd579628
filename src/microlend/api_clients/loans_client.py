"""Loans API Client.

Interest, overdue amounts and remaining days are computed by the server and
only passed through here. The one piece of client-side logic is the payment
form check in prepare_payment, which never derives amounts on its own.
"""

import logging
import re
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from .base_client import ResourceAPIClient
from .customers_client import RecordId

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")

# Everything except digits and the decimal point is dropped from entered amounts
NON_AMOUNT_CHARS = re.compile(r"[^\d.]")

LOAN_STATUSES = ("active", "paid", "defaulted")

LOAN_SEARCH_FIELDS = (
    "id",
    "loan_amount",
    "paid_amount",
    "principle_amount",
    "interest_amount",
    "overdue_amount",
    "total_amount",
    "current_status",
    "created_at",
    "start_date",
    "end_date",
    "default_date",
    "interest_rate",
    "overdue_rate",
    "loan_period",
    "waiting_days",
    "remaining_days",
    "interest_days",
    "overdue_days",
    "customer_name",
    "customer_id",
)


class PaymentValidationError(ValueError):
    """Raised when a payment form would be rejected before submission."""

    pass


@dataclass
class LoanPayment:
    """Payload for PUT /api/loans/{id}/payment."""

    principle_payment: float
    interest_payment: float
    customer_id: Optional[Any] = None

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


def _to_amount(value: Any) -> Decimal:
    """Parse a form/server amount; anything non-numeric counts as zero."""
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            return Decimal("0")
        return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0")


def _parse_entered_amount(value: Any) -> Decimal:
    """Parse an amount typed by the user.

    Currency symbols, separators and other stray characters are dropped, so
    "₮1,250.50" reads as 1250.50 and "12abc" as 12. Input without any digits
    counts as zero.

    Raises:
        PaymentValidationError: If the amount is negative or still not a
            number once stray characters are dropped
    """
    if value is None:
        return Decimal("0")

    text = str(value).strip()
    if text.startswith("-"):
        raise PaymentValidationError("Payment amount cannot be negative")

    digits = NON_AMOUNT_CHARS.sub("", text)
    if not digits.strip("."):
        return Decimal("0")

    try:
        amount = Decimal(digits)
    except InvalidOperation:
        raise PaymentValidationError(f"Invalid payment amount: {text}")
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def prepare_payment(loan: Dict[str, Any], principle_payment: Any) -> LoanPayment:
    """Build a payment for a loan record as returned by the server.

    Interest is always paid in full. The principal part may be partial but
    may not exceed the outstanding principal.

    Args:
        loan: Loan record with principle_amount, interest_amount, customer_id
        principle_payment: Principal amount entered by the user

    Returns:
        LoanPayment ready to submit

    Raises:
        PaymentValidationError: If the principal is negative or malformed,
            nothing would be paid, or the principal exceeds what is owed
    """
    principle = _parse_entered_amount(principle_payment)
    interest = _to_amount(loan.get("interest_amount"))

    if principle < 0:
        raise PaymentValidationError("Payment amount cannot be negative")

    if principle == 0 and interest == 0:
        raise PaymentValidationError("Please enter a payment amount")

    if principle > _to_amount(loan.get("principle_amount")):
        raise PaymentValidationError(
            "Principle payment cannot exceed the principle amount"
        )

    return LoanPayment(
        principle_payment=float(principle),
        interest_payment=float(interest),
        customer_id=loan.get("customer_id"),
    )


def _search_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).lower()


def filter_loans(
    loans: Iterable[Dict[str, Any]],
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Filter loan records already returned by the server.

    Args:
        loans: Loan records
        status: Keep only loans with this current_status; None or "all" keeps
            every status
        search: Case-insensitive text that must appear in one of the loan's
            amounts, rates, day counts, dates, status or customer fields

    Returns:
        Matching loans in their original order
    """
    needle = (search or "").strip().lower()
    matched = []
    for loan in loans:
        if status and status != "all" and loan.get("current_status") != status:
            continue
        if needle and not any(
            needle in _search_text(loan.get(field)) for field in LOAN_SEARCH_FIELDS
        ):
            continue
        matched.append(loan)
    return matched


@dataclass
class LoanMetrics:
    """Dashboard totals over a set of loan records."""

    total_loans: int = 0
    total_principle: float = 0.0
    total_interest_paid: float = 0.0
    total_principle_paid: float = 0.0


def summarize_loans(loans: Iterable[Dict[str, Any]]) -> LoanMetrics:
    """Sum the server-provided loan_amount, paid_interest and paid_amount.

    Missing or non-numeric values count as zero.
    """
    records = list(loans)
    return LoanMetrics(
        total_loans=len(records),
        total_principle=float(sum(_to_amount(r.get("loan_amount")) for r in records)),
        total_interest_paid=float(
            sum(_to_amount(r.get("paid_interest")) for r in records)
        ),
        total_principle_paid=float(
            sum(_to_amount(r.get("paid_amount")) for r in records)
        ),
    )


class LoansAPIClient(ResourceAPIClient):
    """Client for /api/loans. The server filters the listing by role."""

    async def list_loans(self) -> Dict[str, Any]:
        """Returns the server body, loans under the "loans" key."""
        return await self.api.get("/api/loans")

    async def get_loan(self, loan_id: RecordId) -> Dict[str, Any]:
        """Returns the server body, the loan under the "loan" key."""
        return await self.api.get(f"/api/loans/{loan_id}")

    async def create_loan(self, loan_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.api.post("/api/loans", json=loan_data)

    async def update_loan(
        self, loan_id: RecordId, loan_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.put(f"/api/loans/{loan_id}", json=loan_data)

    async def make_payment(
        self, loan_id: RecordId, payment: LoanPayment
    ) -> Dict[str, Any]:
        logger.info(
            f"Submitting payment on loan {loan_id}: "
            f"principle={payment.principle_payment} interest={payment.interest_payment}"
        )
        return await self.api.put(
            f"/api/loans/{loan_id}/payment", json=payment.to_payload()
        )

    async def request_extension(
        self, loan_id: RecordId, extension_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.post(
            f"/api/loans/{loan_id}/extension", json=extension_data
        )

    async def process_loan_application(
        self, loan_id: RecordId, approval_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Approve or reject a loan (staff only)."""
        return await self.api.post(f"/api/loans/{loan_id}/process", json=approval_data)

    async def delete_loan(self, loan_id: RecordId) -> Dict[str, Any]:
        return await self.api.delete(f"/api/loans/{loan_id}")
