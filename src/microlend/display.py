"""Rich rendering of lending records.

Records are displayed exactly as the server returns them; derived loan
figures (interest, overdue amounts, remaining days) are never recomputed.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rich.markup import escape
from rich.table import Table

from .api_clients.loans_client import LoanMetrics
from .session.manager import SessionManager

Column = Tuple[str, str]  # (record key, header)

CUSTOMER_COLUMNS: Sequence[Column] = (
    ("id", "ID"),
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("phone_number", "Phone"),
    ("email", "Email"),
    ("is_active", "Active"),
)

EMPLOYEE_COLUMNS: Sequence[Column] = (
    ("id", "ID"),
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("position", "Position"),
    ("email", "Email"),
)

USER_COLUMNS: Sequence[Column] = (
    ("id", "ID"),
    ("name", "Name"),
    ("role", "Role"),
    ("phone_number", "Phone"),
    ("email", "Email"),
)

LOAN_COLUMNS: Sequence[Column] = (
    ("id", "ID"),
    ("customer_name", "Customer"),
    ("loan_amount", "Loan"),
    ("principle_amount", "Principle"),
    ("interest_amount", "Interest"),
    ("overdue_amount", "Overdue"),
    ("remaining_days", "Days left"),
    ("current_status", "Status"),
)

TRANSACTION_COLUMNS: Sequence[Column] = (
    ("id", "ID"),
    ("loan_id", "Loan"),
    ("customer_id", "Customer"),
    ("transaction_purpose", "Purpose"),
    ("transaction_direction", "Direction"),
    ("transaction_amount", "Amount"),
    ("created_at", "Date"),
)

CURRENCY_FIELDS = frozenset(
    {
        "loan_amount",
        "principle_amount",
        "interest_amount",
        "overdue_amount",
        "paid_amount",
        "paid_interest",
        "total_amount",
        "transaction_amount",
    }
)

LOAN_DETAIL_FIELDS = (
    "id",
    "customer_id",
    "customer_name",
    "current_status",
    "loan_amount",
    "principle_amount",
    "interest_rate",
    "interest_days",
    "interest_amount",
    "overdue_rate",
    "overdue_days",
    "overdue_amount",
    "paid_amount",
    "paid_interest",
    "total_amount",
    "loan_period",
    "remaining_days",
    "start_date",
    "end_date",
    "default_date",
)


def format_currency(amount: Any) -> str:
    """Format an amount the way the lending screens show it."""
    if amount is None or amount == "":
        return "₮0.00"
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return str(amount)
    return f"₮{value:,.2f}"


def format_value(key: str, value: Any) -> str:
    if key in CURRENCY_FIELDS:
        return format_currency(value)
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def unwrap(body: Any, key: str) -> Any:
    """Pull a collection or record out of a server body like {"loans": [...]}."""
    if isinstance(body, dict) and key in body:
        return body[key]
    return body


def as_list(body: Any, key: str) -> List[Dict[str, Any]]:
    records = unwrap(body, key)
    if isinstance(records, list):
        return [r for r in records if isinstance(r, dict)]
    return []


def records_table(
    title: str, records: Iterable[Dict[str, Any]], columns: Sequence[Column]
) -> Table:
    table = Table(title=title, show_lines=False)
    for _, header in columns:
        table.add_column(header)
    for record in records:
        table.add_row(
            *(escape(format_value(key, record.get(key))) for key, _ in columns)
        )
    return table


def record_table(
    title: str, record: Dict[str, Any], fields: Optional[Sequence[str]] = None
) -> Table:
    """Two-column field/value view of a single record."""
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    keys = [k for k in fields if k in record] if fields else sorted(record)
    for key in keys:
        table.add_row(escape(key), escape(format_value(key, record.get(key))))
    return table


def loan_table(loan: Dict[str, Any]) -> Table:
    return record_table(f"Loan {loan.get('id', '')}", loan, LOAN_DETAIL_FIELDS)


def session_table(session: SessionManager) -> Table:
    table = Table(title="Session", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("state", session.state.value)
    user = session.current_user
    if user is not None:
        table.add_row("id", str(user.id))
        table.add_row("role", user.role.value)
        table.add_row("name", escape(user.name or "-"))
        table.add_row("email", escape(user.email or "-"))
        table.add_row("phone_number", user.phone_number or "-")
    return table


def dashboard_table(metrics: LoanMetrics, title: str = "Dashboard") -> Table:
    table = Table(title=escape(title), show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total Loans", str(metrics.total_loans))
    table.add_row("Total Principle", format_currency(metrics.total_principle))
    table.add_row("Interest Paid", format_currency(metrics.total_interest_paid))
    table.add_row("Principle Paid", format_currency(metrics.total_principle_paid))
    return table
