"""Command line interface for the MicroLend client."""

import asyncio
import json
import logging
import sys
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import click
from rich.console import Console

from . import __version__
from .api_clients.loans_client import (
    LOAN_STATUSES,
    PaymentValidationError,
    filter_loans,
    prepare_payment,
    summarize_loans,
)
from .api_clients.network_error_handler import (
    PERMISSION_DENIED_MESSAGE,
    APIClientError,
    AuthenticationError,
    describe_error,
    error_details,
)
from .app import MicroLendApp
from .config import ClientConfig, load_config
from .display import (
    CUSTOMER_COLUMNS,
    EMPLOYEE_COLUMNS,
    LOAN_COLUMNS,
    TRANSACTION_COLUMNS,
    USER_COLUMNS,
    as_list,
    dashboard_table,
    loan_table,
    record_table,
    records_table,
    session_table,
    unwrap,
)
from .session.models import STAFF_ROLES, Role
from .session.notifications import ConsoleNotifier

logger = logging.getLogger(__name__)

console = Console()

AppAction = Callable[[MicroLendApp], Awaitable[Optional[int]]]


def run_async(coro):
    """Run a coroutine whether or not an event loop is already running."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Already inside a loop (e.g. called from async test code)
    result = None
    exception = None

    def run_in_new_loop():
        nonlocal result, exception
        try:
            result = asyncio.run(coro)
        except Exception as e:
            exception = e

    thread = threading.Thread(target=run_in_new_loop)
    thread.start()
    thread.join()

    if exception:
        raise exception
    return result


LOGIN_AGAIN_HINT = "Run 'microlend auth login' to sign in again"


def _load_client_config(ctx: click.Context) -> ClientConfig:
    try:
        config = load_config(ctx.obj.get("config_path"))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ Configuration error: {e}", style="red", markup=False)
        sys.exit(1)

    if not ctx.obj.get("verbose"):
        logging.getLogger("microlend").setLevel(config.logging_level)
    return config


def _build_app(config: ClientConfig) -> MicroLendApp:
    notifier = ConsoleNotifier()
    return MicroLendApp(
        config,
        notifier=notifier,
        on_session_expired=lambda: notifier.info(LOGIN_AGAIN_HINT),
    )


def _execute(
    ctx: click.Context,
    action: AppAction,
    roles: Optional[Sequence[Role]] = None,
    require_login: bool = True,
    validate_session: bool = True,
) -> None:
    """Run a command body against a started MicroLendApp.

    Args:
        ctx: Click context holding the global options
        action: Command body; a non-zero return value becomes the exit code
        roles: Roles allowed to run the command, None for any
        require_login: Refuse unless a session is held
        validate_session: Revalidate the persisted session before running
    """
    config = _load_client_config(ctx)

    async def runner() -> Optional[int]:
        app = _build_app(config)
        try:
            if validate_session:
                await app.start()
            if require_login and not app.session.is_authenticated:
                console.print("❌ Not logged in", style="red")
                console.print("💡 Run 'microlend auth login' first", style="dim")
                return 1
            if roles and not app.session.has_role(*roles):
                console.print(f"❌ {PERMISSION_DENIED_MESSAGE}", style="red")
                return 1
            return await action(app)
        finally:
            await app.close()

    try:
        exit_code = run_async(runner())
    except AuthenticationError:
        # Already reported by the 401 interceptor
        sys.exit(1)
    except APIClientError as e:
        logger.debug(f"Command failed: {error_details(e)}")
        console.print(f"❌ {describe_error(e)}", style="red", markup=False)
        if ctx.obj.get("verbose"):
            import traceback

            console.print(traceback.format_exc(), style="dim red", markup=False)
        sys.exit(1)
    except PaymentValidationError as e:
        console.print(f"❌ {e}", style="red", markup=False)
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _collect_data(data: Optional[str], fields: Sequence[str]) -> Dict[str, Any]:
    """Merge a JSON object from --data with key=value pairs from --field."""
    payload: Dict[str, Any] = {}
    if data:
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--data")
        if not isinstance(parsed, dict):
            raise click.BadParameter("Must be a JSON object", param_hint="--data")
        payload.update(parsed)

    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(
                f"Expected key=value, got {item!r}", param_hint="--field"
            )
        payload[key.strip()] = _parse_value(value)

    if not payload:
        raise click.UsageError("Provide record fields with --data or --field")
    return payload


def data_options(command_func):
    """Attach the --data/--field options used by create and update commands."""
    command_func = click.option(
        "--field",
        "-f",
        "fields",
        multiple=True,
        help="Record field as key=value (repeatable)",
    )(command_func)
    command_func = click.option(
        "--data", "-d", help="Record fields as a JSON object"
    )(command_func)
    return command_func


def _confirm_delete(what: str, yes: bool) -> None:
    """Ask before deleting; runs before any request is made."""
    if not yes:
        click.confirm(f"Delete {what}?", abort=True)


def _print_message(body: Any, fallback: str) -> None:
    message = body.get("message") if isinstance(body, dict) else None
    console.print(f"✅ {message or fallback}", style="green", markup=False)


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="microlend")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """MicroLend client: sessions, customers, loans and transactions.

    \b
    CONFIGURATION:
      Config file: ~/.microlend/config.json
      Environment: MICROLEND_API_URL, MICROLEND_API_TIMEOUT,
                   MICROLEND_LOG_LEVEL, MICROLEND_SESSION_DIR

    \b
    EXAMPLES:
      microlend auth login --phone "+31 615957803"
      microlend dashboard
      microlend loans list --status active --search Saraa
      microlend loans pay 12 --principle 250
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    # Suppress noisy third-party messages
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


# --------------------------------------------------------------------------
# auth
# --------------------------------------------------------------------------


@cli.group("auth")
@click.pass_context
def auth_group(ctx):
    """Login, signup and session commands."""
    pass


@auth_group.command("login")
@click.option("--phone", "-p", prompt="Phone number", help="Phone number")
@click.option(
    "--password", prompt=True, hide_input=True, help="Password for authentication"
)
@click.pass_context
def auth_login(ctx, phone: str, password: str):
    """Login with phone number and password.

    Examples:
        microlend auth login --phone "+31 615957803"
    """

    async def action(app: MicroLendApp) -> int:
        result = await app.session.login(phone.strip(), password)
        if not result.success:
            return 1
        user = app.session.current_user
        console.print(f"👤 {user.name or user.id} ({user.role.value})", style="dim")
        return 0

    _execute(ctx, action, require_login=False)


@auth_group.command("logout")
@click.pass_context
def auth_logout(ctx):
    """Clear the stored session. Works offline."""

    async def action(app: MicroLendApp) -> int:
        app.session.logout()
        console.print("✅ Logged out", style="green")
        return 0

    _execute(ctx, action, require_login=False, validate_session=False)


@auth_group.command("status")
@click.pass_context
def auth_status(ctx):
    """Show the current session after revalidating it with the server."""

    async def action(app: MicroLendApp) -> int:
        if not app.session.is_authenticated:
            console.print("🔒 Not logged in", style="yellow")
            return 0
        console.print(session_table(app.session))
        return 0

    _execute(ctx, action, require_login=False)


@auth_group.command("signup-code")
@click.option("--phone", "-p", prompt="Phone number", help="Phone number to verify")
@click.pass_context
def auth_signup_code(ctx, phone: str):
    """Request a signup verification code."""

    async def action(app: MicroLendApp) -> int:
        result = await app.session.request_verification_code({"phone": phone.strip()})
        return 0 if result.success else 1

    _execute(ctx, action, require_login=False, validate_session=False)


@auth_group.command("verify-code")
@click.option("--phone", "-p", prompt="Phone number", help="Phone number")
@click.option("--code", prompt="Verification code", help="Code received by SMS")
@click.pass_context
def auth_verify_code(ctx, phone: str, code: str):
    """Verify a signup code."""

    async def action(app: MicroLendApp) -> int:
        result = await app.session.verify_code(phone.strip(), code.strip())
        return 0 if result.success else 1

    _execute(ctx, action, require_login=False, validate_session=False)


@auth_group.command("create-password")
@click.option("--phone", "-p", prompt="Phone number", help="Verified phone number")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password for the new account",
)
@click.pass_context
def auth_create_password(ctx, phone: str, password: str):
    """Finish signup by setting a password; logs the new account in."""

    async def action(app: MicroLendApp) -> int:
        result = await app.session.create_password(phone.strip(), password)
        return 0 if result.success else 1

    _execute(ctx, action, require_login=False, validate_session=False)


@auth_group.command("change-password")
@click.option(
    "--current-password", prompt=True, hide_input=True, help="Current password"
)
@click.option(
    "--new-password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="New password",
)
@click.pass_context
def auth_change_password(ctx, current_password: str, new_password: str):
    """Change the password of the logged-in user."""

    async def action(app: MicroLendApp) -> int:
        body = await app.auth.change_password(
            {"current_password": current_password, "new_password": new_password}
        )
        _print_message(body, "Password changed successfully")
        return 0

    _execute(ctx, action)


# --------------------------------------------------------------------------
# profile
# --------------------------------------------------------------------------


@cli.group("profile")
@click.pass_context
def profile_group(ctx):
    """View and edit your own profile."""
    pass


@profile_group.command("show")
@click.pass_context
def profile_show(ctx):
    """Show your user record combined with your customer/employee record."""

    async def action(app: MicroLendApp) -> int:
        user = app.session.current_user.model_dump(mode="json")
        profile = await app.users.get_profile(user)
        console.print(record_table("Profile", profile))
        return 0

    _execute(ctx, action)


@profile_group.command("update")
@click.option("--name", help="Display name")
@click.option("--email", help="Email address")
@click.option("--phone", help="New phone number (requires --code)")
@click.option("--code", help="Verification code for the new phone number")
@click.option("--position", help="Position (employees)")
@click.option("--address", help="Address (customers)")
@click.pass_context
def profile_update(
    ctx,
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    code: Optional[str],
    position: Optional[str],
    address: Optional[str],
):
    """Update your profile.

    Changing the phone number requires a code sent with
    'microlend auth signup-code'.
    """
    changes = {
        "name": name,
        "email": email,
        "phone_number": phone,
        "position": position,
        "address": address,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise click.UsageError("Nothing to update")

    async def action(app: MicroLendApp) -> int:
        current = app.session.current_user
        if phone is not None and phone != current.phone_number:
            if not code:
                console.print(
                    "❌ Please verify your new phone number first", style="red"
                )
                console.print(
                    "💡 Request a code with 'microlend auth signup-code' "
                    "and pass it with --code",
                    style="dim",
                )
                return 1
            verification = await app.session.verify_code(phone, code)
            if not verification.success:
                return 1

        updated = await app.users.update_profile(
            current.model_dump(mode="json"), changes
        )
        app.session.update_identity(updated)
        console.print("✅ Profile updated successfully", style="green")
        return 0

    _execute(ctx, action)


# --------------------------------------------------------------------------
# customers
# --------------------------------------------------------------------------


@cli.group("customers")
@click.pass_context
def customers_group(ctx):
    """Customer records (staff only)."""
    pass


@customers_group.command("list")
@click.pass_context
def customers_list(ctx):
    """List all customers."""

    async def action(app: MicroLendApp) -> int:
        customers = as_list(await app.customers.list_customers(), "customers")
        console.print(records_table("Customers", customers, CUSTOMER_COLUMNS))
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@customers_group.command("show")
@click.argument("customer_id")
@click.pass_context
def customers_show(ctx, customer_id: str):
    """Show one customer."""

    async def action(app: MicroLendApp) -> int:
        customer = unwrap(await app.customers.get_customer(customer_id), "customer")
        console.print(record_table(f"Customer {customer_id}", customer))
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@customers_group.command("loans")
@click.argument("customer_id")
@click.pass_context
def customers_loans(ctx, customer_id: str):
    """List the loans of one customer."""

    async def action(app: MicroLendApp) -> int:
        loans = as_list(await app.customers.get_customer_loans(customer_id), "loans")
        title = f"Loans of customer {customer_id}"
        console.print(records_table(title, loans, LOAN_COLUMNS))
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@customers_group.command("create")
@data_options
@click.pass_context
def customers_create(ctx, data: Optional[str], fields: Tuple[str, ...]):
    """Create a customer."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.customers.create_customer(payload)
        _print_message(body, "Customer created successfully")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@customers_group.command("update")
@click.argument("customer_id")
@data_options
@click.pass_context
def customers_update(
    ctx, customer_id: str, data: Optional[str], fields: Tuple[str, ...]
):
    """Update a customer."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.customers.update_customer(customer_id, payload)
        _print_message(body, "Customer updated successfully")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@customers_group.command("delete")
@click.argument("customer_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def customers_delete(ctx, customer_id: str, yes: bool):
    """Delete a customer (admin only)."""
    _confirm_delete(f"customer {customer_id}", yes)

    async def action(app: MicroLendApp) -> int:
        body = await app.customers.delete_customer(customer_id)
        _print_message(body, "Customer deleted successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


# --------------------------------------------------------------------------
# employees
# --------------------------------------------------------------------------


@cli.group("employees")
@click.pass_context
def employees_group(ctx):
    """Employee records (admin only)."""
    pass


@employees_group.command("list")
@click.pass_context
def employees_list(ctx):
    """List all employees."""

    async def action(app: MicroLendApp) -> int:
        employees = as_list(await app.employees.list_employees(), "employees")
        console.print(records_table("Employees", employees, EMPLOYEE_COLUMNS))
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@employees_group.command("show")
@click.argument("employee_id")
@click.pass_context
def employees_show(ctx, employee_id: str):
    """Show one employee."""

    async def action(app: MicroLendApp) -> int:
        employee = unwrap(await app.employees.get_employee(employee_id), "employee")
        console.print(record_table(f"Employee {employee_id}", employee))
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@employees_group.command("create")
@data_options
@click.pass_context
def employees_create(ctx, data: Optional[str], fields: Tuple[str, ...]):
    """Create an employee."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.employees.create_employee(payload)
        _print_message(body, "Employee created successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@employees_group.command("update")
@click.argument("employee_id")
@data_options
@click.pass_context
def employees_update(
    ctx, employee_id: str, data: Optional[str], fields: Tuple[str, ...]
):
    """Update an employee."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.employees.update_employee(employee_id, payload)
        _print_message(body, "Employee updated successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@employees_group.command("delete")
@click.argument("employee_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def employees_delete(ctx, employee_id: str, yes: bool):
    """Delete an employee."""
    _confirm_delete(f"employee {employee_id}", yes)

    async def action(app: MicroLendApp) -> int:
        body = await app.employees.delete_employee(employee_id)
        _print_message(body, "Employee deleted successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


# --------------------------------------------------------------------------
# users
# --------------------------------------------------------------------------


@cli.group("users")
@click.pass_context
def users_group(ctx):
    """User accounts (admin only)."""
    pass


@users_group.command("list")
@click.pass_context
def users_list(ctx):
    """List all users."""

    async def action(app: MicroLendApp) -> int:
        users = as_list(await app.users.list_users(), "users")
        console.print(records_table("Users", users, USER_COLUMNS))
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@users_group.command("show")
@click.argument("user_id")
@click.pass_context
def users_show(ctx, user_id: str):
    """Show one user."""

    async def action(app: MicroLendApp) -> int:
        user = unwrap(await app.users.get_user(user_id), "user")
        console.print(record_table(f"User {user_id}", user))
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@users_group.command("create")
@data_options
@click.pass_context
def users_create(ctx, data: Optional[str], fields: Tuple[str, ...]):
    """Create a user (role, phone_number, email, password)."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.users.create_user(payload)
        _print_message(body, "User created successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@users_group.command("update")
@click.argument("user_id")
@data_options
@click.pass_context
def users_update(ctx, user_id: str, data: Optional[str], fields: Tuple[str, ...]):
    """Update a user."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.users.update_user(user_id, payload)
        _print_message(body, "User updated successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


@users_group.command("delete")
@click.argument("user_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def users_delete(ctx, user_id: str, yes: bool):
    """Delete a user."""
    _confirm_delete(f"user {user_id}", yes)

    async def action(app: MicroLendApp) -> int:
        body = await app.users.delete_user(user_id)
        _print_message(body, "User deleted successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


# --------------------------------------------------------------------------
# loans
# --------------------------------------------------------------------------


@cli.group("loans")
@click.pass_context
def loans_group(ctx):
    """Loans. Customers only see their own."""
    pass


async def _fetch_visible_loans(app: MicroLendApp) -> List[Dict[str, Any]]:
    """Customers get their own loans, staff get every loan."""
    user = app.session.current_user
    if user.role == Role.CUSTOMER:
        body = await app.customers.get_customer_loans(user.id)
    else:
        body = await app.loans.list_loans()
    return as_list(body, "loans")


@loans_group.command("list")
@click.option(
    "--status",
    type=click.Choice(("all",) + LOAN_STATUSES),
    default="all",
    show_default=True,
    help="Only show loans with this status",
)
@click.option("--search", "-s", help="Text to look for in amounts, dates and names")
@click.pass_context
def loans_list(ctx, status: str, search: Optional[str]):
    """List loans."""

    async def action(app: MicroLendApp) -> int:
        loans = filter_loans(await _fetch_visible_loans(app), status, search)
        if not loans:
            if search:
                console.print(f'No loans matching "{search}"', markup=False)
            elif status != "all":
                console.print(f'No loans with "{status}" status')
            else:
                console.print("There are no loans to display.")
            return 0

        title = "My loans" if app.session.has_role(Role.CUSTOMER) else "Loans"
        console.print(records_table(title, loans, LOAN_COLUMNS))
        return 0

    _execute(ctx, action)


@loans_group.command("show")
@click.argument("loan_id")
@click.pass_context
def loans_show(ctx, loan_id: str):
    """Show one loan with its server-computed figures."""

    async def action(app: MicroLendApp) -> int:
        loan = unwrap(await app.loans.get_loan(loan_id), "loan")
        console.print(loan_table(loan))
        return 0

    _execute(ctx, action)


@loans_group.command("create")
@data_options
@click.pass_context
def loans_create(ctx, data: Optional[str], fields: Tuple[str, ...]):
    """Create a loan."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.loans.create_loan(payload)
        _print_message(body, "Loan created successfully")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@loans_group.command("update")
@click.argument("loan_id")
@data_options
@click.pass_context
def loans_update(ctx, loan_id: str, data: Optional[str], fields: Tuple[str, ...]):
    """Update a loan."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.loans.update_loan(loan_id, payload)
        _print_message(body, "Loan updated successfully")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@loans_group.command("pay")
@click.argument("loan_id")
@click.option(
    "--principle",
    "principle_payment",
    default="0",
    show_default=True,
    help="Principal amount to pay; interest is always paid in full",
)
@click.pass_context
def loans_pay(ctx, loan_id: str, principle_payment: str):
    """Pay the outstanding interest plus an optional principal amount."""

    async def action(app: MicroLendApp) -> int:
        loan = unwrap(await app.loans.get_loan(loan_id), "loan")
        payment = prepare_payment(loan, principle_payment)
        body = await app.loans.make_payment(loan_id, payment)
        _print_message(body, "Payment processed successfully")
        return 0

    _execute(ctx, action)


@loans_group.command("extend")
@click.argument("loan_id")
@click.option("--days", type=click.IntRange(min=1), required=True, help="Extra days")
@click.pass_context
def loans_extend(ctx, loan_id: str, days: int):
    """Request a loan extension."""

    async def action(app: MicroLendApp) -> int:
        body = await app.loans.request_extension(loan_id, {"days": days})
        _print_message(body, "Extension requested successfully")
        return 0

    _execute(ctx, action)


@loans_group.command("process")
@click.argument("loan_id")
@click.option(
    "--decision",
    type=click.Choice(["approved", "rejected"]),
    required=True,
    help="Approve or reject the application",
)
@click.option("--notes", help="Notes stored with the decision")
@click.pass_context
def loans_process(ctx, loan_id: str, decision: str, notes: Optional[str]):
    """Approve or reject a loan application."""
    approval: Dict[str, Any] = {"decision": decision}
    if notes:
        approval["notes"] = notes

    async def action(app: MicroLendApp) -> int:
        body = await app.loans.process_loan_application(loan_id, approval)
        _print_message(body, f"Loan {decision}")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@loans_group.command("delete")
@click.argument("loan_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def loans_delete(ctx, loan_id: str, yes: bool):
    """Delete a loan (admin only)."""
    _confirm_delete(f"loan {loan_id}", yes)

    async def action(app: MicroLendApp) -> int:
        body = await app.loans.delete_loan(loan_id)
        _print_message(body, "Loan deleted successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


# --------------------------------------------------------------------------
# dashboard
# --------------------------------------------------------------------------


@cli.command("dashboard")
@click.pass_context
def dashboard(ctx):
    """Loan totals: your own loans, or every loan for staff."""

    async def action(app: MicroLendApp) -> int:
        metrics = summarize_loans(await _fetch_visible_loans(app))
        user = app.session.current_user
        console.print(dashboard_table(metrics, f"Welcome, {user.name or 'User'}"))
        if user.role == Role.CUSTOMER:
            console.print(
                "All your loans and payment information. "
                "Contact us if you have any questions about your loans.",
                style="dim",
            )
        else:
            console.print("System-wide loan and payment data.", style="dim")
        return 0

    _execute(ctx, action)


# --------------------------------------------------------------------------
# transactions
# --------------------------------------------------------------------------


@cli.group("transactions")
@click.pass_context
def transactions_group(ctx):
    """Transactions. Customers only see their own."""
    pass


@transactions_group.command("list")
@click.option("--loan", "loan_id", help="Only transactions of this loan (staff)")
@click.pass_context
def transactions_list(ctx, loan_id: Optional[str]):
    """List transactions."""

    async def action(app: MicroLendApp) -> int:
        user = app.session.current_user
        if user.role == Role.CUSTOMER:
            body = await app.transactions.list_customer_transactions(user.id)
            title = "My transactions"
        elif loan_id:
            body = await app.transactions.list_loan_transactions(loan_id)
            title = f"Transactions of loan {loan_id}"
        else:
            body = await app.transactions.list_transactions()
            title = "Transactions"
        transactions = as_list(body, "transactions")
        console.print(records_table(title, transactions, TRANSACTION_COLUMNS))
        return 0

    _execute(ctx, action)


@transactions_group.command("show")
@click.argument("transaction_id")
@click.pass_context
def transactions_show(ctx, transaction_id: str):
    """Show one transaction."""

    async def action(app: MicroLendApp) -> int:
        body = await app.transactions.get_transaction(transaction_id)
        transaction = unwrap(body, "transaction")
        console.print(record_table(f"Transaction {transaction_id}", transaction))
        return 0

    _execute(ctx, action)


@transactions_group.command("create")
@data_options
@click.pass_context
def transactions_create(ctx, data: Optional[str], fields: Tuple[str, ...]):
    """Record a transaction."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.transactions.create_transaction(payload)
        _print_message(body, "Transaction created successfully")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@transactions_group.command("update")
@click.argument("transaction_id")
@data_options
@click.pass_context
def transactions_update(
    ctx, transaction_id: str, data: Optional[str], fields: Tuple[str, ...]
):
    """Update a transaction."""
    payload = _collect_data(data, fields)

    async def action(app: MicroLendApp) -> int:
        body = await app.transactions.update_transaction(transaction_id, payload)
        _print_message(body, "Transaction updated successfully")
        return 0

    _execute(ctx, action, roles=STAFF_ROLES)


@transactions_group.command("delete")
@click.argument("transaction_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def transactions_delete(ctx, transaction_id: str, yes: bool):
    """Delete a transaction (admin only)."""
    _confirm_delete(f"transaction {transaction_id}", yes)

    async def action(app: MicroLendApp) -> int:
        body = await app.transactions.delete_transaction(transaction_id)
        _print_message(body, "Transaction deleted successfully")
        return 0

    _execute(ctx, action, roles=(Role.ADMIN,))


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n❌ Interrupted by user", style="red")
        sys.exit(1)
    except Exception as e:
        console.print(f"❌ Unexpected error: {str(e)}", style="red", markup=False)
        sys.exit(1)


if __name__ == "__main__":
    main()
