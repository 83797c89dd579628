"""Unit tests for the microlend command line interface.

Commands run through click's CliRunner against a mocked HTTP transport, with
the session persisted in a temporary directory.
"""

import json

import pytest
from click.testing import CliRunner

from microlend.api_clients.network_error_handler import (
    PERMISSION_DENIED_MESSAGE,
    SESSION_EXPIRED_MESSAGE,
)
from microlend.cli import cli
from microlend.session.storage import TOKEN_KEY, USER_KEY, FileSessionStore


@pytest.fixture
def session_dir(tmp_path):
    return tmp_path / "session"


@pytest.fixture
def cli_env(session_dir, api_url):
    return {"MICROLEND_API_URL": api_url, "MICROLEND_SESSION_DIR": str(session_dir)}


@pytest.fixture
def run(cli_env):
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(cli, list(args), env=cli_env, obj={}, **kwargs)

    return invoke


def _persist_session(session_dir, user, token="abc"):
    store = FileSessionStore(session_dir)
    store.set(TOKEN_KEY, token)
    store.set(USER_KEY, json.dumps(user))
    return store


def _accept_token(httpx_mock, api_url, user):
    httpx_mock.add_response(
        method="GET",
        url=f"{api_url}/auth/validate-token",
        json={"success": True, "user": user},
    )


class TestConfiguration:
    def test_missing_api_url_reported(self, tmp_path):
        result = CliRunner().invoke(
            cli,
            ["loans", "list"],
            env={"MICROLEND_SESSION_DIR": str(tmp_path)},
            obj={},
        )

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_help_needs_no_configuration(self):
        result = CliRunner().invoke(cli, ["loans", "--help"], obj={})

        assert result.exit_code == 0
        assert "pay" in result.output


class TestAuthCommands:
    def test_login_persists_session(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        httpx_mock.add_response(
            method="POST",
            url=f"{api_url}/auth/login",
            json={"success": True, "token": "abc", "user": customer_user},
        )

        result = run(
            "auth", "login", "--phone", "+31 615957803", "--password", "secret123"
        )

        assert result.exit_code == 0, result.output
        assert "Login successful!" in result.output
        assert FileSessionStore(session_dir).get(TOKEN_KEY) == "abc"

    def test_login_failure_exits_nonzero(self, run, session_dir, httpx_mock, api_url):
        httpx_mock.add_response(
            method="POST",
            url=f"{api_url}/auth/login",
            status_code=401,
            json={"message": "Invalid credentials"},
        )

        result = run("auth", "login", "--phone", "+31 615957803", "--password", "x")

        assert result.exit_code == 1
        assert result.output.count("Invalid credentials") == 1
        assert SESSION_EXPIRED_MESSAGE not in result.output
        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None

    def test_logout_is_offline(self, run, session_dir, httpx_mock, customer_user):
        _persist_session(session_dir, customer_user)

        result = run("auth", "logout")

        assert result.exit_code == 0
        assert "Logged out" in result.output
        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None
        assert FileSessionStore(session_dir).get(USER_KEY) is None
        assert httpx_mock.get_requests() == []

    def test_status_shows_user(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)

        result = run("auth", "status")

        assert result.exit_code == 0
        assert "customer" in result.output
        assert "authenticated" in result.output

    def test_status_when_logged_out(self, run, httpx_mock):
        result = run("auth", "status")

        assert result.exit_code == 0
        assert "Not logged in" in result.output
        assert httpx_mock.get_requests() == []

    def test_fixed_verification_code(self, run, httpx_mock):
        result = run(
            "auth", "verify-code", "--phone", "+31 615957803", "--code", "123456"
        )

        assert result.exit_code == 0
        assert "Phone verified successfully!" in result.output
        assert httpx_mock.get_requests() == []

    def test_signup_code_request(self, run, httpx_mock, api_url):
        httpx_mock.add_response(
            method="POST",
            url=f"{api_url}/auth/request-otp",
            json={"success": True},
        )

        result = run("auth", "signup-code", "--phone", "+31 615957803")

        assert result.exit_code == 0
        assert "Verification code sent!" in result.output
        assert json.loads(httpx_mock.get_request().content) == {
            "phone": "+31 615957803"
        }


class TestRoleGating:
    def test_not_logged_in_refused_without_request(self, run, httpx_mock):
        result = run("loans", "list")

        assert result.exit_code == 1
        assert "Not logged in" in result.output
        assert httpx_mock.get_requests() == []

    def test_customer_cannot_list_customers(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)

        result = run("customers", "list")

        assert result.exit_code == 1
        assert PERMISSION_DENIED_MESSAGE in result.output
        assert len(httpx_mock.get_requests()) == 1

    def test_employee_cannot_delete_loan(
        self, run, session_dir, httpx_mock, api_url
    ):
        employee = {"id": 4, "role": "employee", "name": "Tuya"}
        _persist_session(session_dir, employee)
        _accept_token(httpx_mock, api_url, employee)

        result = run("loans", "delete", "12", "--yes")

        assert result.exit_code == 1
        assert PERMISSION_DENIED_MESSAGE in result.output

    def test_admin_lists_customers(
        self, run, session_dir, httpx_mock, api_url, admin_user
    ):
        _persist_session(session_dir, admin_user)
        _accept_token(httpx_mock, api_url, admin_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/customers",
            json={"customers": [{"id": 1, "first_name": "Saraa"}]},
        )

        result = run("customers", "list")

        assert result.exit_code == 0, result.output
        assert "Saraa" in result.output


class TestLoanCommands:
    def test_customer_sees_own_loans(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/customers/7/loans",
            json={"loans": [{"id": 12, "current_status": "active"}]},
        )

        result = run("loans", "list")

        assert result.exit_code == 0, result.output
        assert "active" in result.output

    def test_payment_submitted(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/loans/12",
            json={
                "loan": {
                    "id": 12,
                    "customer_id": 7,
                    "principle_amount": 1000,
                    "interest_amount": 45.5,
                }
            },
        )
        httpx_mock.add_response(
            method="PUT",
            url=f"{api_url}/api/loans/12/payment",
            json={"message": "Payment processed"},
        )

        result = run("loans", "pay", "12", "--principle", "100")

        assert result.exit_code == 0, result.output
        assert "Payment processed" in result.output
        payment_request = httpx_mock.get_requests()[-1]
        assert json.loads(payment_request.content) == {
            "principle_payment": 100.0,
            "interest_payment": 45.5,
            "customer_id": 7,
        }

    def test_overpayment_refused_before_submission(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/loans/12",
            json={"loan": {"id": 12, "principle_amount": 50, "interest_amount": 5}},
        )

        result = run("loans", "pay", "12", "--principle", "60")

        assert result.exit_code == 1
        assert "cannot exceed the principle amount" in result.output
        assert [r.method for r in httpx_mock.get_requests()] == ["GET", "GET"]

    def test_negative_payment_refused_before_submission(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/loans/12",
            json={"loan": {"id": 12, "principle_amount": 1000, "interest_amount": 25}},
        )

        result = run("loans", "pay", "12", "--principle=-500")

        assert result.exit_code == 1
        assert "cannot be negative" in result.output
        assert [r.method for r in httpx_mock.get_requests()] == ["GET", "GET"]

    def test_list_filtered_by_status_and_search(
        self, run, session_dir, httpx_mock, api_url, admin_user
    ):
        _persist_session(session_dir, admin_user)
        _accept_token(httpx_mock, api_url, admin_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/loans",
            json={
                "loans": [
                    {"id": 1, "customer_name": "Saraa", "current_status": "active"},
                    {"id": 2, "customer_name": "Saraa", "current_status": "paid"},
                    {"id": 3, "customer_name": "Dorj", "current_status": "active"},
                ]
            },
        )

        result = run("loans", "list", "--status", "active", "--search", "saraa")

        assert result.exit_code == 0, result.output
        assert "Saraa" in result.output
        assert "Dorj" not in result.output
        assert "paid" not in result.output

    def test_list_reports_when_nothing_matches(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/customers/7/loans",
            json={"loans": [{"id": 12, "current_status": "active"}]},
        )

        result = run("loans", "list", "--status", "defaulted")

        assert result.exit_code == 0, result.output
        assert 'No loans with "defaulted" status' in result.output

    def test_unknown_status_rejected(self, run, httpx_mock):
        result = run("loans", "list", "--status", "overdue")

        assert result.exit_code == 2
        assert httpx_mock.get_requests() == []

    def test_declined_delete_makes_no_request(
        self, run, session_dir, httpx_mock, admin_user
    ):
        _persist_session(session_dir, admin_user)

        result = run("loans", "delete", "12", input="n\n")

        assert result.exit_code == 1
        assert "Delete loan 12?" in result.output
        assert httpx_mock.get_requests() == []

    def test_expired_session_during_command(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET", url=f"{api_url}/api/customers/7/loans", status_code=401
        )

        result = run("loans", "list")

        assert result.exit_code == 1
        assert result.output.count(SESSION_EXPIRED_MESSAGE) == 1
        assert "microlend auth login" in result.output
        assert "💡 Run 'microlend auth login' to sign in again" in result.output
        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None

    def test_server_error_reported_once(
        self, run, session_dir, httpx_mock, api_url, admin_user
    ):
        _persist_session(session_dir, admin_user)
        _accept_token(httpx_mock, api_url, admin_user)
        httpx_mock.add_response(
            method="GET", url=f"{api_url}/api/loans", status_code=500
        )

        result = run("loans", "list")

        assert result.exit_code == 1
        assert result.output.count("Server error. Please try again later.") == 1


class TestDashboard:
    def test_customer_totals_own_loans(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/api/customers/7/loans",
            json={
                "loans": [
                    {"loan_amount": 1000, "paid_interest": 45.5, "paid_amount": 200},
                    {"loan_amount": "500.50", "paid_interest": None},
                ]
            },
        )

        result = run("dashboard")

        assert result.exit_code == 0, result.output
        assert "Welcome, Bat-Erdene" in result.output
        assert "₮1,500.50" in result.output
        assert "₮45.50" in result.output
        assert "₮200.00" in result.output
        assert "your loans" in result.output

    def test_staff_totals_all_loans(
        self, run, session_dir, httpx_mock, api_url, admin_user
    ):
        _persist_session(session_dir, admin_user)
        _accept_token(httpx_mock, api_url, admin_user)
        httpx_mock.add_response(
            method="GET", url=f"{api_url}/api/loans", json={"loans": []}
        )

        result = run("dashboard")

        assert result.exit_code == 0, result.output
        assert "Total Loans" in result.output
        assert "₮0.00" in result.output
        assert "System-wide" in result.output

    def test_requires_login(self, run, httpx_mock):
        result = run("dashboard")

        assert result.exit_code == 1
        assert "Not logged in" in result.output
        assert httpx_mock.get_requests() == []


class TestRecordCommands:
    def test_create_merges_data_and_fields(
        self, run, session_dir, httpx_mock, api_url, admin_user
    ):
        _persist_session(session_dir, admin_user)
        _accept_token(httpx_mock, api_url, admin_user)
        httpx_mock.add_response(
            method="POST",
            url=f"{api_url}/api/customers",
            json={"message": "Customer created"},
        )

        result = run(
            "customers",
            "create",
            "--data",
            '{"first_name": "Saraa", "is_active": true}',
            "-f",
            "last_name=Bold",
            "-f",
            "age=31",
        )

        assert result.exit_code == 0, result.output
        assert "Customer created" in result.output
        assert json.loads(httpx_mock.get_requests()[-1].content) == {
            "first_name": "Saraa",
            "is_active": True,
            "last_name": "Bold",
            "age": 31,
        }

    def test_create_without_fields_is_usage_error(self, run, httpx_mock):
        result = run("customers", "create")

        assert result.exit_code == 2
        assert httpx_mock.get_requests() == []

    def test_malformed_field_rejected(self, run, httpx_mock):
        result = run("transactions", "create", "-f", "no-equals-sign")

        assert result.exit_code == 2
        assert "key=value" in result.output

    def test_admin_deletes_transaction(
        self, run, session_dir, httpx_mock, api_url, admin_user
    ):
        _persist_session(session_dir, admin_user)
        _accept_token(httpx_mock, api_url, admin_user)
        httpx_mock.add_response(
            method="DELETE", url=f"{api_url}/api/transactions/5", json={}
        )

        result = run("transactions", "delete", "5", "--yes")

        assert result.exit_code == 0, result.output
        assert "Transaction deleted successfully" in result.output


class TestProfileCommands:
    def test_phone_change_requires_code(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)

        result = run("profile", "update", "--phone", "+31 699999999")

        assert result.exit_code == 1
        assert "verify your new phone number" in result.output
        assert len(httpx_mock.get_requests()) == 1

    def test_email_update_refreshes_session(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="PUT",
            url=f"{api_url}/api/users/7",
            json={"id": 7, "email": "new@example.com"},
        )

        result = run("profile", "update", "--email", "new@example.com")

        assert result.exit_code == 0, result.output
        stored = json.loads(FileSessionStore(session_dir).get(USER_KEY))
        assert stored["email"] == "new@example.com"
        assert stored["role"] == "customer"
        assert stored["id"] == 7

    def test_phone_change_with_fixed_code(
        self, run, session_dir, httpx_mock, api_url, customer_user
    ):
        _persist_session(session_dir, customer_user)
        _accept_token(httpx_mock, api_url, customer_user)
        httpx_mock.add_response(
            method="PUT",
            url=f"{api_url}/api/users/7",
            json={"id": 7, "phone_number": "+31 699999999"},
        )

        result = run(
            "profile", "update", "--phone", "+31 699999999", "--code", "123456"
        )

        assert result.exit_code == 0, result.output
        stored = json.loads(FileSessionStore(session_dir).get(USER_KEY))
        assert stored["phone_number"] == "+31 699999999"
