"""API Client Abstractions for the MicroLend REST API.

All HTTP calls go through one shared MicroLendAPIClient so that the session's
Authorization header and response hooks apply to every request.
"""

from .base_client import MicroLendAPIClient, ResourceAPIClient
from .network_error_handler import (
    APIClientError,
    AuthenticationError,
    DNSResolutionError,
    NetworkConnectionError,
    NetworkError,
    NetworkTimeoutError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    SSLCertificateError,
    describe_error,
)
from .auth_client import AuthAPIClient
from .customers_client import CustomersAPIClient
from .employees_client import EmployeesAPIClient
from .loans_client import (
    LoanMetrics,
    LoanPayment,
    LoansAPIClient,
    PaymentValidationError,
    filter_loans,
    prepare_payment,
    summarize_loans,
)
from .transactions_client import TransactionsAPIClient
from .users_client import UsersAPIClient

__all__ = [
    # Base client
    "MicroLendAPIClient",
    "ResourceAPIClient",
    # Errors
    "APIClientError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ServerError",
    "NetworkError",
    "NetworkConnectionError",
    "NetworkTimeoutError",
    "DNSResolutionError",
    "SSLCertificateError",
    "describe_error",
    # Endpoint clients
    "AuthAPIClient",
    "CustomersAPIClient",
    "EmployeesAPIClient",
    "UsersAPIClient",
    "LoansAPIClient",
    "TransactionsAPIClient",
    # Payments and loan views
    "LoanPayment",
    "PaymentValidationError",
    "prepare_payment",
    "LoanMetrics",
    "filter_loans",
    "summarize_loans",
]
