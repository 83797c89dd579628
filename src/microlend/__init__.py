"""
MicroLend client - session management and API access for the MicroLend
micro-lending service.

Keeps an authenticated session (token and user) across runs and exposes the
customer, employee, user, loan and transaction endpoints.
"""

__version__ = "1.0.0"
