"""Transactions API Client.

Create and update are staff-only and delete is admin-only on the server;
customers may only read their own transactions.
"""

import logging
from typing import Any, Dict

from .base_client import ResourceAPIClient
from .customers_client import RecordId

logger = logging.getLogger(__name__)


class TransactionsAPIClient(ResourceAPIClient):
    """Client for /api/transactions."""

    async def list_transactions(self) -> Any:
        return await self.api.get("/api/transactions")

    async def list_customer_transactions(self, customer_id: RecordId) -> Any:
        """Transactions belonging to one customer."""
        return await self.api.get(f"/api/transactions/customer/{customer_id}")

    async def list_loan_transactions(self, loan_id: RecordId) -> Any:
        """Transactions recorded against one loan."""
        return await self.api.get(f"/api/transactions/loan/{loan_id}")

    async def get_transaction(self, transaction_id: RecordId) -> Dict[str, Any]:
        return await self.api.get(f"/api/transactions/{transaction_id}")

    async def create_transaction(
        self, transaction_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.post("/api/transactions", json=transaction_data)

    async def update_transaction(
        self, transaction_id: RecordId, transaction_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.put(
            f"/api/transactions/{transaction_id}", json=transaction_data
        )

    async def delete_transaction(self, transaction_id: RecordId) -> Dict[str, Any]:
        logger.info(f"Deleting transaction {transaction_id}")
        return await self.api.delete(f"/api/transactions/{transaction_id}")
