"""Customers API Client."""

from typing import Any, Dict, Union

from .base_client import ResourceAPIClient

RecordId = Union[int, str]


class CustomersAPIClient(ResourceAPIClient):
    """Client for /api/customers. Listing and writes are staff-only server-side."""

    async def list_customers(self) -> Dict[str, Any]:
        """Returns the server body, customers under the "customers" key."""
        return await self.api.get("/api/customers")

    async def get_customer(self, customer_id: RecordId) -> Dict[str, Any]:
        return await self.api.get(f"/api/customers/{customer_id}")

    async def get_customer_loans(self, customer_id: RecordId) -> Dict[str, Any]:
        """Loans of one customer, under the "loans" key."""
        return await self.api.get(f"/api/customers/{customer_id}/loans")

    async def create_customer(self, customer_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.api.post("/api/customers", json=customer_data)

    async def update_customer(
        self, customer_id: RecordId, customer_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.put(f"/api/customers/{customer_id}", json=customer_data)

    async def delete_customer(self, customer_id: RecordId) -> Dict[str, Any]:
        return await self.api.delete(f"/api/customers/{customer_id}")
