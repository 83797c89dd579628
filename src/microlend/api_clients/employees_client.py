"""Employees API Client."""

from typing import Any, Dict

from .base_client import ResourceAPIClient
from .customers_client import RecordId


class EmployeesAPIClient(ResourceAPIClient):
    """Client for /api/employees (admin, or the employee themself for updates)."""

    async def list_employees(self) -> Any:
        return await self.api.get("/api/employees")

    async def get_employee(self, employee_id: RecordId) -> Dict[str, Any]:
        return await self.api.get(f"/api/employees/{employee_id}")

    async def create_employee(self, employee_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.api.post("/api/employees", json=employee_data)

    async def update_employee(
        self, employee_id: RecordId, employee_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.put(f"/api/employees/{employee_id}", json=employee_data)

    async def delete_employee(self, employee_id: RecordId) -> Dict[str, Any]:
        return await self.api.delete(f"/api/employees/{employee_id}")
