"""Users API Client.

User administration is admin-only on the server. The profile helpers combine
the user record with the customer or employee record of the same id,
depending on role.
"""

import logging
from typing import Any, Dict, Optional

from .base_client import ResourceAPIClient
from .customers_client import RecordId

logger = logging.getLogger(__name__)

USER_PROFILE_FIELDS = ("name", "email", "phone_number")
EMPLOYEE_PROFILE_FIELDS = ("position",)
CUSTOMER_PROFILE_FIELDS = ("address",)


def _pick(data: Dict[str, Any], fields) -> Dict[str, Any]:
    return {key: data[key] for key in fields if data.get(key) is not None}


class UsersAPIClient(ResourceAPIClient):
    """Client for /api/users plus the combined profile view."""

    async def list_users(self) -> Any:
        return await self.api.get("/api/users")

    async def get_user(self, user_id: RecordId) -> Dict[str, Any]:
        return await self.api.get(f"/api/users/{user_id}")

    async def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a user; user_data carries role, phone_number, email, password."""
        return await self.api.post("/api/users", json=user_data)

    async def update_user(
        self, user_id: RecordId, user_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.api.put(f"/api/users/{user_id}", json=user_data)

    async def delete_user(self, user_id: RecordId) -> Dict[str, Any]:
        return await self.api.delete(f"/api/users/{user_id}")

    def _role_endpoint(self, user_id: RecordId, role: str) -> Optional[str]:
        if role == "employee":
            return f"/api/employees/{user_id}"
        if role == "customer":
            return f"/api/customers/{user_id}"
        return None

    async def get_profile(
        self, user: Dict[str, Any], role: Optional[str] = None
    ) -> Dict[str, Any]:
        """Combine a user record with its role-specific record.

        Args:
            user: The session's user record (must carry id and role)
            role: Role override, defaults to user["role"]

        Returns:
            Merged profile; role is always the session's role
        """
        role = role or user.get("role")
        profile = dict(user)
        endpoint = self._role_endpoint(user["id"], str(role))
        if endpoint:
            extra = await self.api.get(endpoint)
            if isinstance(extra, dict):
                profile.update(extra)
        profile["role"] = role
        return profile

    async def update_profile(
        self, user: Dict[str, Any], profile_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Update the user record, then the role-specific record.

        Args:
            user: The session's user record (must carry id and role)
            profile_data: Edited fields; only known profile fields are sent

        Returns:
            Merged record of everything the server returned
        """
        user_id = user["id"]
        role = str(user.get("role"))
        updated = dict(user)

        user_changes = _pick(profile_data, USER_PROFILE_FIELDS)
        if user_changes:
            response = await self.update_user(user_id, user_changes)
            if isinstance(response, dict):
                updated.update(response)

        role_fields = (
            EMPLOYEE_PROFILE_FIELDS if role == "employee" else CUSTOMER_PROFILE_FIELDS
        )
        endpoint = self._role_endpoint(user_id, role)
        role_changes = _pick(profile_data, role_fields)
        if endpoint and role_changes:
            response = await self.api.put(endpoint, json=role_changes)
            if isinstance(response, dict):
                updated.update(response)

        updated["role"] = role
        logger.debug(f"Profile updated for user {user_id}")
        return updated
