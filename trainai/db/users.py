"""Session and permission lookups for the acting user."""

from typing import Any
from uuid import UUID

from supabase import AsyncClient

from trainai.core.logging import get_logger
from trainai.core.schemas_mutations import Actor

logger = get_logger(__name__)


class UserDirectory:
    """Builds an ``Actor`` from a bearer token."""

    def __init__(self, client: AsyncClient):
        self._client = client

    async def actor_from_token(self, token: str) -> Actor | None:
        """
        Validate a Supabase access token and load the user's role and permissions.

        Args:
            token: Supabase JWT from the Authorization header

        Returns:
            Actor, or None if the token is not a valid session
        """
        try:
            auth_response = await self._client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Token validation failed: {e}")
            return None

        if not auth_response or not auth_response.user:
            return None

        user = auth_response.user
        user_id = UUID(str(user.id))

        return Actor(
            user_id=user_id,
            email=user.email,
            role=await self.get_role(user_id),
            capabilities=frozenset(await self.get_permissions(user_id)),
            session_valid=True,
        )

    async def get_role(self, user_id: UUID) -> str | None:
        response = await (
            self._client.table("user_profiles")
            .select("role_id, user_roles(name)")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        role: dict[str, Any] = response.data[0].get("user_roles") or {}
        return role.get("name")

    async def get_permissions(self, user_id: UUID) -> list[str]:
        """Permission names granted through the user's role."""
        response = await self._client.rpc("get_user_permissions", {"user_id": str(user_id)}).execute()
        return [row["permission_name"] for row in response.data or [] if row.get("permission_name")]
