"""Request dependencies: services and the acting user."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trainai.core.logging import get_logger
from trainai.core.schemas_mutations import Actor
from trainai.core.services import ServiceContainer

logger = get_logger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    services: ServiceContainer = Depends(get_services),
) -> Actor:
    """
    Resolve the Supabase session behind the bearer token.

    Raises:
        HTTPException: 401 if no token is sent or the session is not valid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor = await services.users.actor_from_token(credentials.credentials)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authenticated {actor.email} (role={actor.role})")
    return actor
