from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional
import logging
import redis

from ..core.config import settings
from ..core.database import get_redis
from ..core.errors import AccessDenied
from ..core.security import security, AuthenticationError
from ..schemas.user import CurrentUser
from ..services.clinic import Clinic
from ..services.identity import AnonymousIdentity, IdentityProvider, TokenIdentityProvider

logger = logging.getLogger(__name__)

def get_clinic(request: Request) -> Clinic:
    """Get the clinic services built at startup."""
    return request.app.state.clinic

async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> IdentityProvider:
    """Pick the identity source for this request."""
    if credentials is None:
        return AnonymousIdentity()
    return TokenIdentityProvider(credentials.credentials)

async def get_current_user_optional(
    identity: IdentityProvider = Depends(get_identity)
) -> Optional[CurrentUser]:
    """Get current user if authenticated, None for anonymous visitors.

    A token that is present but invalid is still rejected.
    """
    return identity.current_user()

async def get_current_user(
    current_user: Optional[CurrentUser] = Depends(get_current_user_optional)
) -> CurrentUser:
    """Get current authenticated user."""
    if current_user is None:
        raise AuthenticationError("Not authenticated")
    return current_user

# Section gate for API callers; navigation uses the soft resolution instead
def require_section(section: str):
    """Create a dependency that requires access to a section."""
    async def section_checker(
        current_user: CurrentUser = Depends(get_current_user),
        clinic: Clinic = Depends(get_clinic)
    ) -> CurrentUser:
        if not clinic.gate.can_access(current_user.role, section):
            raise AccessDenied(
                f"Role {current_user.role.value} may not access {section}"
            )
        return current_user

    return section_checker

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for public booking."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:booking:{client_ip}"

    try:
        current_requests = redis_client.incr(key)
        if current_requests == 1:
            redis_client.expire(key, settings.BOOKING_RATE_WINDOW_SECONDS)
    except redis.RedisError as e:
        logger.error(f"Rate limiter unavailable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Booking is temporarily unavailable. Please try again later."
        )

    if current_requests > settings.BOOKING_RATE_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
