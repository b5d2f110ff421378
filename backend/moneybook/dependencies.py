"""
FastAPI dependencies.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from moneybook.config import settings
from moneybook.database import get_db
from moneybook.exceptions import NotFoundError, PayloadTooLarge, UnauthorizedError
from moneybook.models import User
from moneybook.services.ownership import OWNER_RESOLVERS, authorize_ownership
from moneybook.services.rate_limiter import RateLimiters
from moneybook.services.token_service import verify_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_rate_limiters = RateLimiters.from_settings(settings)


def get_rate_limiters() -> RateLimiters:
    """Process-wide limiters; tests override this dependency."""
    return _rate_limiters


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def limit_auth_attempts(
    request: Request,
    limiters: RateLimiters = Depends(get_rate_limiters)
) -> None:
    limiters.auth.hit(f"ip:{client_key(request)}")


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    limiters: RateLimiters = Depends(get_rate_limiters)
) -> User:
    """
    Resolve the bearer token to a live user.

    A token that verifies but whose user has since been deleted is rejected.
    The verified claims are left on ``request.state.claims``.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    claims = verify_token(credentials.credentials)

    user = db.get(User, claims.user_id)
    if user is None or user.uid != claims.uid:
        raise UnauthorizedError("Invalid token - user not found")

    request.state.claims = claims
    limiters.api.hit(f"user:{user.id}")
    return user


def require_ownership(resource_type: str, path_param: str) -> Callable[..., User]:
    """
    Build a dependency that checks the path's resource belongs to the caller.

    Missing resources give 404, resources of another user give 403.
    """
    label = OWNER_RESOLVERS[resource_type].label

    def check_ownership(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
    ) -> User:
        try:
            resource_id = int(request.path_params.get(path_param))
        except (TypeError, ValueError):
            raise NotFoundError(f"{label} not found")
        authorize_ownership(db, current_user.id, resource_type, resource_id)
        return current_user

    return check_ownership


def limit_transaction_creation(
    current_user: User = Depends(get_current_user),
    limiters: RateLimiters = Depends(get_rate_limiters)
) -> User:
    limiters.transaction_create.hit(f"user:{current_user.id}")
    return current_user


async def limit_body_size(request: Request) -> None:
    body = await request.body()
    if len(body) > settings.max_json_body_bytes:
        raise PayloadTooLarge()
