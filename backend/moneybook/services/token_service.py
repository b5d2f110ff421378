"""
Signed, time-bounded access tokens.

Tokens are HS256 JWTs carrying a fixed, versioned claim set. Anything that
does not decode into ``TokenClaims`` exactly is treated as invalid.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from moneybook.config import settings
from moneybook.exceptions import TokenExpired, TokenInvalid
from moneybook.models.user import User

logger = logging.getLogger(__name__)

CLAIMS_VERSION = 1


class TokenClaims(BaseModel):
    """Verified identity payload of an access token."""

    model_config = ConfigDict(extra="forbid")

    ver: int
    sub: str
    uid: str
    email: str
    iat: int
    exp: int
    iss: str
    aud: str

    @property
    def user_id(self) -> int:
        return int(self.sub)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)


def issue_token(user: User, now: Optional[datetime] = None) -> Tuple[str, TokenClaims]:
    """Sign a token for ``user``. ``now`` is only overridden by tests."""
    issued = now or datetime.now(timezone.utc)
    expires = issued + timedelta(minutes=settings.jwt_expires_minutes)
    claims = TokenClaims(
        ver=CLAIMS_VERSION,
        sub=str(user.id),
        uid=user.uid,
        email=user.email,
        iat=int(issued.timestamp()),
        exp=int(expires.timestamp()),
        iss=settings.jwt_issuer,
        aud=settings.jwt_audience,
    )
    token = jwt.encode(claims.model_dump(), settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, claims


def verify_token(token: str) -> TokenClaims:
    """Check signature, expiry, issuer and audience, then the claim shape."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise TokenInvalid()

    try:
        claims = TokenClaims.model_validate(payload)
    except ValidationError:
        raise TokenInvalid()

    if claims.ver != CLAIMS_VERSION or not claims.sub.isdigit():
        raise TokenInvalid()
    return claims
