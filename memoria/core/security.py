import logging
from typing import Any, Dict

from jose import jwt, JWTError

from memoria.core.config import settings
from memoria.utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def decode_token(token: str) -> Dict[str, Any]:
    """Verify an identity provider token and return its claims"""
    options = {"verify_aud": settings.AUTH_JWT_AUDIENCE is not None}
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_KEY,
            algorithms=settings.AUTH_JWT_ALGORITHMS,
            audience=settings.AUTH_JWT_AUDIENCE,
            issuer=settings.AUTH_JWT_ISSUER,
            options=options,
        )
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise AuthenticationError("Could not validate credentials") from e


def resolve_caller(token: str) -> str:
    """Return the verified user identifier carried by the token"""
    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise AuthenticationError("Token has no subject")
    return user_id
