"""Authentication module: FastAPI dependencies.

Public interface:
    ``require_auth``  -- returns AuthContext or raises 401.
    ``require_admin`` -- returns AuthContext, raises 403 if not admin.

When ``settings.auth_enabled`` is False both dependencies return an anonymous
admin context so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

ANONYMOUS_EMAIL = "unknown@example.com"
ANONYMOUS_NAME = "Unknown User"


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity available to every endpoint.

    ``email`` and ``name`` are stamped onto records as created_by / edited_by.
    """

    user_id: str
    role: str
    email: str = ANONYMOUS_EMAIL
    name: str = ANONYMOUS_NAME

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# Dev-mode anonymous context.
_ANONYMOUS = AuthContext(user_id="anonymous", role="admin")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid JWT and return the user's AuthContext.

    When ``AUTH_ENABLED=false`` returns anonymous admin context.
    """
    if not settings.auth_enabled:
        return _ANONYMOUS

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload, db)


def require_admin(
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not auth.is_admin:
        logger.info("Admin route refused", extra={"user_id": auth.user_id})
        raise ForbiddenError("Admin access required")
    return auth


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    """Load the user behind a decoded token. The stored role wins over the claim."""
    from ..models.user import User

    user = db.query(User).filter(User.id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return AuthContext(
        user_id=user.id,
        role=user.role,
        email=user.email,
        name=user.name,
    )
