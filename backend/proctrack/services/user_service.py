"""User management service.

Account rules live in ``user_validation``; this module applies them, hashes
passwords, and protects the primordial admin (``admin@<EMAIL_DOMAIN>``),
which can never be deleted, deactivated, demoted or renamed to another
address.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from ..core.auth import AuthContext
from ..core.config import settings
from ..exceptions import ConflictError, ProtectedAccountError, UserValidationError
from ..models import User
from ..repositories import UserRepository
from ..schemas.user import UserCreate, UserRole, UserStatus, UserUpdate
from . import audit_service
from .auth_service import hash_password
from .base import WriteService
from .clock import utcnow
from .user_validation import validate_user

logger = logging.getLogger(__name__)


def is_primordial_admin(email: Optional[str]) -> bool:
    return (email or "").strip().lower() == settings.admin_email


def filter_users(
    users: Iterable,
    search: str = "",
    role: Optional[str] = None,
    status: Optional[str] = None,
) -> List:
    """Case-insensitive search over name and email plus exact role/status match."""
    needle = search.strip().lower()
    matched = []
    for user in users:
        if needle and needle not in user.name.lower() and needle not in user.email.lower():
            continue
        if role and user.role != role:
            continue
        if status and user.status != status:
            continue
        matched.append(user)
    return matched


class UserService(WriteService):
    """Create, edit, delete and enable/disable user accounts."""

    def __init__(self, db, feed=None):
        super().__init__(db, feed)
        self.user_repo = UserRepository(db)

    def _validate(self, name, email, password, require_password: bool) -> None:
        result = validate_user(name, email, password, settings.email_domain, require_password)
        if not result.ok:
            raise UserValidationError(list(result.reasons))

    def _ensure_email_free(self, email: str, user_id: Optional[str] = None) -> None:
        existing = self.user_repo.get_by_email(email)
        if existing is not None and existing.id != user_id:
            raise ConflictError("Email already registered", details={"field": "email"})

    def create_user(self, data: UserCreate, actor: AuthContext) -> User:
        self._validate(data.name, data.email, data.password, require_password=True)
        email = data.email.strip().lower()
        self._ensure_email_free(email)

        with self._writing("Failed to create user", "users"):
            user = self.user_repo.add(
                User(
                    id=str(uuid.uuid4()),
                    name=data.name.strip(),
                    email=email,
                    password_hash=hash_password(data.password),
                    role=data.role.value,
                    status=data.status.value,
                    created_at=utcnow(),
                )
            )
        logger.info("User created", extra={"user_id": user.id, "role": user.role})
        audit_service.log(self.db, actor.email, "create", "user", user.id, {"email": email})
        return user

    def update_user(self, user_id: str, data: UserUpdate, actor: AuthContext) -> User:
        """Edit an account. Rules are re-checked; an omitted password is kept."""
        user = self.user_repo.get_by_id(user_id)
        name = data.name if data.name is not None else user.name
        email = data.email if data.email is not None else user.email
        self._validate(name, email, data.password, require_password=False)
        email = email.strip().lower()

        if is_primordial_admin(user.email):
            if email != user.email:
                raise ProtectedAccountError("Cannot change the email of the main Admin user.")
            if data.status == UserStatus.INACTIVE:
                raise ProtectedAccountError("Cannot change status of main Admin user.")
            if data.role == UserRole.USER:
                raise ProtectedAccountError("Cannot change role of main Admin user.")
        self._ensure_email_free(email, user_id=user.id)

        with self._writing("Failed to update user", "users"):
            user.name = name.strip()
            user.email = email
            if data.role is not None:
                user.role = data.role.value
            if data.status is not None:
                user.status = data.status.value
            if data.password:
                user.password_hash = hash_password(data.password)

        audit_service.log(
            self.db, actor.email, "update", "user", user_id,
            {"fields": sorted(data.model_dump(exclude_unset=True, exclude={"password"}))},
        )
        return user

    def delete_user(self, user_id: str, actor: AuthContext) -> None:
        user = self.user_repo.get_by_id(user_id)
        if is_primordial_admin(user.email):
            raise ProtectedAccountError("Cannot delete the main Admin user.")
        with self._writing("Failed to delete user", "users"):
            self.user_repo.delete(user)
        logger.info("User deleted", extra={"user_id": user_id})
        audit_service.log(self.db, actor.email, "delete", "user", user_id)

    def toggle_status(self, user_id: str, actor: AuthContext) -> User:
        """Flip active <-> inactive."""
        user = self.user_repo.get_by_id(user_id)
        if is_primordial_admin(user.email):
            raise ProtectedAccountError("Cannot change status of main Admin user.")
        with self._writing("Failed to update user status", "users"):
            user.status = (
                UserStatus.INACTIVE.value if user.status == UserStatus.ACTIVE.value
                else UserStatus.ACTIVE.value
            )
        audit_service.log(self.db, actor.email, "toggle_status", "user", user_id, {"status": user.status})
        return user
