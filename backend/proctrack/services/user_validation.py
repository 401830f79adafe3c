"""Account rules for user management.

Every rule is checked and every failure reported, in form order.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

PASSWORD_MIN_LENGTH = 8
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

_UPPERCASE = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")


@dataclass(frozen=True)
class UserValidation:
    reasons: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.reasons


def password_problems(password: str) -> List[str]:
    if not password:
        return ["Password is required"]
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not _UPPERCASE.search(password):
        problems.append("Password must contain at least one uppercase letter")
    if not _DIGIT.search(password):
        problems.append("Password must contain at least one number")
    if not any(ch in SPECIAL_CHARACTERS for ch in password):
        problems.append("Password must contain at least one special character")
    return problems


def email_matches_domain(email: str, domain: str) -> bool:
    email = email.strip().lower()
    suffix = "@" + domain.lower()
    return email.endswith(suffix) and len(email) > len(suffix)


def validate_user(
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    domain: str,
    require_password: bool = True,
) -> UserValidation:
    """Check a user form.

    With ``require_password=False`` (editing without a new password) the
    password rules only run when a password is supplied.
    """
    reasons: List[str] = []
    name = (name or "").strip()
    email = (email or "").strip()

    if not name:
        reasons.append("Name is required")
    if not email:
        reasons.append("Email is required")
    elif not email_matches_domain(email, domain):
        reasons.append(f"Email must be a '@{domain}' address")
    if require_password or password:
        reasons.extend(password_problems(password or ""))

    return UserValidation(tuple(reasons))
