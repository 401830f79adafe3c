"""User management schemas.

Password hashes never leave the service layer; responses carry no password
field at all.
"""

from enum import Enum
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserCreate(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE


class UserUpdate(BaseModel):
    """Edit payload. An omitted password keeps the current one."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    status: UserStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class UserPageResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int
    page_count: int
