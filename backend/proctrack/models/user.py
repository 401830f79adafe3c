"""User and AuditLog models.

Users authenticate with email/password and receive JWT tokens.
AuditLog records all state-changing operations for accountability.
"""

from sqlalchemy import Column, String, DateTime, Integer, Text
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """User account.

    Roles:
        admin -- full access including user and location management
        user  -- can work with records
    """

    __tablename__ = "users"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(String(20), nullable=False, default="user")
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Written by the service layer, never modified or deleted.
    Fields:
        actor         -- email of whoever performed the action
        action        -- create, update, delete, borrow, return, login,
                         login_failed, toggle_status, import
        resource_type -- record, shelf, cabinet, folder, user
        resource_id   -- ID of the affected resource
        details       -- JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor = Column(String(255), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
