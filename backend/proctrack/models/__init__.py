"""Database models."""

from .location import Shelf, Cabinet, Folder
from .record import Record
from .user import User, AuditLog

__all__ = [
    "Shelf", "Cabinet", "Folder",
    "Record",
    "User", "AuditLog",
]
