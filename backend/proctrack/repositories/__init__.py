"""Data access repositories."""

from .base import BaseRepository
from .location_repository import ShelfRepository, CabinetRepository, FolderRepository
from .record_repository import RecordRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "ShelfRepository",
    "CabinetRepository",
    "FolderRepository",
    "RecordRepository",
    "UserRepository",
]
