"""Business logic services."""

from .location_service import LocationService
from .record_service import RecordService
from .user_service import UserService

__all__ = ["LocationService", "RecordService", "UserService"]
