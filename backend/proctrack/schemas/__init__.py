"""Pydantic schemas for API validation."""

from .location import (
    ShelfCreate,
    ShelfUpdate,
    ShelfResponse,
    CabinetCreate,
    CabinetUpdate,
    CabinetResponse,
    FolderCreate,
    FolderUpdate,
    FolderResponse,
    SelectionResponse,
    LocationOptionsResponse,
)
from .record import (
    RecordStatus,
    SortField,
    SortDirection,
    ReportVariant,
    RecordCreate,
    RecordUpdate,
    RecordResponse,
    RecordListItem,
    RecordPageResponse,
    BatchResult,
    BatchError,
)
from .browse import BrowseNode, Breadcrumb, BrowseView
from .user import UserRole, UserStatus, UserCreate, UserUpdate, UserResponse, UserPageResponse

__all__ = [
    "ShelfCreate", "ShelfUpdate", "ShelfResponse",
    "CabinetCreate", "CabinetUpdate", "CabinetResponse",
    "FolderCreate", "FolderUpdate", "FolderResponse",
    "SelectionResponse", "LocationOptionsResponse",
    "RecordStatus", "SortField", "SortDirection", "ReportVariant",
    "RecordCreate", "RecordUpdate", "RecordResponse", "RecordListItem",
    "RecordPageResponse", "BatchResult", "BatchError",
    "BrowseNode", "Breadcrumb", "BrowseView",
    "UserRole", "UserStatus", "UserCreate", "UserUpdate", "UserResponse", "UserPageResponse",
]
