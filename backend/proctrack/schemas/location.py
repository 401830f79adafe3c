"""Shelf, cabinet and folder schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List


class _LocationFields(BaseModel):
    """Trims codes, names and parent ids. Blank values are rejected."""

    @field_validator('code', 'name', 'shelf_id', 'cabinet_id', check_fields=False)
    @classmethod
    def validate_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class ShelfCreate(_LocationFields):
    code: str
    name: str


class ShelfUpdate(_LocationFields):
    code: Optional[str] = None
    name: Optional[str] = None


class ShelfResponse(BaseModel):
    id: str
    code: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class CabinetCreate(_LocationFields):
    code: str
    name: str
    shelf_id: str


class CabinetUpdate(_LocationFields):
    code: Optional[str] = None
    name: Optional[str] = None
    shelf_id: Optional[str] = None


class CabinetResponse(BaseModel):
    id: str
    code: str
    name: str
    shelf_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class FolderCreate(_LocationFields):
    code: str
    name: str
    cabinet_id: str
    color: Optional[str] = None


class FolderUpdate(_LocationFields):
    code: Optional[str] = None
    name: Optional[str] = None
    cabinet_id: Optional[str] = None
    color: Optional[str] = None


class FolderResponse(BaseModel):
    id: str
    code: str
    name: str
    cabinet_id: str
    color: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class SelectionResponse(BaseModel):
    """Location picked so far in a cascading picker."""
    shelf_id: Optional[str] = None
    cabinet_id: Optional[str] = None
    folder_id: Optional[str] = None


class LocationOptionsResponse(BaseModel):
    """Valid choices for each tier given the current selection."""
    selection: SelectionResponse
    shelves: List[ShelfResponse]
    cabinets: List[CabinetResponse]
    folders: List[FolderResponse]
    stack_preview: Optional[int] = None

