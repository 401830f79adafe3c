"""Procurement record schemas."""

from enum import Enum
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from .location import SelectionResponse


class RecordStatus(str, Enum):
    BORROWED = "borrowed"
    ARCHIVED = "archived"


class SortField(str, Enum):
    DESCRIPTION = "description"
    PR_NUMBER = "pr_number"
    DATE_ADDED = "date_added"
    STACK_NUMBER = "stack_number"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ReportVariant(str, Enum):
    SUMMARY = "summary"
    FULL = "full"


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    return [t.strip() for t in tags if t and t.strip()]


class RecordCreate(BaseModel):
    """Payload of the add-record form.

    Blank required fields are accepted here and rejected by the service so
    the client gets one consistent "fill in all required fields" message.
    """
    pr_number: str = ""
    description: str = ""
    shelf_id: str = ""
    cabinet_id: str = ""
    folder_id: str = ""
    status: RecordStatus = RecordStatus.ARCHIVED
    urgency_level: str = "medium"
    date_added: Optional[datetime] = None
    tags: List[str] = []
    notes: Optional[str] = None
    borrowed_by: Optional[str] = None
    division: Optional[str] = None

    @field_validator('pr_number')
    @classmethod
    def normalize_pr_number(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator('description', 'shelf_id', 'cabinet_id', 'folder_id', 'urgency_level')
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator('tags')
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v)


class RecordUpdate(BaseModel):
    """Edit form payload. Status only changes through a confirmed status change."""
    pr_number: Optional[str] = None
    description: Optional[str] = None
    shelf_id: Optional[str] = None
    cabinet_id: Optional[str] = None
    folder_id: Optional[str] = None
    urgency_level: Optional[str] = None
    date_added: Optional[datetime] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    borrowed_by: Optional[str] = None
    division: Optional[str] = None

    @field_validator('pr_number')
    @classmethod
    def normalize_pr_number(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v

    @field_validator('tags')
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class RecordResponse(BaseModel):
    """Full record as stored."""
    id: str
    pr_number: str
    description: str
    shelf_id: str
    cabinet_id: str
    folder_id: str
    status: RecordStatus
    urgency_level: str
    date_added: datetime
    stack_number: Optional[int] = None
    borrowed_by: Optional[str] = None
    division: Optional[str] = None
    borrowed_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    created_by: str
    created_by_name: str
    created_at: Optional[datetime] = None
    edited_by: Optional[str] = None
    edited_by_name: Optional[str] = None
    last_edited_at: Optional[datetime] = None
    tags: List[str] = []
    notes: Optional[str] = None

    @field_validator('tags', mode='before')
    @classmethod
    def default_tags(cls, v):
        return v or []

    class Config:
        from_attributes = True
        frozen = True


class RecordListItem(RecordResponse):
    """Record row of the list view with display helpers resolved."""
    location: str
    folder_color: str
    status_label: str


class RecordPageResponse(BaseModel):
    """One page of the filtered and sorted record list."""
    items: List[RecordListItem]
    total: int
    page: int
    page_size: int
    page_count: int
    loading: bool = False
    selection: SelectionResponse


class StackPreviewResponse(BaseModel):
    folder_id: str
    stack_number: int


class BulkDeleteRequest(BaseModel):
    record_ids: List[str]


class BatchError(BaseModel):
    """A single failure within a batch operation."""
    record_id: str
    error: str


class BatchResult(BaseModel):
    """Result of a batch operation."""
    total: int
    succeeded: int
    failed: int
    errors: List[BatchError] = []
    message: str = ""


class StatusChangeRequest(BaseModel):
    status: RecordStatus


class BorrowDetails(BaseModel):
    borrowed_by: str = ""
    division: str = ""


class StatusChangeResponse(BaseModel):
    """Pending (or just finished) borrow/return confirmation."""
    token: str
    record_id: str
    target_status: RecordStatus
    state: str
    expires_at: Optional[datetime] = None
    borrowed_by: str = ""
    division: str = ""
    record: Optional[RecordResponse] = None


class ReportResponse(BaseModel):
    """Tabular report ready for a PDF renderer."""
    variant: ReportVariant
    title: str
    generated: str
    headers: List[str]
    rows: List[List[str]]
    filename: str
    total: int = Field(0, description="Number of records in the report")

