"""Visual browser schemas."""

from pydantic import BaseModel
from typing import Optional, List

from .location import SelectionResponse
from .record import RecordResponse


class BrowseNode(BaseModel):
    """One tile in the visual browser with the size of the level below it."""
    id: str
    code: str
    name: str
    child_count: int
    color: Optional[str] = None


class Breadcrumb(BaseModel):
    tier: str  # "shelf", "cabinet" or "folder"
    id: str
    code: str
    name: str


class BrowseView(BaseModel):
    """Visual browser state for the deepest valid selection."""
    mode: str  # "shelves", "cabinets", "folders" or "files"
    selection: SelectionResponse
    breadcrumbs: List[Breadcrumb] = []
    nodes: List[BrowseNode] = []
    files: List[RecordResponse] = []
