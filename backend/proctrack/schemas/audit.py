"""Audit trail schemas."""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, Optional


class AuditEntryResponse(BaseModel):
    id: int
    actor: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    details: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
