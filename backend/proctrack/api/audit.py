"""Audit trail (admin only).

    GET /api/audit                                   -- most recent entries
    GET /api/audit?actor=clerk@gmail.com             -- one account's actions
    GET /api/audit?resource_type=record&resource_id= -- one resource's history
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..exceptions import ValidationError
from ..schemas.audit import AuditEntryResponse
from ..services import audit_service

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("", response_model=List[AuditEntryResponse])
def list_audit_entries(
    actor: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    if bool(resource_type) != bool(resource_id):
        raise ValidationError("resource_type and resource_id go together", field="resource_id")
    if resource_type:
        entries = audit_service.get_by_resource(db, resource_type, resource_id, limit)
    elif actor:
        entries = audit_service.get_by_actor(db, actor.strip().lower(), limit)
    else:
        entries = audit_service.get_recent(db, limit)
    return [
        AuditEntryResponse(
            id=e.id,
            actor=e.actor,
            action=e.action,
            resource_type=e.resource_type,
            resource_id=e.resource_id,
            details=audit_service.details_of(e),
            created_at=e.created_at,
        )
        for e in entries
    ]
