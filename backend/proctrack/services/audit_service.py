"""Audit trail of who changed what.

Every service write, every login attempt and every legacy import leaves one
row behind. Rows are append-only; the only deletion is the retention purge
run at startup.

    audit_service.log(db, "clerk@gmail.com", "borrow", "record", record.id,
                      {"borrowed_by": "Ana", "division": "Finance"})
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..models.user import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: Session,
    actor: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> None:
    """Append an entry and commit it.

    Called after the audited write has committed. A failure here is logged
    as a warning and the audited write stands.
    """
    db.add(
        AuditLog(
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=json.dumps(details, default=str) if details else None,
            ip_address=ip_address,
        )
    )
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "Audit entry lost",
            extra={"action": action, "resource_type": resource_type, "error": str(e)},
        )


def details_of(entry: AuditLog) -> dict:
    """Decoded ``details`` of an entry; empty when none were stored."""
    return json.loads(entry.details) if entry.details else {}


def _newest_first(query: Query, limit: int) -> List[AuditLog]:
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()


def get_recent(db: Session, limit: int = 100) -> List[AuditLog]:
    return _newest_first(db.query(AuditLog), limit)


def get_by_resource(db: Session, resource_type: str, resource_id: str, limit: int = 100) -> List[AuditLog]:
    """History of one record, user or location, newest first."""
    query = db.query(AuditLog).filter(
        AuditLog.resource_type == resource_type,
        AuditLog.resource_id == resource_id,
    )
    return _newest_first(query, limit)


def get_by_actor(db: Session, actor: str, limit: int = 100) -> List[AuditLog]:
    """Everything one account did, newest first."""
    return _newest_first(db.query(AuditLog).filter(AuditLog.actor == actor), limit)


def purge_old_entries(db: Session, days: int = 365) -> int:
    """Drop entries older than *days*; ``days <= 0`` keeps everything.

    Returns the number of rows removed. Failures are logged and reported as 0.
    """
    if days <= 0:
        return 0
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        removed = db.query(AuditLog).filter(AuditLog.created_at < cutoff).delete()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Audit purge failed", extra={"error": str(e)})
        return 0
    return removed
