"""Record service: deep module for the procurement record lifecycle.

Owns creation, edits, borrow/return and deletion. Every operation that can
disturb a folder's stack renumbers that folder inside the same transaction,
working from fresh rows rather than any cached snapshot.
"""

import logging
import uuid
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from ..core.auth import ANONYMOUS_EMAIL, ANONYMOUS_NAME, AuthContext
from ..exceptions import ValidationError
from ..models import Record
from ..repositories import CabinetRepository, FolderRepository, RecordRepository, ShelfRepository
from ..schemas.record import BatchError, BatchResult, RecordCreate, RecordStatus, RecordUpdate
from . import audit_service
from .base import WriteService
from .clock import utcnow
from .stacking import plan_renumber, preview_stack_number
from .transitions import REQUIRED_FIELDS_MESSAGE, check_transition, require_borrow_details

logger = logging.getLogger(__name__)

_REQUIRED_ON_CREATE = ("pr_number", "description", "shelf_id", "cabinet_id", "folder_id")
_LOCATION_FIELDS = ("shelf_id", "cabinet_id", "folder_id")
_BORROW_FIELDS = ("borrowed_by", "division")
ARCHIVED_BORROWER_MESSAGE = "Borrower details can only be set on a borrowed record"


class RecordService(WriteService):
    """Deep module for record operations.

    Public methods:
        get_record, create_record, update_record,
        borrow_record, return_record,
        delete_record, bulk_delete, renumber_folder
    """

    def __init__(self, db, feed=None):
        super().__init__(db, feed)
        self.record_repo = RecordRepository(db)
        self.shelf_repo = ShelfRepository(db)
        self.cabinet_repo = CabinetRepository(db)
        self.folder_repo = FolderRepository(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_placement(self, shelf_id: str, cabinet_id: str, folder_id: str) -> None:
        """The cabinet must stand on the shelf and the folder sit in the cabinet."""
        if self.shelf_repo.get_by_id_optional(shelf_id) is None:
            raise ValidationError("Selected shelf does not exist", field="shelf_id")
        cabinet = self.cabinet_repo.get_by_id_optional(cabinet_id)
        if cabinet is None or cabinet.shelf_id != shelf_id:
            raise ValidationError("Cabinet is not on the selected shelf", field="cabinet_id")
        folder = self.folder_repo.get_by_id_optional(folder_id)
        if folder is None or folder.cabinet_id != cabinet_id:
            raise ValidationError("Folder is not in the selected cabinet", field="folder_id")

    def _renumber(self, folder_id: str) -> int:
        self.db.flush()
        records = self.record_repo.list_in_folder(folder_id)
        plan = plan_renumber(records, folder_id)
        touched = self.record_repo.apply_stack_numbers(records, plan)
        if touched:
            logger.debug("Renumbered folder", extra={"folder_id": folder_id, "changed": touched})
        return touched

    @staticmethod
    def _stamp_edit(record: Record, actor: AuthContext) -> None:
        record.edited_by = actor.email or ANONYMOUS_EMAIL
        record.edited_by_name = actor.name or ANONYMOUS_NAME
        record.last_edited_at = utcnow()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_record(self, record_id: str) -> Record:
        return self.record_repo.get_by_id(record_id)

    def create_record(self, data: RecordCreate, actor: AuthContext) -> Record:
        """Add a record. An archived record goes on top of its folder's stack."""
        for field_name in _REQUIRED_ON_CREATE:
            if not getattr(data, field_name):
                raise ValidationError(REQUIRED_FIELDS_MESSAGE, field=field_name)
        self._validate_placement(data.shelf_id, data.cabinet_id, data.folder_id)

        now = utcnow()
        record = Record(
            id=str(uuid.uuid4()),
            pr_number=data.pr_number,
            description=data.description,
            shelf_id=data.shelf_id,
            cabinet_id=data.cabinet_id,
            folder_id=data.folder_id,
            status=data.status.value,
            urgency_level=data.urgency_level or "medium",
            date_added=data.date_added or now,
            tags=list(data.tags),
            notes=(data.notes or "").strip() or None,
            created_by=actor.email or ANONYMOUS_EMAIL,
            created_by_name=actor.name or ANONYMOUS_NAME,
            created_at=now,
        )

        with self._writing("Failed to add record", "records"):
            if data.status == RecordStatus.ARCHIVED:
                siblings = self.record_repo.list_in_folder(data.folder_id)
                record.stack_number = preview_stack_number(siblings, data.folder_id)
            else:
                record.borrowed_by = (data.borrowed_by or "").strip() or None
                record.division = (data.division or "").strip() or None
                record.borrowed_date = now
            self.record_repo.add(record)

        logger.info(
            "Record created",
            extra={"record_id": record.id, "folder_id": record.folder_id, "status": record.status},
        )
        audit_service.log(self.db, actor.email, "create", "record", record.id, {"pr_number": record.pr_number})
        return record

    def update_record(self, record_id: str, data: RecordUpdate, actor: AuthContext) -> Record:
        """Apply field edits.

        Moving an archived record to another folder puts it on top of the new
        stack and closes the gap it left behind.
        """
        record = self.record_repo.get_by_id(record_id)
        changes = data.model_dump(exclude_unset=True)

        for name in ("pr_number", "description"):
            if name in changes and not (changes[name] or "").strip():
                raise ValidationError(REQUIRED_FIELDS_MESSAGE, field=name)

        if any(name in changes for name in _BORROW_FIELDS):
            if record.status == RecordStatus.BORROWED.value:
                changes["borrowed_by"], changes["division"] = require_borrow_details(
                    changes.get("borrowed_by", record.borrowed_by),
                    changes.get("division", record.division),
                )
            else:
                for name in _BORROW_FIELDS:
                    if (changes.get(name) or "").strip():
                        raise ValidationError(ARCHIVED_BORROWER_MESSAGE, field=name)

        if any(name in changes for name in _LOCATION_FIELDS):
            placement = {name: changes.get(name, getattr(record, name)) for name in _LOCATION_FIELDS}
            for name, value in placement.items():
                if not value:
                    raise ValidationError(REQUIRED_FIELDS_MESSAGE, field=name)
            self._validate_placement(**placement)

        old_folder = record.folder_id
        with self._writing("Failed to update record", "records"):
            for name, value in changes.items():
                if isinstance(value, str):
                    value = value.strip()
                if name in ("notes", "borrowed_by", "division"):
                    value = value or None
                elif value is None or value == "":
                    continue
                setattr(record, name, value)

            if record.folder_id != old_folder and record.status == RecordStatus.ARCHIVED.value:
                siblings = [r for r in self.record_repo.list_in_folder(record.folder_id) if r.id != record.id]
                record.stack_number = preview_stack_number(siblings, record.folder_id)
                self._renumber(old_folder)
                self._renumber(record.folder_id)
            self._stamp_edit(record, actor)

        audit_service.log(
            self.db, actor.email, "update", "record", record_id,
            {"fields": sorted(changes)},
        )
        return record

    def borrow_record(
        self,
        record_id: str,
        borrowed_by: Optional[str],
        division: Optional[str],
        actor: AuthContext,
    ) -> Record:
        """archived -> borrowed. Both borrower and division are mandatory."""
        borrowed_by, division = require_borrow_details(borrowed_by, division)
        record = self.record_repo.get_by_id(record_id)
        check_transition(record.status, RecordStatus.BORROWED, record_id)

        with self._writing("Failed to update record status", "records"):
            record.status = RecordStatus.BORROWED.value
            record.borrowed_by = borrowed_by
            record.division = division
            record.borrowed_date = utcnow()
            record.stack_number = None
            self._stamp_edit(record, actor)
            self._renumber(record.folder_id)

        logger.info("Record borrowed", extra={"record_id": record_id, "division": division})
        audit_service.log(
            self.db, actor.email, "borrow", "record", record_id,
            {"borrowed_by": borrowed_by, "division": division},
        )
        return record

    def return_record(self, record_id: str, actor: AuthContext) -> Record:
        """borrowed -> archived. The renumber gives the record its stack position."""
        record = self.record_repo.get_by_id(record_id)
        check_transition(record.status, RecordStatus.ARCHIVED, record_id)

        with self._writing("Failed to update record status", "records"):
            record.status = RecordStatus.ARCHIVED.value
            record.return_date = utcnow()
            self._stamp_edit(record, actor)
            self._renumber(record.folder_id)

        logger.info("Record returned", extra={"record_id": record_id, "stack_number": record.stack_number})
        audit_service.log(self.db, actor.email, "return", "record", record_id)
        return record

    def delete_record(self, record_id: str, actor: AuthContext) -> None:
        record = self.record_repo.get_by_id(record_id)
        folder_id = record.folder_id
        with self._writing("Failed to delete record", "records"):
            self.record_repo.delete(record)
            self._renumber(folder_id)
        audit_service.log(self.db, actor.email, "delete", "record", record_id)

    def bulk_delete(self, record_ids: Iterable[str], actor: AuthContext) -> BatchResult:
        """Delete many records, reporting per-item failures.

        Empty input returns zero counts. Each affected folder is renumbered
        once at the end.
        """
        record_ids = list(dict.fromkeys(record_ids))
        succeeded = 0
        errors: List[BatchError] = []
        folders: Set[str] = set()

        with self._writing("Failed to delete records", "records"):
            for record_id in record_ids:
                record = self.record_repo.get_by_id_optional(record_id)
                if record is None:
                    errors.append(BatchError(record_id=record_id, error="Record not found"))
                    continue
                savepoint = self.db.begin_nested()
                try:
                    folder_id = record.folder_id
                    self.record_repo.delete(record)
                    savepoint.commit()
                except SQLAlchemyError as e:
                    savepoint.rollback()
                    logger.warning("Bulk delete failed for %s: %s", record_id, e, exc_info=True)
                    errors.append(BatchError(record_id=record_id, error=str(e)))
                    continue
                folders.add(folder_id)
                succeeded += 1
            for folder_id in folders:
                self._renumber(folder_id)

        if errors:
            message = "Failed to delete some records"
        else:
            message = f"{succeeded} records deleted successfully"
        if succeeded:
            audit_service.log(
                self.db, actor.email, "delete", "record", None,
                {"record_ids": [r for r in record_ids if r not in {e.record_id for e in errors}]},
            )
        return BatchResult(
            total=len(record_ids),
            succeeded=succeeded,
            failed=len(record_ids) - succeeded,
            errors=errors,
            message=message,
        )

    def renumber_folder(self, folder_id: str) -> int:
        """Repair one folder's stack. Returns the number of rows changed."""
        self.folder_repo.get_by_id(folder_id)
        with self._writing("Failed to renumber folder", "records"):
            touched = self._renumber(folder_id)
        return touched
