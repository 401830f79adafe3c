"""One-off import of a JSON export from the old document store.

The old store named its two upper tiers the wrong way round: its
``cabinets`` collection holds what we call shelves, and its ``shelves``
collection holds cabinets. Record documents carry the same swap
(``cabinetId`` is the shelf, ``shelfId`` the cabinet). This module maps
everything onto the canonical naming so the swap ends here.

Each collection may be a dict keyed by document id or a list of documents
with an ``id`` field. Ids that already exist are skipped, so running the
import twice is harmless. Items whose parent cannot be found are reported
and left out. Record placement is re-derived from the folder, and every
folder that received records is renumbered before the single commit.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.auth import ANONYMOUS_EMAIL, ANONYMOUS_NAME
from ..exceptions import DatabaseError
from ..models import Cabinet, Folder, Record, Shelf, User
from ..repositories import RecordRepository
from . import audit_service
from .auth_service import hash_password
from .clock import utcnow
from .stacking import plan_renumber

logger = logging.getLogger(__name__)

# Old status name for a checked-out record.
_LEGACY_BORROWED = {"active", "borrowed"}
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class _LegacyDocument(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "ignore"}

    id: str


class _LegacyUnit(_LegacyDocument):
    code: str = ""
    name: str = ""
    created_at: Optional[datetime] = None


class _LegacyMidTier(_LegacyUnit):
    cabinet_id: str  # parent, a shelf in canonical terms


class _LegacyFolder(_LegacyUnit):
    shelf_id: str  # parent, a cabinet in canonical terms
    color: Optional[str] = None


class _LegacyProcurement(_LegacyDocument):
    pr_number: str = ""
    description: str = ""
    folder_id: str
    status: str = "archived"
    urgency_level: str = "medium"
    date_added: Optional[datetime] = None
    stack_number: Optional[int] = None
    borrowed_by: Optional[str] = None
    division: Optional[str] = None
    borrowed_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    edited_by: Optional[str] = None
    edited_by_name: Optional[str] = None
    last_edited_at: Optional[datetime] = None
    tags: List[str] = []
    notes: Optional[str] = None


class _LegacyUser(_LegacyDocument):
    name: str = ""
    email: str
    password: str = ""
    role: str = "user"
    status: str = "active"
    created_at: Optional[datetime] = None


@dataclass
class ImportSummary:
    """What an import did, per canonical collection."""

    created: Dict[str, int] = field(default_factory=dict)
    skipped: Dict[str, int] = field(default_factory=dict)
    orphans: List[str] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)
    renumbered: int = 0


def _bump(counter: Dict[str, int], collection: str) -> None:
    counter[collection] = counter.get(collection, 0) + 1


def _documents(raw) -> List[dict]:
    """Normalise a collection to a list of dicts that all carry an ``id``."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [{**value, "id": value.get("id", key)} for key, value in raw.items()]
    return list(raw)


class LegacyImporter:
    """Maps a legacy snapshot into the database within one transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.summary = ImportSummary()
        self._shelves = {row.id for row in db.query(Shelf.id)}
        self._cabinets = {row.id: row.shelf_id for row in db.query(Cabinet.id, Cabinet.shelf_id)}
        self._folders = {row.id: row.cabinet_id for row in db.query(Folder.id, Folder.cabinet_id)}
        self._records = {row.id for row in db.query(Record.id)}
        self._users = {row.id for row in db.query(User.id)}
        self._emails = {row.email for row in db.query(User.email)}
        self._touched_folders: set = set()

    def _parse(self, schema, collection: str, documents: Iterable[dict]):
        for document in documents:
            try:
                yield schema.model_validate(document)
            except PydanticValidationError as e:
                ref = document.get("id", "?") if isinstance(document, dict) else "?"
                self.summary.invalid.append(f"{collection}/{ref}: {e.errors()[0]['msg']}")

    def _orphan(self, collection: str, item_id: str, parent: str, parent_id: str) -> None:
        self.summary.orphans.append(f"{collection}/{item_id}: missing {parent} {parent_id}")

    def import_shelves(self, documents) -> None:
        for item in self._parse(_LegacyUnit, "shelves", documents):
            if item.id in self._shelves:
                _bump(self.summary.skipped, "shelves")
                continue
            self.db.add(Shelf(id=item.id, code=item.code, name=item.name, created_at=item.created_at or utcnow()))
            self._shelves.add(item.id)
            _bump(self.summary.created, "shelves")

    def import_cabinets(self, documents) -> None:
        for item in self._parse(_LegacyMidTier, "cabinets", documents):
            if item.id in self._cabinets:
                _bump(self.summary.skipped, "cabinets")
                continue
            if item.cabinet_id not in self._shelves:
                self._orphan("cabinets", item.id, "shelf", item.cabinet_id)
                continue
            self.db.add(
                Cabinet(
                    id=item.id, code=item.code, name=item.name,
                    shelf_id=item.cabinet_id, created_at=item.created_at or utcnow(),
                )
            )
            self._cabinets[item.id] = item.cabinet_id
            _bump(self.summary.created, "cabinets")

    def import_folders(self, documents) -> None:
        for item in self._parse(_LegacyFolder, "folders", documents):
            if item.id in self._folders:
                _bump(self.summary.skipped, "folders")
                continue
            if item.shelf_id not in self._cabinets:
                self._orphan("folders", item.id, "cabinet", item.shelf_id)
                continue
            self.db.add(
                Folder(
                    id=item.id, code=item.code, name=item.name, color=item.color,
                    cabinet_id=item.shelf_id, created_at=item.created_at or utcnow(),
                )
            )
            self._folders[item.id] = item.shelf_id
            _bump(self.summary.created, "folders")

    def import_records(self, documents) -> None:
        # Placement comes from the folder; the legacy cabinetId/shelfId pair
        # is ignored so a record can never disagree with its folder.
        for item in self._parse(_LegacyProcurement, "records", documents):
            if item.id in self._records:
                _bump(self.summary.skipped, "records")
                continue
            cabinet_id = self._folders.get(item.folder_id)
            if cabinet_id is None:
                self._orphan("records", item.id, "folder", item.folder_id)
                continue

            borrowed = item.status.strip().lower() in _LEGACY_BORROWED
            now = utcnow()
            self.db.add(
                Record(
                    id=item.id,
                    pr_number=item.pr_number.strip().upper(),
                    description=item.description.strip(),
                    shelf_id=self._cabinets[cabinet_id],
                    cabinet_id=cabinet_id,
                    folder_id=item.folder_id,
                    status="borrowed" if borrowed else "archived",
                    urgency_level=item.urgency_level or "medium",
                    date_added=item.date_added or item.created_at or now,
                    stack_number=None if borrowed else item.stack_number,
                    borrowed_by=item.borrowed_by,
                    division=item.division,
                    borrowed_date=item.borrowed_date,
                    return_date=item.return_date,
                    created_by=item.created_by or ANONYMOUS_EMAIL,
                    created_by_name=item.created_by_name or ANONYMOUS_NAME,
                    created_at=item.created_at or now,
                    edited_by=item.edited_by,
                    edited_by_name=item.edited_by_name,
                    last_edited_at=item.last_edited_at,
                    tags=[t.strip() for t in item.tags if t and t.strip()],
                    notes=item.notes,
                )
            )
            self._records.add(item.id)
            self._touched_folders.add(item.folder_id)
            _bump(self.summary.created, "records")

    def import_users(self, documents) -> None:
        for item in self._parse(_LegacyUser, "users", documents):
            email = item.email.strip().lower()
            if item.id in self._users or email in self._emails:
                _bump(self.summary.skipped, "users")
                continue
            if not item.password:
                self.summary.invalid.append(f"users/{item.id}: missing password")
                continue
            if item.password.startswith(_BCRYPT_PREFIXES):
                password_hash = item.password
            else:
                password_hash = hash_password(item.password)
            self.db.add(
                User(
                    id=item.id,
                    name=item.name.strip() or email,
                    email=email,
                    password_hash=password_hash,
                    role="admin" if item.role == "admin" else "user",
                    status="inactive" if item.status == "inactive" else "active",
                    created_at=item.created_at or utcnow(),
                )
            )
            self._users.add(item.id)
            self._emails.add(email)
            _bump(self.summary.created, "users")

    def renumber(self) -> None:
        self.db.flush()
        repo = RecordRepository(self.db)
        for folder_id in sorted(self._touched_folders):
            records = repo.list_in_folder(folder_id)
            self.summary.renumbered += repo.apply_stack_numbers(records, plan_renumber(records, folder_id))


def import_snapshot(
    db: Session,
    snapshot: dict,
    commit: bool = True,
    actor: str = "legacy-import",
) -> ImportSummary:
    """Import a legacy export.

    Commits once at the end (unless *commit* is False, for dry runs). Any
    database error rolls everything back.
    """
    importer = LegacyImporter(db)
    try:
        importer.import_shelves(_documents(snapshot.get("cabinets")))
        db.flush()
        importer.import_cabinets(_documents(snapshot.get("shelves")))
        db.flush()
        importer.import_folders(_documents(snapshot.get("folders")))
        db.flush()
        importer.import_records(_documents(snapshot.get("procurements")))
        importer.import_users(_documents(snapshot.get("users")))
        importer.renumber()
        if commit:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Legacy import failed", extra={"error": str(e)})
        raise DatabaseError("Legacy import failed", e) from e

    summary = importer.summary
    if commit:
        audit_service.log(
            db, actor, "import", "snapshot", None,
            {"created": summary.created, "orphans": len(summary.orphans)},
        )
    logger.info(
        "Legacy import finished",
        extra={
            "created": summary.created,
            "skipped": summary.skipped,
            "orphans": len(summary.orphans),
            "invalid": len(summary.invalid),
        },
    )
    return summary
