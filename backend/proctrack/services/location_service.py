"""Location service: shelves, cabinets and folders.

Keeps the tree consistent: every cabinet sits on an existing shelf, every
folder in an existing cabinet, and a unit that still holds anything cannot
be deleted. Moving a cabinet or folder carries its records' placement along.
"""

import logging
import uuid

from ..core.auth import AuthContext
from ..exceptions import ConflictError, ValidationError
from ..models import Cabinet, Folder, Record, Shelf
from ..repositories import CabinetRepository, FolderRepository, ShelfRepository
from ..schemas.location import (
    CabinetCreate,
    CabinetUpdate,
    FolderCreate,
    FolderUpdate,
    ShelfCreate,
    ShelfUpdate,
)
from . import audit_service
from .base import WriteService

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class LocationService(WriteService):
    """Create, edit and delete storage locations."""

    def __init__(self, db, feed=None):
        super().__init__(db, feed)
        self.shelf_repo = ShelfRepository(db)
        self.cabinet_repo = CabinetRepository(db)
        self.folder_repo = FolderRepository(db)

    # -- Shelves ------------------------------------------------------------

    def create_shelf(self, data: ShelfCreate, actor: AuthContext) -> Shelf:
        with self._writing("Failed to create shelf", "shelves"):
            shelf = self.shelf_repo.add(Shelf(id=_new_id(), code=data.code, name=data.name))
        audit_service.log(self.db, actor.email, "create", "shelf", shelf.id, {"code": shelf.code})
        return shelf

    def update_shelf(self, shelf_id: str, data: ShelfUpdate, actor: AuthContext) -> Shelf:
        shelf = self.shelf_repo.get_by_id(shelf_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        with self._writing("Failed to update shelf", "shelves"):
            for name, value in changes.items():
                setattr(shelf, name, value)
        audit_service.log(self.db, actor.email, "update", "shelf", shelf_id, changes)
        return shelf

    def delete_shelf(self, shelf_id: str, actor: AuthContext) -> None:
        shelf = self.shelf_repo.get_by_id(shelf_id)
        if self.shelf_repo.count_cabinets(shelf_id):
            raise ConflictError("Shelf still has cabinets", details={"shelf_id": shelf_id})
        with self._writing("Failed to delete shelf", "shelves"):
            self.shelf_repo.delete(shelf)
        audit_service.log(self.db, actor.email, "delete", "shelf", shelf_id)

    # -- Cabinets -----------------------------------------------------------

    def _require_shelf(self, shelf_id: str) -> Shelf:
        shelf = self.shelf_repo.get_by_id_optional(shelf_id)
        if shelf is None:
            raise ValidationError("Selected shelf does not exist", field="shelf_id")
        return shelf

    def create_cabinet(self, data: CabinetCreate, actor: AuthContext) -> Cabinet:
        self._require_shelf(data.shelf_id)
        with self._writing("Failed to create cabinet", "cabinets"):
            cabinet = self.cabinet_repo.add(
                Cabinet(id=_new_id(), code=data.code, name=data.name, shelf_id=data.shelf_id)
            )
        audit_service.log(self.db, actor.email, "create", "cabinet", cabinet.id, {"code": cabinet.code})
        return cabinet

    def update_cabinet(self, cabinet_id: str, data: CabinetUpdate, actor: AuthContext) -> Cabinet:
        cabinet = self.cabinet_repo.get_by_id(cabinet_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        moved = "shelf_id" in changes and changes["shelf_id"] != cabinet.shelf_id
        if moved:
            self._require_shelf(changes["shelf_id"])

        with self._writing("Failed to update cabinet", "cabinets", "records"):
            for name, value in changes.items():
                setattr(cabinet, name, value)
            if moved:
                self.db.query(Record).filter(Record.cabinet_id == cabinet_id).update(
                    {Record.shelf_id: changes["shelf_id"]}, synchronize_session="fetch"
                )
        audit_service.log(self.db, actor.email, "update", "cabinet", cabinet_id, changes)
        return cabinet

    def delete_cabinet(self, cabinet_id: str, actor: AuthContext) -> None:
        cabinet = self.cabinet_repo.get_by_id(cabinet_id)
        if self.cabinet_repo.count_folders(cabinet_id) or self.cabinet_repo.count_records(cabinet_id):
            raise ConflictError("Cabinet still has folders", details={"cabinet_id": cabinet_id})
        with self._writing("Failed to delete cabinet", "cabinets"):
            self.cabinet_repo.delete(cabinet)
        audit_service.log(self.db, actor.email, "delete", "cabinet", cabinet_id)

    # -- Folders ------------------------------------------------------------

    def _require_cabinet(self, cabinet_id: str) -> Cabinet:
        cabinet = self.cabinet_repo.get_by_id_optional(cabinet_id)
        if cabinet is None:
            raise ValidationError("Selected cabinet does not exist", field="cabinet_id")
        return cabinet

    def create_folder(self, data: FolderCreate, actor: AuthContext) -> Folder:
        self._require_cabinet(data.cabinet_id)
        with self._writing("Failed to create folder", "folders"):
            folder = self.folder_repo.add(
                Folder(
                    id=_new_id(),
                    code=data.code,
                    name=data.name,
                    color=data.color or None,
                    cabinet_id=data.cabinet_id,
                )
            )
        audit_service.log(self.db, actor.email, "create", "folder", folder.id, {"code": folder.code})
        return folder

    def update_folder(self, folder_id: str, data: FolderUpdate, actor: AuthContext) -> Folder:
        folder = self.folder_repo.get_by_id(folder_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        target = None
        if "cabinet_id" in changes and changes["cabinet_id"] != folder.cabinet_id:
            target = self._require_cabinet(changes["cabinet_id"])

        with self._writing("Failed to update folder", "folders", "records"):
            for name, value in changes.items():
                setattr(folder, name, value)
            if target is not None:
                self.db.query(Record).filter(Record.folder_id == folder_id).update(
                    {Record.cabinet_id: target.id, Record.shelf_id: target.shelf_id},
                    synchronize_session="fetch",
                )
        audit_service.log(self.db, actor.email, "update", "folder", folder_id, changes)
        return folder

    def delete_folder(self, folder_id: str, actor: AuthContext) -> None:
        folder = self.folder_repo.get_by_id(folder_id)
        if self.folder_repo.count_records(folder_id):
            raise ConflictError("Folder still contains records", details={"folder_id": folder_id})
        with self._writing("Failed to delete folder", "folders"):
            self.folder_repo.delete(folder)
        audit_service.log(self.db, actor.email, "delete", "folder", folder_id)
