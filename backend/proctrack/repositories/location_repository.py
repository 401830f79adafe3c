"""Repositories for the shelf / cabinet / folder tree."""

from ..exceptions import CabinetNotFoundError, FolderNotFoundError, ShelfNotFoundError
from ..models import Cabinet, Folder, Record, Shelf
from .base import BaseRepository


class ShelfRepository(BaseRepository[Shelf]):
    model_class = Shelf
    not_found_error = ShelfNotFoundError

    def count_cabinets(self, shelf_id: str) -> int:
        return self.db.query(Cabinet).filter(Cabinet.shelf_id == shelf_id).count()


class CabinetRepository(BaseRepository[Cabinet]):
    model_class = Cabinet
    not_found_error = CabinetNotFoundError

    def count_folders(self, cabinet_id: str) -> int:
        return self.db.query(Folder).filter(Folder.cabinet_id == cabinet_id).count()

    def count_records(self, cabinet_id: str) -> int:
        return self.db.query(Record).filter(Record.cabinet_id == cabinet_id).count()


class FolderRepository(BaseRepository[Folder]):
    model_class = Folder
    not_found_error = FolderNotFoundError

    def count_records(self, folder_id: str) -> int:
        return self.db.query(Record).filter(Record.folder_id == folder_id).count()
