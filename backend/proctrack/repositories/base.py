"""Primary-key lookups shared by every repository.

A subclass names its model and the error raised for a missing id. Writes
only flush; the service that owns the transaction decides when to commit,
so one operation can touch several tables and renumber a stack atomically.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from ..database import Base
from ..exceptions import ProcTrackException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    model_class: Type[ModelT]
    not_found_error: Type[ProcTrackException]

    def __init__(self, db: Session):
        self.db = db

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self.db.get(self.model_class, entity_id)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Like ``get_by_id_optional`` but raises ``not_found_error(entity_id)``."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def count(self) -> int:
        return self.db.query(self.model_class).count()

    def add(self, entity: ModelT) -> ModelT:
        # Flush so unique-constraint errors surface inside the caller's try block.
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()
