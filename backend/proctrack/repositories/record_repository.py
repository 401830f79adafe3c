"""Repository for procurement record database operations."""

from typing import List, Dict, Optional

from ..exceptions import RecordNotFoundError
from ..models import Record
from .base import BaseRepository


class RecordRepository(BaseRepository[Record]):
    model_class = Record
    not_found_error = RecordNotFoundError

    def list_in_folder(self, folder_id: str) -> List[Record]:
        """All records of a folder in insertion order (ties in the stack keep it)."""
        return (
            self.db.query(Record)
            .filter(Record.folder_id == folder_id)
            .order_by(Record.created_at, Record.id)
            .all()
        )

    def apply_stack_numbers(self, records: List[Record], plan: Dict[str, Optional[int]]) -> int:
        """Write planned stack numbers onto loaded rows. Returns rows touched."""
        touched = 0
        for record in records:
            if record.id in plan:
                record.stack_number = plan[record.id]
                touched += 1
        if touched:
            self.db.flush()
        return touched
