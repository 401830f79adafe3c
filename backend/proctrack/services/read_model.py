"""Process-wide read model fed by the change feed.

Holds one immutable snapshot per collection. Endpoints that only read
(record list, pickers, browser, exports, user list) work from here; writes
go through the services, which publish fresh snapshots after committing.
The application creates a single instance in its lifespan and hands it to
endpoints through a dependency.
"""

import logging
from typing import Callable, List, Tuple

from sqlalchemy.orm import Session

from ..core.change_feed import COLLECTIONS, ChangeFeed
from ..models import Cabinet, Folder, Record, Shelf, User
from ..schemas.location import CabinetResponse, FolderResponse, ShelfResponse
from ..schemas.record import RecordResponse
from ..schemas.user import UserResponse

logger = logging.getLogger(__name__)

# model, ordering, snapshot schema
_SOURCES = {
    "shelves": (Shelf, (Shelf.code, Shelf.id), ShelfResponse),
    "cabinets": (Cabinet, (Cabinet.code, Cabinet.id), CabinetResponse),
    "folders": (Folder, (Folder.code, Folder.id), FolderResponse),
    "records": (Record, (Record.created_at, Record.id), RecordResponse),
    "users": (User, (User.created_at, User.id), UserResponse),
}


class ReadModel:
    """Latest snapshot of every collection plus a loading flag."""

    def __init__(self):
        self.shelves: Tuple[ShelfResponse, ...] = ()
        self.cabinets: Tuple[CabinetResponse, ...] = ()
        self.folders: Tuple[FolderResponse, ...] = ()
        self.records: Tuple[RecordResponse, ...] = ()
        self.users: Tuple[UserResponse, ...] = ()
        self._received: set = set()

    @property
    def loading(self) -> bool:
        """True until every collection has delivered its first snapshot."""
        return not self._received.issuperset(COLLECTIONS)

    def _receiver(self, collection: str) -> Callable:
        def receive(snapshot) -> None:
            setattr(self, collection, tuple(snapshot))
            self._received.add(collection)
        return receive

    def attach(self, feed: ChangeFeed) -> Callable[[], None]:
        """Subscribe to every collection. Returns a handle that detaches again."""
        handles: List[Callable[[], None]] = [
            feed.subscribe(collection, self._receiver(collection)) for collection in COLLECTIONS
        ]

        def detach() -> None:
            for unsubscribe in handles:
                unsubscribe()

        return detach


def load_snapshot(db: Session, collection: str) -> list:
    """Current contents of *collection* as snapshot models."""
    model, order_by, schema = _SOURCES[collection]
    rows = db.query(model).order_by(*order_by).all()
    return [schema.model_validate(row) for row in rows]


def publish_collection(db: Session, feed: ChangeFeed, collection: str) -> None:
    size = feed.publish_latest(collection, lambda: load_snapshot(db, collection))
    logger.debug("Published snapshot", extra={"collection": collection, "size": size})


def publish_all(db: Session, feed: ChangeFeed) -> None:
    for collection in COLLECTIONS:
        publish_collection(db, feed, collection)
