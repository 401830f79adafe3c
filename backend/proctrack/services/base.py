"""Shared commit-and-publish handling for services that write."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.change_feed import ChangeFeed
from ..exceptions import DatabaseError
from .read_model import publish_collection

logger = logging.getLogger(__name__)


class WriteService:
    """Base for services that mutate the store.

    ``feed`` is optional so services can be used from scripts and tests
    without a running read model.
    """

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed

    @contextmanager
    def _writing(self, failure_message: str, *collections: str) -> Iterator[None]:
        """Run the block as one transaction, then publish *collections*.

        Any error rolls the whole block back, so callers never observe a
        half-applied change. Database errors surface as DatabaseError.
        """
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                failure_message,
                extra={"error": str(e), "collections": list(collections)},
            )
            raise DatabaseError(failure_message, e) from e
        except Exception:
            self.db.rollback()
            raise
        self.publish(*collections)

    def publish(self, *collections: str) -> None:
        if self.feed is None:
            return
        for collection in collections:
            publish_collection(self.db, self.feed, collection)
