"""Request-scoped access to application state and services.

The change feed, read model and pending-action registry are created once in
the application lifespan and stored on ``app.state``; endpoints reach them
only through these dependencies.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.change_feed import ChangeFeed
from ..database import get_db
from ..services.location_service import LocationService
from ..services.read_model import ReadModel
from ..services.record_service import RecordService
from ..services.transitions import PendingActionRegistry
from ..services.user_service import UserService


def get_change_feed(request: Request) -> ChangeFeed:
    return request.app.state.change_feed


def get_read_model(request: Request) -> ReadModel:
    return request.app.state.read_model


def get_pending_actions(request: Request) -> PendingActionRegistry:
    return request.app.state.pending_actions


def get_record_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> RecordService:
    return RecordService(db, feed)


def get_location_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> LocationService:
    return LocationService(db, feed)


def get_user_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> UserService:
    return UserService(db, feed)
