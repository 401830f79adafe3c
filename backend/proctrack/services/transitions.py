"""Borrow / return status changes and their two-step confirmation.

A status change is never written on the first request. The client starts a
``StatusChangeFlow`` (idle -> confirming), confirms it, and for a borrow
supplies who took the record and for which division (editing_details). Only
then does the caller issue the write and mark the flow completed.

Flows live in a ``PendingActionRegistry`` keyed by an opaque token and expire
after a short TTL.
"""

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from ..exceptions import InvalidTransitionError, PendingActionNotFoundError, ValidationError
from ..schemas.record import RecordStatus
from .clock import utcnow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"


class FlowState(str, Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    EDITING_DETAILS = "editing_details"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def check_transition(current, target, record_id: Optional[str] = None) -> None:
    """Only archived -> borrowed and borrowed -> archived are allowed."""
    current, target = RecordStatus(current), RecordStatus(target)
    if current == target:
        raise InvalidTransitionError(f"Record is already {current.value}", record_id=record_id)


def require_borrow_details(borrowed_by: Optional[str], division: Optional[str]) -> Tuple[str, str]:
    """Both fields must be non-blank; returns them stripped."""
    borrowed_by = (borrowed_by or "").strip()
    division = (division or "").strip()
    if not borrowed_by:
        raise ValidationError(REQUIRED_FIELDS_MESSAGE, field="borrowed_by")
    if not division:
        raise ValidationError(REQUIRED_FIELDS_MESSAGE, field="division")
    return borrowed_by, division


@dataclass
class StatusChangeFlow:
    """Pending confirmation for one record's status change."""

    record_id: str
    target_status: RecordStatus
    token: str = field(default_factory=lambda: secrets.token_urlsafe(16))
    state: FlowState = FlowState.IDLE
    borrowed_by: str = ""
    division: str = ""
    expires_at: Optional[datetime] = None

    @property
    def is_borrow(self) -> bool:
        return self.target_status == RecordStatus.BORROWED

    def _expect(self, *states: FlowState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(
                f"Status change is {self.state.value}", record_id=self.record_id
            )

    def request(self) -> None:
        self._expect(FlowState.IDLE)
        self.state = FlowState.CONFIRMING

    def confirm(self) -> bool:
        """Accept the intent. Returns True when the write may be issued now.

        A return needs nothing more. A borrow moves on to collecting details.
        """
        if self.is_borrow:
            self._expect(FlowState.CONFIRMING, FlowState.EDITING_DETAILS)
            self.state = FlowState.EDITING_DETAILS
            return False
        self._expect(FlowState.CONFIRMING)
        return True

    def submit_details(self, borrowed_by: Optional[str], division: Optional[str]) -> Tuple[str, str]:
        self._expect(FlowState.EDITING_DETAILS)
        self.borrowed_by = (borrowed_by or "").strip()
        self.division = (division or "").strip()
        return require_borrow_details(self.borrowed_by, self.division)

    def complete(self) -> None:
        self._expect(FlowState.CONFIRMING, FlowState.EDITING_DETAILS)
        self.state = FlowState.COMPLETED

    def cancel(self) -> None:
        self._expect(FlowState.IDLE, FlowState.CONFIRMING, FlowState.EDITING_DETAILS)
        self.state = FlowState.CANCELLED


class PendingActionRegistry:
    """Thread-safe store of in-flight status changes.

    Starting a new change for a record replaces any older one for the same
    record. Expired flows are dropped lazily.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], datetime] = utcnow):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._flows: Dict[str, StatusChangeFlow] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired()
            return len(self._flows)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [t for t, f in self._flows.items() if f.expires_at is not None and f.expires_at <= now]
        for token in expired:
            del self._flows[token]
        if expired:
            logger.debug("Dropped %d expired status changes", len(expired))

    def start(self, record_id: str, target_status) -> StatusChangeFlow:
        flow = StatusChangeFlow(record_id=record_id, target_status=RecordStatus(target_status))
        flow.request()
        flow.expires_at = self._clock() + self._ttl
        with self._lock:
            self._evict_expired()
            stale = [t for t, f in self._flows.items() if f.record_id == record_id]
            for token in stale:
                del self._flows[token]
            self._flows[flow.token] = flow
        return flow

    def get(self, token: str) -> StatusChangeFlow:
        with self._lock:
            self._evict_expired()
            flow = self._flows.get(token)
        if flow is None:
            raise PendingActionNotFoundError(token)
        return flow

    def finish(self, token: str) -> None:
        """Forget a completed or cancelled flow."""
        with self._lock:
            self._flows.pop(token, None)

    def cancel(self, token: str) -> StatusChangeFlow:
        flow = self.get(token)
        flow.cancel()
        self.finish(token)
        return flow
