"""Two-step borrow/return confirmation.

    POST   /api/records/{id}/status-change      -- start (see records.py)
    GET    /api/status-changes/{token}          -- show the pending change
    POST   /api/status-changes/{token}/confirm  -- confirm; a return is written here
    POST   /api/status-changes/{token}/details  -- borrower and division; the borrow is written here
    DELETE /api/status-changes/{token}          -- cancel
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..core.auth import AuthContext, require_auth
from ..schemas.record import BorrowDetails, RecordResponse, StatusChangeResponse
from ..services.record_service import RecordService
from ..services.transitions import PendingActionRegistry, StatusChangeFlow
from .deps import get_pending_actions, get_record_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/status-changes", tags=["status changes"])


def flow_response(flow: StatusChangeFlow, record=None) -> StatusChangeResponse:
    return StatusChangeResponse(
        token=flow.token,
        record_id=flow.record_id,
        target_status=flow.target_status,
        state=flow.state.value,
        expires_at=flow.expires_at,
        borrowed_by=flow.borrowed_by,
        division=flow.division,
        record=RecordResponse.model_validate(record) if record is not None else None,
    )


@router.get("/{token}", response_model=StatusChangeResponse)
def get_status_change(
    token: str,
    pending: PendingActionRegistry = Depends(get_pending_actions),
    auth: AuthContext = Depends(require_auth),
):
    return flow_response(pending.get(token))


@router.post("/{token}/confirm", response_model=StatusChangeResponse)
def confirm_status_change(
    token: str,
    service: RecordService = Depends(get_record_service),
    pending: PendingActionRegistry = Depends(get_pending_actions),
    auth: AuthContext = Depends(require_auth),
):
    """Confirm the change. Returns are written now; borrows ask for details next."""
    flow = pending.get(token)
    record: Optional[object] = None
    if flow.confirm():
        record = service.return_record(flow.record_id, auth)
        flow.complete()
        pending.finish(token)
    return flow_response(flow, record)


@router.post("/{token}/details", response_model=StatusChangeResponse)
def submit_borrow_details(
    token: str,
    body: BorrowDetails,
    service: RecordService = Depends(get_record_service),
    pending: PendingActionRegistry = Depends(get_pending_actions),
    auth: AuthContext = Depends(require_auth),
):
    """Record who borrowed it and for which division, then write the borrow.

    Blank details are rejected and the change stays open for another try.
    """
    flow = pending.get(token)
    borrowed_by, division = flow.submit_details(body.borrowed_by, body.division)
    record = service.borrow_record(flow.record_id, borrowed_by, division, auth)
    flow.complete()
    pending.finish(token)
    logger.info("Borrow confirmed", extra={"record_id": flow.record_id})
    return flow_response(flow, record)


@router.delete("/{token}", response_model=StatusChangeResponse)
def cancel_status_change(
    token: str,
    pending: PendingActionRegistry = Depends(get_pending_actions),
    auth: AuthContext = Depends(require_auth),
):
    return flow_response(pending.cancel(token))
