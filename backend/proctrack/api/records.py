"""Procurement record endpoints.

Endpoints are thin: lists, previews and exports read the read model; every
write goes through RecordService, which renumbers stacks and publishes.
"""

import io
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import StreamingResponse

from ..core.auth import AuthContext, require_auth
from ..core.config import settings
from ..exceptions import FolderNotFoundError
from ..schemas.location import SelectionResponse
from ..schemas.record import (
    BatchResult,
    BulkDeleteRequest,
    RecordCreate,
    RecordListItem,
    RecordPageResponse,
    RecordResponse,
    RecordStatus,
    RecordUpdate,
    ReportResponse,
    ReportVariant,
    SortDirection,
    SortField,
    StackPreviewResponse,
    StatusChangeRequest,
    StatusChangeResponse,
)
from ..services import export_service
from ..services.hierarchy import LocationLookup, LocationSelection, selection_for_folder
from ..services.read_model import ReadModel
from ..services.record_query import RecordFilters, filter_records, query_records, sort_records
from ..services.record_service import RecordService
from ..services.stacking import preview_stack_number
from ..services.transitions import PendingActionRegistry, check_transition
from .deps import get_pending_actions, get_read_model, get_record_service
from .status_changes import flow_response

router = APIRouter(prefix="/api/records", tags=["records"])

DEFAULT_FOLDER_COLOR = "#FF6B6B"


class RecordQueryParams:
    """Filter and sort query parameters shared by the list and the exports."""

    def __init__(
        self,
        search: str = "",
        shelf_id: Optional[str] = None,
        cabinet_id: Optional[str] = None,
        folder_id: Optional[str] = None,
        status: Optional[List[RecordStatus]] = Query(None),
        urgency_level: Optional[str] = None,
        sort: SortField = SortField.DATE_ADDED,
        direction: SortDirection = SortDirection.ASC,
    ):
        self.search = search
        self.selection = LocationSelection(shelf_id, cabinet_id, folder_id)
        self.statuses = frozenset(status or [])
        self.urgency_level = urgency_level or None
        self.sort = sort
        self.direction = direction

    def resolve_selection(self, model: ReadModel) -> LocationSelection:
        """Selection echoed back to the picker.

        Normalised, and a bare folder id pulls in its shelf and cabinet.
        Filtering never goes through this.
        """
        selection = self.selection
        if selection.folder_id and not (selection.shelf_id or selection.cabinet_id):
            selection = selection_for_folder(model, selection.folder_id)
        return LocationLookup(model).normalize(selection)

    def filters(self) -> RecordFilters:
        """Exact match on every id the client sent; an unknown id matches nothing."""
        return RecordFilters(
            search=self.search,
            shelf_id=self.selection.shelf_id,
            cabinet_id=self.selection.cabinet_id,
            folder_id=self.selection.folder_id,
            statuses=self.statuses,
            urgency_level=self.urgency_level,
        )

    def matching(self, model: ReadModel) -> list:
        """Every matching record, sorted, unpaginated."""
        return sort_records(filter_records(model.records, self.filters()), self.sort, self.direction)


def _list_item(record: RecordResponse, lookup: LocationLookup) -> RecordListItem:
    folder = lookup.folder(record.folder_id)
    return RecordListItem(
        **record.model_dump(),
        location=lookup.code_for(record),
        folder_color=(folder.color if folder is not None and folder.color else DEFAULT_FOLDER_COLOR),
        status_label=export_service.status_label(record.status),
    )


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("", response_model=RecordPageResponse)
def list_records(
    page: int = Query(1),
    page_size: Optional[int] = Query(None, ge=1, le=500),
    params: RecordQueryParams = Depends(),
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """Filtered, sorted, paginated record list."""
    selection = params.resolve_selection(model)
    result = query_records(
        model.records,
        params.filters(),
        params.sort,
        params.direction,
        page=page,
        page_size=page_size or settings.records_page_size,
    )
    lookup = LocationLookup(model)
    return RecordPageResponse(
        items=[_list_item(r, lookup) for r in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        page_count=result.page_count,
        loading=model.loading,
        selection=SelectionResponse(
            shelf_id=selection.shelf_id,
            cabinet_id=selection.cabinet_id,
            folder_id=selection.folder_id,
        ),
    )


# --- Fixed-path endpoints (before /{record_id} to avoid route shadowing) ---


@router.get("/stack-preview", response_model=StackPreviewResponse)
def stack_preview(
    folder_id: str,
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """Stack number a new archived record in *folder_id* would receive."""
    if LocationLookup(model).folder(folder_id) is None:
        raise FolderNotFoundError(folder_id)
    return StackPreviewResponse(
        folder_id=folder_id,
        stack_number=preview_stack_number(model.records, folder_id),
    )


@router.get("/export/csv")
def export_csv(
    params: RecordQueryParams = Depends(),
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    body = export_service.render_csv(params.matching(model), LocationLookup(model))
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers=_attachment(export_service.export_filename("csv")),
    )


@router.get("/export/xlsx")
def export_xlsx(
    params: RecordQueryParams = Depends(),
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    body = export_service.render_xlsx(params.matching(model), LocationLookup(model))
    return StreamingResponse(
        io.BytesIO(body),
        media_type=export_service.XLSX_MEDIA_TYPE,
        headers=_attachment(export_service.export_filename("xlsx")),
    )


@router.get("/export/pdf", response_model=ReportResponse)
def export_pdf(
    variant: ReportVariant = ReportVariant.SUMMARY,
    params: RecordQueryParams = Depends(),
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """Report table for the PDF renderer (summary or full layout)."""
    return export_service.build_report(params.matching(model), LocationLookup(model), variant)


@router.post("/bulk-delete", response_model=BatchResult)
def bulk_delete(
    body: BulkDeleteRequest,
    service: RecordService = Depends(get_record_service),
    auth: AuthContext = Depends(require_auth),
):
    return service.bulk_delete(body.record_ids, auth)


# --- Single record --------------------------------------------------------


@router.post("", response_model=RecordResponse, status_code=201)
def create_record(
    body: RecordCreate,
    service: RecordService = Depends(get_record_service),
    auth: AuthContext = Depends(require_auth),
):
    return service.create_record(body, auth)


@router.get("/{record_id}", response_model=RecordResponse)
def get_record(
    record_id: str,
    service: RecordService = Depends(get_record_service),
    auth: AuthContext = Depends(require_auth),
):
    return service.get_record(record_id)


@router.put("/{record_id}", response_model=RecordResponse)
def update_record(
    record_id: str,
    body: RecordUpdate,
    service: RecordService = Depends(get_record_service),
    auth: AuthContext = Depends(require_auth),
):
    return service.update_record(record_id, body, auth)


@router.delete("/{record_id}", status_code=204)
def delete_record(
    record_id: str,
    service: RecordService = Depends(get_record_service),
    auth: AuthContext = Depends(require_auth),
):
    service.delete_record(record_id, auth)
    return Response(status_code=204)


@router.post("/{record_id}/status-change", response_model=StatusChangeResponse, status_code=202)
def start_status_change(
    record_id: str,
    body: StatusChangeRequest,
    service: RecordService = Depends(get_record_service),
    pending: PendingActionRegistry = Depends(get_pending_actions),
    auth: AuthContext = Depends(require_auth),
):
    """Open a borrow/return confirmation. Nothing is written yet."""
    record = service.get_record(record_id)
    check_transition(record.status, body.status, record_id)
    flow = pending.start(record_id, body.status)
    return flow_response(flow)
