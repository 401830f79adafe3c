"""Shelf, cabinet and folder endpoints.

Reads come from the read model; create/update/delete are admin only and go
through LocationService.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..core.auth import AuthContext, require_admin, require_auth
from ..schemas.location import (
    CabinetCreate,
    CabinetResponse,
    CabinetUpdate,
    FolderCreate,
    FolderResponse,
    FolderUpdate,
    LocationOptionsResponse,
    SelectionResponse,
    ShelfCreate,
    ShelfResponse,
    ShelfUpdate,
)
from ..services.hierarchy import (
    LocationSelection,
    cabinets_for_shelf,
    folders_for_cabinet,
    resolve_options,
)
from ..services.location_service import LocationService
from ..services.read_model import ReadModel
from .deps import get_location_service, get_read_model

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("/shelves", response_model=List[ShelfResponse])
def list_shelves(
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    return list(model.shelves)


@router.get("/cabinets", response_model=List[CabinetResponse])
def list_cabinets(
    shelf_id: Optional[str] = None,
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """All cabinets, or only those on *shelf_id*."""
    if shelf_id is None:
        return list(model.cabinets)
    return cabinets_for_shelf(model.cabinets, shelf_id)


@router.get("/folders", response_model=List[FolderResponse])
def list_folders(
    cabinet_id: Optional[str] = None,
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """All folders, or only those in *cabinet_id*."""
    if cabinet_id is None:
        return list(model.folders)
    return folders_for_cabinet(model.folders, cabinet_id)


@router.get("/options", response_model=LocationOptionsResponse)
def location_options(
    shelf_id: Optional[str] = Query(None),
    cabinet_id: Optional[str] = Query(None),
    folder_id: Optional[str] = Query(None),
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """Cascading picker state: valid choices per tier plus the stack preview."""
    options = resolve_options(model, LocationSelection(shelf_id, cabinet_id, folder_id))
    return LocationOptionsResponse(
        selection=SelectionResponse(
            shelf_id=options.selection.shelf_id,
            cabinet_id=options.selection.cabinet_id,
            folder_id=options.selection.folder_id,
        ),
        shelves=options.shelves,
        cabinets=options.cabinets,
        folders=options.folders,
        stack_preview=options.stack_preview,
    )


# --- Shelves -------------------------------------------------------------


@router.post("/shelves", response_model=ShelfResponse, status_code=201)
def create_shelf(
    body: ShelfCreate,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.create_shelf(body, auth)


@router.put("/shelves/{shelf_id}", response_model=ShelfResponse)
def update_shelf(
    shelf_id: str,
    body: ShelfUpdate,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.update_shelf(shelf_id, body, auth)


@router.delete("/shelves/{shelf_id}", status_code=204)
def delete_shelf(
    shelf_id: str,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    service.delete_shelf(shelf_id, auth)
    return Response(status_code=204)


# --- Cabinets ------------------------------------------------------------


@router.post("/cabinets", response_model=CabinetResponse, status_code=201)
def create_cabinet(
    body: CabinetCreate,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.create_cabinet(body, auth)


@router.put("/cabinets/{cabinet_id}", response_model=CabinetResponse)
def update_cabinet(
    cabinet_id: str,
    body: CabinetUpdate,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.update_cabinet(cabinet_id, body, auth)


@router.delete("/cabinets/{cabinet_id}", status_code=204)
def delete_cabinet(
    cabinet_id: str,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    service.delete_cabinet(cabinet_id, auth)
    return Response(status_code=204)


# --- Folders -------------------------------------------------------------


@router.post("/folders", response_model=FolderResponse, status_code=201)
def create_folder(
    body: FolderCreate,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.create_folder(body, auth)


@router.put("/folders/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: str,
    body: FolderUpdate,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.update_folder(folder_id, body, auth)


@router.delete("/folders/{folder_id}", status_code=204)
def delete_folder(
    folder_id: str,
    service: LocationService = Depends(get_location_service),
    auth: AuthContext = Depends(require_admin),
):
    service.delete_folder(folder_id, auth)
    return Response(status_code=204)
