"""Visual browser endpoints: shelves -> cabinets -> folders -> files."""

from fastapi import APIRouter, Depends

from ..core.auth import AuthContext, require_auth
from ..schemas.browse import BrowseView
from ..services.browser import browse
from ..services.hierarchy import LocationLookup, LocationSelection, selection_for_folder
from ..services.read_model import ReadModel
from .deps import get_read_model

router = APIRouter(prefix="/api/browse", tags=["browse"])


@router.get("", response_model=BrowseView)
def browse_root(
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    return browse(model, LocationSelection())


@router.get("/shelves/{shelf_id}", response_model=BrowseView)
def browse_shelf(
    shelf_id: str,
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    return browse(model, LocationSelection().select_shelf(shelf_id))


@router.get("/cabinets/{cabinet_id}", response_model=BrowseView)
def browse_cabinet(
    cabinet_id: str,
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    cabinet = LocationLookup(model).cabinet(cabinet_id)
    shelf_id = cabinet.shelf_id if cabinet is not None else None
    return browse(model, LocationSelection(shelf_id=shelf_id).select_cabinet(cabinet_id))


@router.get("/folders/{folder_id}", response_model=BrowseView)
def browse_folder(
    folder_id: str,
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_auth),
):
    """Every record in the folder, borrowed ones included."""
    return browse(model, selection_for_folder(model, folder_id))
