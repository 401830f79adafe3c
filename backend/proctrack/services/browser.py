"""Visual browser: drill down shelves -> cabinets -> folders -> files."""

from collections import Counter
from dataclasses import asdict

from ..schemas.browse import Breadcrumb, BrowseNode, BrowseView
from ..schemas.location import SelectionResponse
from .hierarchy import LocationLookup, LocationSelection, records_in_folder

FOLDER_TILE_COLOR = "#fbbf24"


def _crumb(tier: str, unit) -> Breadcrumb:
    return Breadcrumb(tier=tier, id=unit.id, code=unit.code, name=unit.name)


def browse(snapshot, selection: LocationSelection) -> BrowseView:
    """Build the view for the deepest valid level of *selection*.

    Unknown or mismatched ids are dropped the same way the pickers drop
    them, so a stale link lands on the nearest valid parent.
    """
    lookup = LocationLookup(snapshot)
    selection = lookup.normalize(selection)
    shelf = lookup.shelf(selection.shelf_id)
    cabinet = lookup.cabinet(selection.cabinet_id)
    folder = lookup.folder(selection.folder_id)

    breadcrumbs = []
    for tier, unit in (("shelf", shelf), ("cabinet", cabinet), ("folder", folder)):
        if unit is not None:
            breadcrumbs.append(_crumb(tier, unit))

    view = BrowseView(
        mode="shelves",
        selection=SelectionResponse(**asdict(selection)),
        breadcrumbs=breadcrumbs,
    )

    if folder is not None:
        view.mode = "files"
        view.files = records_in_folder(snapshot.records, folder.id)
    elif cabinet is not None:
        counts = Counter(r.folder_id for r in snapshot.records)
        view.mode = "folders"
        view.nodes = [
            BrowseNode(
                id=f.id, code=f.code, name=f.name,
                child_count=counts[f.id],
                color=f.color or FOLDER_TILE_COLOR,
            )
            for f in snapshot.folders if f.cabinet_id == cabinet.id
        ]
    elif shelf is not None:
        counts = Counter(f.cabinet_id for f in snapshot.folders)
        view.mode = "cabinets"
        view.nodes = [
            BrowseNode(id=c.id, code=c.code, name=c.name, child_count=counts[c.id])
            for c in snapshot.cabinets if c.shelf_id == shelf.id
        ]
    else:
        counts = Counter(c.shelf_id for c in snapshot.cabinets)
        view.nodes = [
            BrowseNode(id=s.id, code=s.code, name=s.name, child_count=counts[s.id])
            for s in snapshot.shelves
        ]
    return view
