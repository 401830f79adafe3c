"""Shelf / cabinet / folder navigation.

Pure functions over snapshot collections. The add-record form, the record
list and the visual browser all derive their pickers from here, so a
selection is reset the same way everywhere: choosing a unit clears every
tier below it, and a child that does not belong to the chosen parent is
dropped.

A *snapshot* is anything with ``shelves``, ``cabinets``, ``folders`` and
``records`` sequences (the read model, or a plain namespace in tests).
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from .stacking import preview_stack_number

UNKNOWN_CODE = "?"


def cabinets_for_shelf(cabinets: Iterable, shelf_id: Optional[str]) -> List:
    if not shelf_id:
        return []
    return [c for c in cabinets if c.shelf_id == shelf_id]


def folders_for_cabinet(folders: Iterable, cabinet_id: Optional[str]) -> List:
    if not cabinet_id:
        return []
    return [f for f in folders if f.cabinet_id == cabinet_id]


def records_in_folder(records: Iterable, folder_id: Optional[str]) -> List:
    """Every record filed under *folder_id*, borrowed ones included."""
    if not folder_id:
        return []
    return [r for r in records if r.folder_id == folder_id]


@dataclass(frozen=True)
class LocationSelection:
    """What has been picked so far, top tier first."""

    shelf_id: Optional[str] = None
    cabinet_id: Optional[str] = None
    folder_id: Optional[str] = None

    def select_shelf(self, shelf_id: Optional[str]) -> "LocationSelection":
        return LocationSelection(shelf_id=shelf_id or None)

    def select_cabinet(self, cabinet_id: Optional[str]) -> "LocationSelection":
        return LocationSelection(shelf_id=self.shelf_id, cabinet_id=cabinet_id or None)

    def select_folder(self, folder_id: Optional[str]) -> "LocationSelection":
        return replace(self, folder_id=folder_id or None)

    def go_back(self) -> "LocationSelection":
        """Clear the deepest selected tier."""
        if self.folder_id:
            return replace(self, folder_id=None)
        if self.cabinet_id:
            return replace(self, cabinet_id=None)
        return LocationSelection()


class LocationLookup:
    """Id indexes over a snapshot, built once per request."""

    def __init__(self, snapshot):
        self.shelves: Dict[str, object] = {s.id: s for s in snapshot.shelves}
        self.cabinets: Dict[str, object] = {c.id: c for c in snapshot.cabinets}
        self.folders: Dict[str, object] = {f.id: f for f in snapshot.folders}

    def shelf(self, shelf_id: Optional[str]):
        return self.shelves.get(shelf_id) if shelf_id else None

    def cabinet(self, cabinet_id: Optional[str]):
        return self.cabinets.get(cabinet_id) if cabinet_id else None

    def folder(self, folder_id: Optional[str]):
        return self.folders.get(folder_id) if folder_id else None

    def code_for(self, record) -> str:
        """``"S1-C2-F3"`` style location code; ``?`` stands in for a missing unit."""
        parts = (
            self.shelf(record.shelf_id),
            self.cabinet(record.cabinet_id),
            self.folder(record.folder_id),
        )
        return "-".join(unit.code if unit is not None else UNKNOWN_CODE for unit in parts)

    def normalize(self, selection: LocationSelection) -> LocationSelection:
        """Drop unknown ids and any child that does not hang under its parent."""
        shelf = self.shelf(selection.shelf_id)
        if shelf is None:
            return LocationSelection()
        cabinet = self.cabinet(selection.cabinet_id)
        if cabinet is None or cabinet.shelf_id != shelf.id:
            return LocationSelection(shelf_id=shelf.id)
        folder = self.folder(selection.folder_id)
        if folder is None or folder.cabinet_id != cabinet.id:
            return LocationSelection(shelf_id=shelf.id, cabinet_id=cabinet.id)
        return LocationSelection(shelf.id, cabinet.id, folder.id)


def location_code(record, snapshot) -> str:
    return LocationLookup(snapshot).code_for(record)


def selection_for_folder(snapshot, folder_id: Optional[str]) -> LocationSelection:
    """Full selection leading to *folder_id*, as when a list is opened at a folder."""
    lookup = LocationLookup(snapshot)
    folder = lookup.folder(folder_id)
    if folder is None:
        return LocationSelection()
    cabinet = lookup.cabinet(folder.cabinet_id)
    if cabinet is None:
        return LocationSelection(folder_id=folder.id)
    return LocationSelection(cabinet.shelf_id, cabinet.id, folder.id)


@dataclass(frozen=True)
class LocationOptions:
    selection: LocationSelection
    shelves: List
    cabinets: List
    folders: List
    stack_preview: Optional[int] = None


def resolve_options(snapshot, selection: LocationSelection) -> LocationOptions:
    """Valid choices for every tier given the selection so far.

    The stack-number preview only exists once a folder is chosen; changing a
    higher tier therefore clears it along with the lower selections.
    """
    selection = LocationLookup(snapshot).normalize(selection)
    preview = None
    if selection.folder_id:
        preview = preview_stack_number(snapshot.records, selection.folder_id)
    return LocationOptions(
        selection=selection,
        shelves=list(snapshot.shelves),
        cabinets=cabinets_for_shelf(snapshot.cabinets, selection.shelf_id),
        folders=folders_for_cabinet(snapshot.folders, selection.cabinet_id),
        stack_preview=preview,
    )
