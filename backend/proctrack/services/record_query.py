"""Filtering, sorting and pagination of the record list.

Pure functions; the record list, its exports and the user list all run
their data through here.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Generic, Iterable, List, Optional, TypeVar, Union

from ..schemas.record import SortDirection, SortField
from .clock import as_utc

T = TypeVar("T")


def _value(v) -> str:
    return v.value if isinstance(v, Enum) else v


@dataclass(frozen=True)
class RecordFilters:
    """Criteria are optional and AND-combined.

    An empty ``statuses`` set lets every status through.
    """

    search: str = ""
    shelf_id: Optional[str] = None
    cabinet_id: Optional[str] = None
    folder_id: Optional[str] = None
    statuses: FrozenSet[str] = field(default_factory=frozenset)
    urgency_level: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "statuses", frozenset(_value(s) for s in self.statuses))

    def matches(self, record) -> bool:
        needle = self.search.strip().lower()
        if needle and needle not in record.pr_number.lower() and needle not in record.description.lower():
            return False
        if self.shelf_id and record.shelf_id != self.shelf_id:
            return False
        if self.cabinet_id and record.cabinet_id != self.cabinet_id:
            return False
        if self.folder_id and record.folder_id != self.folder_id:
            return False
        if self.statuses and _value(record.status) not in self.statuses:
            return False
        if self.urgency_level and record.urgency_level != self.urgency_level:
            return False
        return True


def filter_records(records: Iterable, filters: RecordFilters) -> List:
    return [r for r in records if filters.matches(r)]


def _text_key(value: Optional[str]):
    value = value or ""
    return (value.casefold(), value)


def sort_records(
    records: Iterable,
    sort_field: Union[SortField, str] = SortField.DATE_ADDED,
    direction: Union[SortDirection, str] = SortDirection.ASC,
) -> List:
    """Stable sort of *records*.

    ``date_added`` treats "asc" as newest first. Records without a stack
    number always come last when sorting by ``stack_number``.
    """
    sort_field = SortField(sort_field)
    descending = SortDirection(direction) == SortDirection.DESC
    records = list(records)

    if sort_field == SortField.STACK_NUMBER:
        numbered = [r for r in records if r.stack_number is not None]
        unnumbered = [r for r in records if r.stack_number is None]
        numbered.sort(key=lambda r: r.stack_number, reverse=descending)
        return numbered + unnumbered

    if sort_field == SortField.DATE_ADDED:
        return sorted(records, key=lambda r: as_utc(r.date_added), reverse=not descending)

    attr = "description" if sort_field == SortField.DESCRIPTION else "pr_number"
    return sorted(records, key=lambda r: _text_key(getattr(r, attr)), reverse=descending)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int
    page_count: int


def paginate(items: Iterable[T], page: int = 1, page_size: int = 20) -> Page[T]:
    """Slice out one page. Pages past the end clamp to the last page."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    items = list(items)
    total = len(items)
    page_count = math.ceil(total / page_size)
    page = min(max(page, 1), max(page_count, 1))
    start = (page - 1) * page_size
    return Page(
        items=items[start:start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        page_count=page_count,
    )


def query_records(
    records: Iterable,
    filters: RecordFilters,
    sort_field: Union[SortField, str] = SortField.DATE_ADDED,
    direction: Union[SortDirection, str] = SortDirection.ASC,
    page: int = 1,
    page_size: int = 20,
) -> Page:
    """Filter, sort and paginate in one go."""
    matching = sort_records(filter_records(records, filters), sort_field, direction)
    return paginate(matching, page, page_size)
