"""Stack numbering for archived records.

Archived records in a folder are physically stacked; each one's stack number
is its 1-based position in that stack. Borrowed records have no position.

Everything here is pure and works on anything shaped like a record
(``id``, ``folder_id``, ``status``, ``stack_number``, ``date_added``): ORM rows
for writes, snapshot models for previews.
"""

from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional

from .clock import as_utc

ARCHIVED = "archived"


def _archived_in_folder(records: Iterable, folder_id: str) -> List:
    return [r for r in records if r.folder_id == folder_id and r.status == ARCHIVED]


def _compare(a, b) -> int:
    # Existing positions win when both records have one; otherwise the
    # record added first goes lower in the stack.
    if a.stack_number is not None and b.stack_number is not None:
        return a.stack_number - b.stack_number
    left, right = as_utc(a.date_added), as_utc(b.date_added)
    return (left > right) - (left < right)


def compute_stack_numbers(records: Iterable, folder_id: str) -> Dict[str, int]:
    """Map every archived record in *folder_id* to its stack position.

    The sort is stable, so records that compare equal keep their input order.
    When numbered and unnumbered records are mixed the comparison is not
    transitive and the result depends on input order; writes pass rows in
    insertion order.
    Idempotent: feeding the result back in yields the same map.
    """
    ordered = sorted(_archived_in_folder(records, folder_id), key=cmp_to_key(_compare))
    return {record.id: position for position, record in enumerate(ordered, start=1)}


def preview_stack_number(records: Iterable, folder_id: str) -> int:
    """Position a new archived record would get in *folder_id*."""
    return len(_archived_in_folder(records, folder_id)) + 1


def plan_renumber(records: Iterable, folder_id: str) -> Dict[str, Optional[int]]:
    """Writes needed to bring *folder_id* back to a contiguous stack.

    Returns ``{record_id: new_stack_number}`` for archived records whose
    position changed and ``{record_id: None}`` for borrowed records that still
    carry a stale number. Records already correct are left out.
    """
    records = list(records)
    positions = compute_stack_numbers(records, folder_id)
    plan: Dict[str, Optional[int]] = {}
    for record in records:
        if record.folder_id != folder_id:
            continue
        if record.id in positions:
            if record.stack_number != positions[record.id]:
                plan[record.id] = positions[record.id]
        elif record.stack_number is not None:
            plan[record.id] = None
    return plan
