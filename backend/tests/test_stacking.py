"""Tests for stack numbering: positions, previews and renumber plans."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from proctrack.services.stacking import compute_stack_numbers, plan_renumber, preview_stack_number

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def rec(id, day=0, status="archived", stack=None, folder="f1"):
    return SimpleNamespace(
        id=id, folder_id=folder, status=status, stack_number=stack,
        date_added=T0 + timedelta(days=day),
    )


class TestComputeStackNumbers:

    def test_orders_by_date_when_unnumbered(self):
        records = [rec("b", day=2), rec("a", day=1), rec("c", day=3)]
        assert compute_stack_numbers(records, "f1") == {"a": 1, "b": 2, "c": 3}

    def test_existing_positions_win(self):
        records = [rec("old", day=0, stack=2), rec("new", day=5, stack=1)]
        assert compute_stack_numbers(records, "f1") == {"new": 1, "old": 2}

    def test_ignores_borrowed_and_other_folders(self):
        records = [rec("a", day=1), rec("b", status="borrowed"), rec("c", folder="f2")]
        assert compute_stack_numbers(records, "f1") == {"a": 1}

    def test_positions_are_contiguous_from_one(self):
        records = [rec("a", stack=3), rec("b", stack=7), rec("c", stack=9)]
        assert sorted(compute_stack_numbers(records, "f1").values()) == [1, 2, 3]

    def test_equal_records_keep_input_order(self):
        records = [rec("x", day=1), rec("y", day=1), rec("z", day=1)]
        assert compute_stack_numbers(records, "f1") == {"x": 1, "y": 2, "z": 3}

    def test_idempotent(self):
        records = [rec("a", day=3, stack=2), rec("b", day=1), rec("c", day=2, stack=5)]
        first = compute_stack_numbers(records, "f1")
        renumbered = [rec(r.id, stack=first[r.id]) for r in records]
        assert compute_stack_numbers(renumbered, "f1") == first

    def test_empty_folder(self):
        assert compute_stack_numbers([], "f1") == {}

    def test_naive_and_aware_dates_compare(self):
        naive = SimpleNamespace(
            id="n", folder_id="f1", status="archived", stack_number=None,
            date_added=datetime(2024, 1, 1),
        )
        assert compute_stack_numbers([rec("a", day=0), naive], "f1") == {"n": 1, "a": 2}

    def test_mixed_folder_order_follows_input(self):
        # Numbered records compare by number, an unnumbered one by date, so the
        # comparison is not transitive and the input order decides.
        a = rec("a", day=4, stack=1)
        b = rec("b", day=1, stack=2)
        returned = rec("r", day=2)
        assert compute_stack_numbers([a, b, returned], "f1") == {"a": 1, "b": 2, "r": 3}
        assert compute_stack_numbers([returned, a, b], "f1") == {"r": 1, "a": 2, "b": 3}


class TestPreviewStackNumber:

    def test_counts_archived_only(self):
        records = [rec("a"), rec("b"), rec("c", status="borrowed"), rec("d", folder="f2")]
        assert preview_stack_number(records, "f1") == 3

    def test_empty_folder_previews_one(self):
        assert preview_stack_number([], "f1") == 1


class TestPlanRenumber:

    def test_borrow_closes_the_gap(self):
        # 1, 2, 3 with #2 borrowed -> the former #3 becomes #2
        records = [rec("a", stack=1), rec("b", status="borrowed", stack=None), rec("c", stack=3)]
        assert plan_renumber(records, "f1") == {"c": 2}

    def test_stale_borrowed_number_is_cleared(self):
        records = [rec("a", stack=1), rec("b", status="borrowed", stack=2)]
        assert plan_renumber(records, "f1") == {"b": None}

    def test_returned_record_slots_in_by_date(self):
        records = [rec("a", day=1, stack=1), rec("b", day=3, stack=2), rec("r", day=2)]
        assert plan_renumber(records, "f1") == {"r": 2, "b": 3}

    def test_correct_folder_needs_no_writes(self):
        records = [rec("a", stack=1), rec("b", stack=2)]
        assert plan_renumber(records, "f1") == {}

    def test_other_folders_untouched(self):
        records = [rec("a", stack=5, folder="f2")]
        assert plan_renumber(records, "f1") == {}
