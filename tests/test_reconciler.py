from datetime import date

import pytest

from music_library.models import ItemStatus, Row, rows_from_sheet
from music_library.reconciler import CHECK_IN, build_id_index, check_out, parse_item_ids, reconcile

from .conftest import item_row


def snapshot(sheet):
    return rows_from_sheet(sheet.read_all_rows())


class TestParseItemIds:
    def test_trims_splits_and_drops_empty_tokens(self):
        assert parse_item_ids("  10, 99 ,,10 , ") == ["10", "99", "10"]

    def test_single_numeric_answer(self):
        # Form answers can arrive as numbers
        assert parse_item_ids(42) == ["42"]
        assert parse_item_ids(42.0) == ["42"]

    def test_blank_and_missing(self):
        assert parse_item_ids("   ") == []
        assert parse_item_ids(None) == []
        assert parse_item_ids(" , , ") == []


class TestBuildIdIndex:
    def test_first_row_wins_and_blank_ids_are_not_indexed(self, items):
        items.append_row(item_row("5", title="First"))
        items.append_row(item_row("", title="No id"))
        items.append_row(item_row("5", title="Second"))
        index = build_id_index(snapshot(items))
        assert index["5"].name == "First"
        assert index["5"].row_index == 1
        assert "" not in index

    def test_header_row_is_never_indexed(self):
        header = Row(0, "Item ID", "Item Name", None, "", "", None)
        body = Row(1, "7", "Gloria", ItemStatus.CHECKED_IN, "", "", None)
        assert set(build_id_index([header, body])) == {"7"}

    def test_whitespace_only_id_is_not_indexed(self, items):
        items.append_row(item_row("   ", title="Blank-ish"))
        items.append_row(item_row("6"))
        assert set(build_id_index(snapshot(items))) == {"6"}

    def test_ids_are_matched_exactly(self, items):
        items.append_row(item_row(" 10", title="Padded"))
        index = build_id_index(snapshot(items))
        assert " 10" in index
        assert "10" not in index


class TestReconcile:
    def test_duplicate_and_unknown_ids(self, items):
        items.append_row(item_row("10", status="Checked Out", holder="Ann", email="ann@x.com", due=date(2025, 1, 8)))
        result = reconcile(["10", "99", "10"], snapshot(items), items, CHECK_IN)

        assert result.matched_count == 2
        assert result.not_found_ids == ["99"]
        assert result.matched_rows == [1, 1]
        assert items.read_all_rows()[1] == item_row("10", status="Checked In", holder="", email="", due="")

    def test_counts_cover_every_token(self, items):
        items.append_row(item_row("1"))
        items.append_row(item_row("2"))
        tokens = parse_item_ids("1, 3, 2, 2, 4")
        result = reconcile(tokens, snapshot(items), items, CHECK_IN)
        assert result.matched_count + len(result.not_found_ids) == len(tokens)
        assert result.not_found_ids == ["3", "4"]

    def test_only_first_matching_row_is_written(self, items):
        items.append_row(item_row("5", status="Checked Out", holder="Ann", email="ann@x.com", due=date(2025, 1, 8)))
        items.append_row(item_row("5", status="Checked Out", holder="Bob", email="bob@x.com", due=date(2025, 1, 9)))
        reconcile(["5"], snapshot(items), items, CHECK_IN)

        rows = snapshot(items)
        assert rows[0].status is ItemStatus.CHECKED_IN
        assert rows[1].status is ItemStatus.CHECKED_OUT
        assert rows[1].holder_email == "bob@x.com"

    def test_numeric_id_cells_match_text_requests(self, items):
        items.append_row(item_row(42))
        items.append_row(item_row(43.0))
        result = reconcile(["42", "43"], snapshot(items), items, check_out("Ann", "ann@x.com", date(2025, 2, 1)))
        assert result.matched_count == 2
        assert result.not_found_ids == []

    def test_header_text_is_not_an_item(self, items):
        result = reconcile(["Item ID"], snapshot(items), items, CHECK_IN)
        assert result.matched_count == 0
        assert result.not_found_ids == ["Item ID"]
        assert len(items.read_all_rows()) == 1

    def test_check_in_is_idempotent(self, items):
        items.append_row(item_row("8", status="Checked Out", holder="Ann", email="ann@x.com", due=date(2025, 1, 8)))
        reconcile(["8"], snapshot(items), items, CHECK_IN)
        once = items.read_all_rows()
        reconcile(["8"], snapshot(items), items, CHECK_IN)
        assert items.read_all_rows() == once

    def test_check_out_sets_holder_fields(self, items):
        items.append_row(item_row("3"))
        reconcile(["3"], snapshot(items), items, check_out("Ann Alto", "ann@x.com", date(2025, 2, 1)))
        row = snapshot(items)[0]
        assert row.status is ItemStatus.CHECKED_OUT
        assert row.holder_name == "Ann Alto"
        assert row.holder_email == "ann@x.com"
        assert row.due_date == date(2025, 2, 1)
        # Untouched columns survive the range write
        assert row.name == "Messiah"
        assert row.id == "3"

    def test_no_writes_for_unmatched_ids(self, items):
        items.append_row(item_row("1"))
        before = items.read_all_rows()
        reconcile(["2", "3"], snapshot(items), items, check_out("Ann", "ann@x.com", date(2025, 2, 1)))
        assert items.read_all_rows() == before

    def test_padded_id_cell_does_not_match_trimmed_request(self, items):
        items.append_row(item_row(" 10", status="Checked Out", holder="Ann", email="ann@x.com", due=date(2025, 1, 8)))
        before = items.read_all_rows()
        result = reconcile(parse_item_ids("10"), snapshot(items), items, CHECK_IN)
        assert result.matched_count == 0
        assert result.not_found_ids == ["10"]
        assert items.read_all_rows() == before

    def test_transition_of_wrong_width_writes_nothing(self, items):
        class ShortTransition:
            status = ItemStatus.CHECKED_IN

            def cells(self):
                return ["Checked In", "", ""]

        items.append_row(item_row("1", status="Checked Out", holder="Ann", email="ann@x.com", due=date(2025, 1, 8)))
        before = items.read_all_rows()
        with pytest.raises(ValueError):
            reconcile(["1"], snapshot(items), items, ShortTransition())
        assert items.read_all_rows() == before
