"""
Unit tests for the feed line differential

Author: TM3
Date: 2025-10-17
"""
from bestprice.services.catalog_diff import compute_changed_lines, PreviousFeedStore

HEADER = "upc,name,price"


class TestComputeChangedLines:

    def test_first_run_treats_every_line_as_changed(self):
        diff = compute_changed_lines(f"{HEADER}\n1,A,10\n2,B,20\n", None)
        assert diff.has_changes is True
        assert diff.changed_lines == [HEADER, "1,A,10", "2,B,20"]
        assert diff.changed_count == 2
        assert diff.total_lines == 3

    def test_only_new_or_modified_lines(self):
        previous = f"{HEADER}\n1,A,10\n2,B,20\n3,C,30"
        current = f"{HEADER}\n1,A,10\n2,B,25\n4,D,40"
        diff = compute_changed_lines(current, previous)
        assert diff.changed_lines == [HEADER, "2,B,25", "4,D,40"]
        assert diff.changed_count == 2
        assert diff.removed_lines == 2

    def test_identical_feed_has_no_changes(self):
        content = f"{HEADER}\n1,A,10\n"
        diff = compute_changed_lines(content, content)
        assert diff.has_changes is False
        assert diff.changed_count == 0
        assert diff.changed_content == HEADER

    def test_blank_lines_and_crlf_are_ignored(self):
        diff = compute_changed_lines(f"{HEADER}\r\n\r\n1,A,10\r\n", f"{HEADER}\n1,A,10\n")
        assert diff.has_changes is False

    def test_empty_content(self):
        diff = compute_changed_lines("", None)
        assert diff.has_changes is False
        assert diff.changed_lines == []


class TestPreviousFeedStore:

    def test_missing_copy_loads_none(self, tmp_path):
        store = PreviousFeedStore(str(tmp_path))
        assert store.load("bill_hicks", "catalog") is None

    def test_save_load_and_clear(self, tmp_path):
        store = PreviousFeedStore(str(tmp_path))
        store.save("bill_hicks", "inventory", "Product,Qty\nA,1")

        assert (tmp_path / "bill_hicks" / "previous_inventory.csv").exists()
        assert store.load("bill_hicks", "inventory") == "Product,Qty\nA,1"
        assert not (tmp_path / "bill_hicks" / "previous_inventory.csv.tmp").exists()

        store.clear("bill_hicks", "inventory")
        assert store.load("bill_hicks", "inventory") is None
