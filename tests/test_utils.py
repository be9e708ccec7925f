"""Tests for CSV codec, pagination and debouncing helpers."""

import threading
import time

import pytest

from stockbook.utils.csv_codec import format_cell, parse_csv, to_csv
from stockbook.utils.debounce import Debouncer
from stockbook.utils.pagination import paginate


class TestCsvCodec:
    """Tests for CSV encoding/decoding."""

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (1000.0, "1000"),
        (350.5, "350.5"),
        (7, "7"),
        ("text", "text"),
    ])
    def test_format_cell(self, value, expected):
        assert format_cell(value) == expected

    def test_quotes_only_when_needed(self):
        text = to_csv(["name", "notes"], [["Soap", 'Big, "fresh"'], ["Tea", None]])

        assert text == 'name,notes\nSoap,"Big, ""fresh"""\nTea,\n'

    def test_parse_quoted_fields(self):
        headers, rows = parse_csv('name,notes\n"Soap, bar","line1\nline2"\n')

        assert headers == ["name", "notes"]
        assert rows == [{"name": "Soap, bar", "notes": "line1\nline2"}]

    def test_parse_skips_blank_and_short_rows(self):
        headers, rows = parse_csv("\ufeffname,qty\n\nTea,1\nbroken\nCoffee,2\n")

        assert headers == ["name", "qty"]
        assert [row["name"] for row in rows] == ["Tea", "Coffee"]

    def test_parse_empty(self):
        with pytest.raises(ValueError):
            parse_csv("  \n\n")


class TestPagination:
    """Tests for paginate()."""

    def test_middle_page(self):
        page = paginate(list(range(25)), page=2, per_page=10)

        assert page.items == list(range(10, 20))
        assert (page.start, page.end, page.total_pages) == (11, 20, 3)
        assert page.has_next and page.has_previous

    def test_out_of_range_page_is_clamped(self):
        page = paginate(list(range(25)), page=9, per_page=10)

        assert page.page == 3
        assert page.items == list(range(20, 25))
        assert not page.has_next

    def test_empty(self):
        page = paginate([], page=1, per_page=10)

        assert page.items == []
        assert (page.start, page.end) == (0, 0)
        assert not page.has_previous

    def test_invalid_per_page(self):
        with pytest.raises(ValueError):
            paginate([1], per_page=0)


class TestDebouncer:
    """Tests for keyed debouncing."""

    def test_only_last_call_runs(self):
        debouncer = Debouncer(0.05)
        calls = []
        done = threading.Event()

        def record(term):
            calls.append(term)
            done.set()

        for term in ("r", "ri", "ric"):
            debouncer.call("search", record, term)

        assert done.wait(2)
        time.sleep(0.1)
        assert calls == ["ric"]
        assert not debouncer.pending("search")

    def test_keys_are_independent(self):
        debouncer = Debouncer(0.05)
        calls = []

        debouncer.call("items", calls.append, "a")
        debouncer.call("logs", calls.append, "b")
        time.sleep(0.3)

        assert sorted(calls) == ["a", "b"]

    def test_cancel(self):
        debouncer = Debouncer(0.05)
        calls = []

        debouncer.call("search", calls.append, "x")
        assert debouncer.pending("search")
        assert debouncer.cancel("search")
        assert not debouncer.cancel("search")
        time.sleep(0.15)

        assert calls == []

    def test_cancel_all(self):
        debouncer = Debouncer(0.05)
        calls = []

        debouncer.call("a", calls.append, 1)
        debouncer.call("b", calls.append, 2)
        debouncer.cancel_all()
        time.sleep(0.15)

        assert calls == []
