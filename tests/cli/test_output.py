"""Tests for CLI output helpers."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from rich.console import Console

from docmigrate.cli import output
from docmigrate.cli.output import format_timestamp


@pytest.fixture
def recorded():
    """Swap both consoles for recording ones."""
    out = Console(record=True, width=120)
    err = Console(record=True, width=120)
    with patch.object(output, "console", out), patch.object(output, "error_console", err):
        yield out, err


class TestFormatTimestamp:
    def test_none(self):
        assert format_timestamp(None) == "-"

    def test_converts_to_utc(self):
        ts = datetime(2024, 5, 1, 14, 30, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(ts) == "2024-05-01 12:30:00 UTC"

    def test_isoformat_string(self):
        assert format_timestamp("2024-05-01T12:30:00+00:00") == "2024-05-01 12:30:00 UTC"

    def test_unparseable_string_is_returned(self):
        assert format_timestamp("yesterday") == "yesterday"


class TestMessages:
    def test_error_with_exception(self, recorded):
        _, err = recorded

        output.print_error("Migration failed", RuntimeError("index [email] exists"))

        text = err.export_text()
        assert "Error: Migration failed" in text
        assert "RuntimeError: index [email] exists" in text

    def test_error_without_exception(self, recorded):
        out, err = recorded

        output.print_error("Bad name")

        assert err.export_text().strip() == "Error: Bad name"
        assert out.export_text() == ""

    def test_success_and_warning(self, recorded):
        out, _ = recorded

        output.print_success("Applied 1 migration(s)")
        output.print_warning("Cancelled.")

        text = out.export_text()
        assert "OK Applied 1 migration(s)" in text
        assert "Warning: Cancelled." in text

    def test_json_serializes_datetimes(self, recorded):
        out, _ = recorded

        output.print_json({"version": 2, "timestamp": datetime(2024, 5, 1, tzinfo=timezone.utc)})

        text = out.export_text()
        assert '"version": 2' in text
        assert "2024-05-01 00:00:00+00:00" in text
