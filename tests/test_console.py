"""Tests for the progress line and duration formatting."""

import io

from rich.console import Console

from core.console import format_duration, percent_done, write_done, write_progress


def capture():
    return Console(file=io.StringIO(), highlight=False, width=120)


class TestFormatting:
    def test_percent_rounds_half_up(self):
        assert percent_done(1, 16) == "6.3"

    def test_percent_of_whole_catalog(self):
        assert percent_done(23, 23) == "100"

    def test_percent_without_items(self):
        assert percent_done(0, 0) == "---.-"

    def test_sub_second_duration_in_ms(self):
        assert format_duration(999) == "999 ms"

    def test_duration_rounds_half_up(self):
        assert format_duration(2500) == "3 s"
        assert format_duration(2499) == "2 s"


class TestOutput:
    def test_progress_line(self):
        out = capture()
        write_progress(10, 23, out=out)
        assert "Processing component 10/23 (43.5%)" in out.file.getvalue()

    def test_done_line(self):
        out = capture()
        write_done(1500, out=out)
        assert out.file.getvalue().endswith(" - Done in 2 s\n")
