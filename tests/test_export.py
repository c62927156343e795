# ABOUTME: Tests for the CSV, plain-text and PDF weather exports.
# ABOUTME: Checks row layout, caps, number formatting and the rendered PDF rows.

import csv
import re
import io
import zlib
from datetime import datetime, timedelta, timezone

from src.export import CSV_HEADER, to_csv, to_pdf, to_text_report
from src.models import Condition, DailyForecast, HourlyForecast

NOON_EPOCH = 1736942400
T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
RAIN = Condition(description="Light rain, showers", icon="10d")
CLEAR = Condition(description="Clear sky", icon="01d")


def _hourly(n: int) -> list[HourlyForecast]:
    return [
        HourlyForecast(timestamp=T0 + timedelta(hours=i + 1), temperature=20.5 + i, conditions=RAIN)
        for i in range(n)
    ]


def _daily(n: int) -> list[DailyForecast]:
    return [
        DailyForecast(timestamp=T0 + timedelta(days=i), temp_max=28.0, temp_min=18.0, conditions=CLEAR)
        for i in range(n)
    ]


class TestToCsv:
    def test_current_row(self, snapshot_factory):
        """The first data row holds the current readings with epoch seconds.

        Implementation: Exports a snapshot with no forecast.
        Passing implies: Whole numbers are written without a trailing .0.
        """
        lines = to_csv(snapshot_factory()).split("\n")

        assert lines[0] == ",".join(CSV_HEADER)
        assert lines[1] == f"current,{NOON_EPOCH},22,50,1013,3,2,Clear sky"
        assert len(lines) == 2

    def test_forecast_rows_are_capped(self, snapshot_factory):
        rows = list(csv.reader(io.StringIO(to_csv(snapshot_factory(hourly=_hourly(30), daily=_daily(8))))))

        sections = [r[0] for r in rows[1:]]
        assert sections.count("hourly") == 24
        assert sections.count("daily") == 7

        hourly = rows[2]
        assert hourly == ["hourly", str(NOON_EPOCH + 3600), "20.5", "", "", "", "", "Light rain, showers"]
        daily = rows[-7]
        assert daily == ["daily", str(NOON_EPOCH), "18-28", "", "", "", "", "Clear sky"]

    def test_no_trailing_newline(self, snapshot_factory):
        assert not to_csv(snapshot_factory()).endswith("\n")


class TestToTextReport:
    def test_layout(self, snapshot_factory):
        report = to_text_report(snapshot_factory(hourly=_hourly(10), daily=_daily(7)), "Paris, FR")
        lines = report.split("\n")

        assert lines[0] == "SkyWatch Weather Report"
        assert lines[1] == "Paris, FR"
        assert lines[2] == "Now: 22°, Clear sky"
        assert lines[3] == "Humidity: 50%  Wind: 3  UVI: 2"
        hourly = lines[lines.index("Next 24 hours:") + 1 : lines.index("Next 7 days:") - 1]
        assert len(hourly) == 8
        assert hourly[0] == "• 20.5°, Light rain, showers"
        daily = lines[lines.index("Next 7 days:") + 1 :]
        assert daily == ["• 18-28°, Clear sky"] * 5

    def test_without_place_label(self, snapshot_factory):
        lines = to_text_report(snapshot_factory()).split("\n")
        assert lines[1] == "Now: 22°, Clear sky"
        assert lines[-1] == "Next 7 days:"


def _pdf_text(document: bytes) -> str:
    """Concatenate the decompressed content streams of a PDF as latin-1 text."""
    chunks = []
    for stream in re.findall(rb"stream\r?\n(.*?)\r?\nendstream", document, re.DOTALL):
        try:
            chunks.append(zlib.decompress(stream))
        except zlib.error:
            chunks.append(stream)
    return b"\n".join(chunks).decode("latin-1")


class TestToPdf:
    def test_pdf_document(self, snapshot_factory):
        """The PDF carries the same rows as the text report.

        Implementation: Renders a snapshot with 10 hours and 7 days, then reads the page stream.
        Passing implies: A real PDF is produced with the title, place, readings and capped forecast rows.
        """
        document = to_pdf(snapshot_factory(hourly=_hourly(10), daily=_daily(7)), "Paris, FR")

        assert isinstance(document, bytes)
        assert document.startswith(b"%PDF-")
        assert document.rstrip().endswith(b"%%EOF")

        text = _pdf_text(document)
        assert "SkyWatch Weather Report" in text
        assert "Paris, FR" in text
        assert "Now: 22°, Clear sky" in text
        assert "Humidity: 50%  Wind: 3  UVI: 2" in text
        assert "- 20.5°, Light rain, showers" in text
        assert "- 27.5°, Light rain, showers" in text
        assert "- 28.5°" not in text
        assert text.count("- 18-28°, Clear sky") == 5

    def test_non_latin_label_is_replaced(self, snapshot_factory):
        text = _pdf_text(to_pdf(snapshot_factory(), "東京, JP"))
        assert "??, JP" in text
