# ABOUTME: Export helpers turning a WeatherSnapshot into CSV, a plain-text report or a PDF.
# ABOUTME: Row layout matches the dashboard's download menu.

import csv
import io

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from src.models import WeatherSnapshot

CSV_HEADER = ["section", "dt", "temp", "humidity", "pressure", "wind_speed", "uvi", "description"]
REPORT_TITLE = "SkyWatch Weather Report"


def to_csv(snapshot: WeatherSnapshot) -> str:
    """One current row, up to 24 hourly rows and up to 7 daily rows. ``dt`` is epoch seconds."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    c = snapshot.current
    writer.writerow(
        [
            "current",
            _epoch(c.timestamp),
            _fmt(c.temperature),
            _fmt(c.humidity),
            _fmt(c.pressure),
            _fmt(c.wind_speed),
            _fmt(c.uv_index),
            c.conditions.description,
        ]
    )
    for h in snapshot.hourly[:24]:
        writer.writerow(["hourly", _epoch(h.timestamp), _fmt(h.temperature), "", "", "", "", h.conditions.description])
    for d in snapshot.daily[:7]:
        temp_range = f"{_fmt(d.temp_min)}-{_fmt(d.temp_max)}"
        writer.writerow(["daily", _epoch(d.timestamp), temp_range, "", "", "", "", d.conditions.description])
    return buf.getvalue().rstrip("\n")


def to_text_report(snapshot: WeatherSnapshot, place_label: str = "") -> str:
    """Short human-readable report: now, next 8 hours, next 5 days."""
    return "\n".join([REPORT_TITLE, *_report_lines(snapshot, place_label, bullet="•")])


def to_pdf(snapshot: WeatherSnapshot, place_label: str = "") -> bytes:
    """Render the text report layout as a single-page A4 PDF document.

    The built-in Helvetica font only covers latin-1, so bullets are drawn as
    ``-`` and anything else outside latin-1 becomes ``?``.
    """
    pdf = FPDF(format="A4")
    pdf.set_title(REPORT_TITLE)
    pdf.add_page()
    pdf.set_font("Helvetica", style="B", size=16)
    pdf.cell(0, 10, REPORT_TITLE, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.set_font("Helvetica", size=11)
    for line in _report_lines(snapshot, place_label, bullet="-"):
        pdf.cell(0, 7, _latin1(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    return bytes(pdf.output())


def _report_lines(snapshot: WeatherSnapshot, place_label: str, bullet: str) -> list[str]:
    c = snapshot.current
    lines = []
    if place_label:
        lines.append(place_label)
    lines.append(f"Now: {_fmt(c.temperature)}°, {c.conditions.description}")
    lines.append(f"Humidity: {_fmt(c.humidity)}%  Wind: {_fmt(c.wind_speed)}  UVI: {_fmt(c.uv_index)}")
    lines += ["", "Next 24 hours:"]
    lines += [f"{bullet} {_fmt(h.temperature)}°, {h.conditions.description}" for h in snapshot.hourly[:8]]
    lines += ["", "Next 7 days:"]
    lines += [
        f"{bullet} {_fmt(d.temp_min)}-{_fmt(d.temp_max)}°, {d.conditions.description}" for d in snapshot.daily[:5]
    ]
    return lines


def _latin1(text: str) -> str:
    return text.encode("latin-1", "replace").decode("latin-1")


def _epoch(ts) -> int:
    return int(ts.timestamp())


def _fmt(value: float) -> str:
    """Render whole numbers without a trailing ``.0``."""
    return str(int(value)) if float(value).is_integer() else str(value)
