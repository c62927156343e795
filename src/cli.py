# ABOUTME: argparse entry point that runs one dashboard action and prints the result.
# ABOUTME: Reads settings from the environment and uses IP location for the locate command.

"""
Command line front end for the SkyWatch weather dashboard.

Usage:
    skywatch city "Hyderabad"
    skywatch coords 17.385 78.4867 --units imperial
    skywatch locate --csv weather.csv
    skywatch --pdf report.pdf city "Paris"

Exit codes:
    0 - Success
    1 - Weather or location could not be resolved, or the configuration is invalid
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.config import load_settings
from src.dashboard import Dashboard
from src.deps import create_deps
from src.errors import SkyWatchError
from src.export import to_csv, to_pdf, to_text_report
from src.gps import IpLocationSensor
from src.insights import analyze
from src.models import DashboardView

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skywatch", description="Live weather for a place or your location.")
    parser.add_argument("--units", choices=["metric", "imperial"], help="Unit system (default from SKYWATCH_UNITS)")
    parser.add_argument("--csv", type=Path, help="Also write the snapshot as CSV to this path")
    parser.add_argument("--pdf", type=Path, help="Also write the text report as a PDF to this path")
    parser.add_argument("--report", action="store_true", help="Print the full text report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log provider activity")

    sub = parser.add_subparsers(dest="command", required=True)
    city = sub.add_parser("city", help="Search by city name")
    city.add_argument("name")
    coords = sub.add_parser("coords", help="Use explicit coordinates")
    coords.add_argument("latitude", type=float)
    coords.add_argument("longitude", type=float)
    sub.add_parser("locate", help="Detect the current location")
    return parser


def render(view: DashboardView) -> str:
    """Compact summary of a dashboard view for the terminal."""
    weather = view.weather
    unit = "°C" if weather.units == "metric" else "°F"
    analysis = analyze(weather)
    lines = [
        view.place_label,
        view.accuracy_label,
        f"{weather.current.temperature:g}{unit}, {weather.current.conditions.description} ({view.source_label})",
    ]
    if analysis.high_24h is not None:
        lines.append(f"24h: high {analysis.high_24h:g}{unit}, low {analysis.low_24h:g}{unit}")
        lines.append(f"Max precipitation chance: {round(analysis.max_precipitation_probability * 100)}%")
    lines += [f"- {tip}" for tip in view.tips]
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> DashboardView | None:
    settings = load_settings()
    deps = create_deps(settings)
    async with deps.http_client:
        dashboard = Dashboard(deps, sensor=IpLocationSensor(deps.http_client))
        if args.command == "city":
            return await dashboard.load_by_city(args.name, args.units)
        if args.command == "coords":
            return await dashboard.load_by_coordinates(args.latitude, args.longitude, args.units)
        return await dashboard.load_current_location(args.units)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        view = asyncio.run(run(args))
    except SkyWatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(to_text_report(view.weather, view.place_label) if args.report else render(view))
    if args.csv:
        args.csv.write_text(to_csv(view.weather) + "\n", encoding="utf-8")
        logger.info("Wrote %s", args.csv)
    if args.pdf:
        args.pdf.write_bytes(to_pdf(view.weather, view.place_label))
        logger.info("Wrote %s", args.pdf)
    return 0


if __name__ == "__main__":
    sys.exit(main())
