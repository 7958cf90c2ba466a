"""
Terminal host for the fertilizer suggestion screen (native platform).

Usage:
    python scripts/intake_session.py
    python scripts/intake_session.py --fixed-coordinates 12.9716,77.5946
    python scripts/intake_session.py --location-timeout 10 --verbose
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.data.schema import CROP_TYPES
from src.intake.config import IntakeConfig, parse_coordinates
from src.intake.console import read_line
from src.intake.coordinator import AcquisitionCoordinator
from src.intake.errors import InvalidCropError
from src.intake.platform import Platform, build_adapters, detect_platform
from src.intake.review import ReviewPresenter

MENU = """
  1) Pick soil report     2) Remove file     3) Open file
  4) Select crop type     5) Get location    6) Get details
  7) Close details        8) Clear           q) Quit
"""


def print_review(presenter: ReviewPresenter) -> None:
    summary = presenter.summary
    print("\n--- Details ---")
    for line in summary.lines():
        print(line)
    if summary.map_url:
        print(f"View on map: {summary.map_url}")
    print(f"Ready for suggestion: {'yes' if summary.is_complete else 'no'}")


def print_notices(coordinator: AcquisitionCoordinator) -> None:
    for notice in coordinator.drain_notices():
        print(f"[!] {notice.message}")


async def prompt_user(ask: Callable[[str], str], prompt: str) -> str:
    """Read one answer; end of input counts as quit."""
    try:
        return await read_line(ask, prompt)
    except EOFError:
        return "q"


async def choose_crop(coordinator: AcquisitionCoordinator, ask: Callable[[str], str]) -> None:
    for i, crop in enumerate(CROP_TYPES, start=1):
        print(f"  {i:>2}) {crop}")
    answer = (await prompt_user(ask, "Crop type: ")).strip()
    if answer in ("", "q"):
        return
    if answer.isdigit() and 1 <= int(answer) <= len(CROP_TYPES):
        answer = CROP_TYPES[int(answer) - 1]
    try:
        crop = coordinator.select_crop(answer)
    except InvalidCropError as e:
        print(f"ERROR: {e}")
        return
    print(f"Crop type: {crop.value}")


async def run_session(config: IntakeConfig, ask: Callable[[str], str] = input) -> None:
    platform = detect_platform(config, Platform.NATIVE)
    adapters = build_adapters(platform, config, ask=ask)
    coordinator = AcquisitionCoordinator(
        adapters.files, adapters.locator, adapters.opener,
        location_timeout_s=config.location_timeout_s,
    )
    presenter = ReviewPresenter(platform)
    coordinator.subscribe(presenter)

    print("Fertilizer Suggestion")
    # The first location attempt happens on entry; stdin is shared, so wait for it
    await coordinator.enter()
    print_notices(coordinator)
    print(f"Location: {presenter.summary.location_line}")

    try:
        while True:
            print(MENU)
            choice = (await prompt_user(ask, "> ")).strip().lower()
            if choice == "1":
                outcome = await coordinator.request_file()
                if outcome is not None and not outcome.cancelled:
                    print(f"Selected file: {outcome.descriptor.display_name}")
            elif choice == "2":
                coordinator.remove_file()
                print("File removed")
            elif choice == "3":
                uri = await coordinator.open_selected_file()
                if uri:
                    print(f"Opened {uri}")
            elif choice == "4":
                await choose_crop(coordinator, ask)
            elif choice == "5":
                await coordinator.request_location()
                print(f"Location: {presenter.summary.location_line}")
            elif choice == "6":
                coordinator.show_review()
                print_review(presenter)
            elif choice == "7":
                coordinator.hide_review()
            elif choice == "8":
                coordinator.reset()
                print("Cleared")
            elif choice in ("q", "quit", "exit"):
                break
            else:
                print(f"Unknown option '{choice}'")
            print_notices(coordinator)
    finally:
        await coordinator.close()


def main():
    parser = argparse.ArgumentParser(
        description="Collect a soil report, crop type and location interactively",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/intake_session.py
  python scripts/intake_session.py --fixed-coordinates 12.9716,77.5946
        """,
    )
    parser.add_argument(
        "--platform", default=None,
        choices=["auto", "web", "native"],
        help="Adapter platform (default: INTAKE_PLATFORM or native)",
    )
    parser.add_argument(
        "--location-timeout", type=float, default=None,
        help="Seconds before a location attempt fails (0 disables)",
    )
    parser.add_argument(
        "--fixed-coordinates", default=None,
        help="Report these lat,lon instead of looking the location up",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = IntakeConfig.from_env()
        if args.platform is not None:
            config.platform = args.platform
        if args.location_timeout is not None:
            config.location_timeout_s = args.location_timeout or None
        if args.fixed_coordinates:
            config.fixed_coordinates = parse_coordinates(args.fixed_coordinates)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if config.platform == "web":
        print("ERROR: the web platform needs a browser; run src/api/app.py instead", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run_session(config))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
