"""Interactive terminal surface for swiping through nearby venues."""

import argparse
import asyncio
import logging
from typing import Callable, Optional

from foodswipe.core.config import ConfigError, get_settings
from foodswipe.core.models import Coordinate, VenueRecord
from foodswipe.core.search_config import Category, SearchConfig, SortMode
from foodswipe.core.session import SwipeSession
from foodswipe.vendors.location import FixedLocationProvider

logger = logging.getLogger(__name__)

HELP_TEXT = "[l]ike  [s]kip  [m]ore  [r]efresh  [v]iew liked  [u <id>] unlike  [q]uit"


def format_venue(record: VenueRecord) -> str:
    parts = [record.name]
    if record.category:
        parts.append(record.category)
    if record.rating is not None and record.rating > 0:
        parts.append(f"{record.rating:.1f}*")
    parts.append(f"{record.distance_meters / 1000:.1f} km")
    parts.append("open" if record.is_open_now else "closed")
    if record.display_phone:
        parts.append(record.display_phone)
    return " | ".join(parts)


def _describe_state(session: SwipeSession) -> str:
    snapshot = session.snapshot()
    if snapshot.last_error:
        return f"Error: {snapshot.last_error} (press r to retry)"
    if not snapshot.has_candidates:
        return "No venues found nearby. Try a wider radius or another category."
    if snapshot.current is None:
        return "You have seen every venue. Press m to load more or r to search again."
    hint = f"\n  {HELP_TEXT}" if snapshot.show_swipe_hint else ""
    return f"[{snapshot.remaining} left] {format_venue(snapshot.current)}{hint}"


async def run_loop(
    session: SwipeSession,
    read_command: Callable[[], Optional[str]],
    write: Callable[[str], None],
) -> None:
    """Drive ``session`` from text commands until quit or end of input."""
    await session.start_search(reset_seen=True)
    write(_describe_state(session))

    while True:
        command = read_command()
        if command is None:
            break
        command = command.strip()
        if not command:
            continue
        action, _, argument = command.partition(" ")
        action = action.lower()

        if action in ("q", "quit"):
            break
        if action in ("l", "like"):
            session.decide("like")
        elif action in ("s", "skip"):
            session.decide("skip")
        elif action in ("m", "more"):
            if not await session.load_more() and not session.snapshot().last_error:
                write("No more venues to load.")
        elif action in ("r", "refresh"):
            await session.start_search(reset_seen=True)
        elif action in ("v", "liked"):
            liked = session.liked
            if not liked:
                write("No liked venues yet.")
            for record in liked:
                write(f"  {record.id}: {format_venue(record)}")
            continue
        elif action in ("u", "unlike"):
            venue_id = argument.strip()
            if not venue_id or not session.remove_liked(venue_id):
                write(f"No liked venue with id {venue_id!r}.")
            continue
        else:
            write(HELP_TEXT)
            continue
        write(_describe_state(session))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Swipe through nearby venues")
    parser.add_argument(
        "--category",
        choices=[category.value for category in Category],
        default=Category.ALL.value,
        help="Venue category to search",
    )
    parser.add_argument("--radius", dest="radius_meters", type=int, default=3000, help="Search radius in meters")
    parser.add_argument(
        "--sort",
        dest="sort_mode",
        choices=[mode.value for mode in SortMode],
        default=SortMode.DISTANCE.value,
        help="Ordering of candidates",
    )
    parser.add_argument("--open-only", dest="open_only", action="store_true", help="Only venues open now")
    parser.add_argument("--min-rating", dest="minimum_rating", type=float, default=0.0, help="Minimum rating (0-5)")
    parser.add_argument("--lat", dest="latitude", type=float, help="Reference latitude")
    parser.add_argument("--lon", dest="longitude", type=float, help="Reference longitude")
    return parser


def _read_stdin() -> Optional[str]:
    try:
        return input("> ")
    except EOFError:
        return None


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    try:
        config = SearchConfig(
            radius_meters=args.radius_meters,
            category=args.category,
            sort_mode=args.sort_mode,
            open_only=args.open_only,
            minimum_rating=args.minimum_rating,
        )
    except ValueError as exc:
        parser.error(str(exc))

    location_provider = None
    if args.latitude is not None and args.longitude is not None:
        location_provider = FixedLocationProvider(Coordinate(args.latitude, args.longitude))

    try:
        session = SwipeSession.from_settings(get_settings(), config=config, location_provider=location_provider)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc

    asyncio.run(run_loop(session, _read_stdin, print))


if __name__ == "__main__":
    main()
