"""
Command line for checking a SchedulesDirect account by hand.

Credentials come from SCHEDULES_DIRECT_* variables (see epgsync.config.load_env).
"""

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime, timedelta
from typing import Any

from epgsync.config import load_env
from epgsync.schedulesdirect.models import ListingsProviderInfo, SchedulesDirectError
from epgsync.schedulesdirect.wrappers import SchedulesDirectWrapper


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="epgsync",
        description="Query SchedulesDirect lineups, channels and programs.",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2).")
    sub = parser.add_subparsers(dest="command", required=True)

    lineups = sub.add_parser("lineups", help="List lineups for a country and postal code.")
    lineups.add_argument("postal_code", nargs="?", help="Postal code (default: SCHEDULES_DIRECT_ZIP).")
    lineups.add_argument("--country", default=None, help="Country code (default: USA).")

    channels = sub.add_parser("channels", help="List channels of the configured lineup.")
    channels.add_argument("--lineup", default=None, help="Lineup id override.")

    programs = sub.add_parser("programs", help="List programs for a station.")
    programs.add_argument("station_id", help="SchedulesDirect station id.")
    programs.add_argument("--days", type=int, default=1, help="Number of days (default: 1).")

    validate = sub.add_parser("validate", help="Validate credentials and attach the lineup.")
    validate.add_argument(
        "--no-listings", action="store_true", help="Only check credentials are configured."
    )

    return parser.parse_args(argv)


def _to_serializable(payload: Any) -> Any:
    if isinstance(payload, list):
        return [_to_serializable(item) for item in payload]
    if hasattr(payload, "model_dump"):
        return payload.model_dump(mode="json")
    return payload


async def run(args: argparse.Namespace, wrapper: SchedulesDirectWrapper | None = None) -> Any:
    info = ListingsProviderInfo.from_env()
    wrapper = wrapper or SchedulesDirectWrapper()

    if args.command == "lineups":
        country = args.country or info.country or "USA"
        postal_code = args.postal_code or info.zip_code
        if not postal_code:
            raise SystemExit("Postal code required (argument or SCHEDULES_DIRECT_ZIP).")
        return await wrapper.get_lineups(info, country, postal_code)

    if args.command == "channels":
        if args.lineup:
            info = info.model_copy(update={"listings_id": args.lineup})
        return await wrapper.get_channels(info)

    if args.command == "programs":
        start = datetime.now(UTC)
        end = start + timedelta(days=args.days)
        return await wrapper.get_programs(info, args.station_id, start, end)

    await wrapper.validate(info, validate_login=True, validate_listings=not args.no_listings)
    return {"valid": True, "listings_id": info.listings_id}


def main(argv: list[str] | None = None) -> None:
    load_env()
    args = _parse_args(argv)

    try:
        result = asyncio.run(run(args))
    except SchedulesDirectError as e:
        print(f"SchedulesDirect error: {e}", file=sys.stderr)
        sys.exit(2)

    print(json.dumps(_to_serializable(result), indent=args.indent, default=str, ensure_ascii=False))


if __name__ == "__main__":
    main()
