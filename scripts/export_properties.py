from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from landbot.adapters.repos.properties import PropertyRepository
from landbot.config import configure_logging
from landbot.db import async_session, init_db
from landbot.service_layer.export import EXPORT_FORMATS, export_properties

log = logging.getLogger("landbot.export")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Export stored properties to CSV or JSON")
    parser.add_argument("output", help="Output file path")
    parser.add_argument("-f", "--format", choices=EXPORT_FORMATS, default="csv")
    parser.add_argument("-s", "--state", default=None, help="Two-letter state code, e.g. MT")
    parser.add_argument("--min-price", type=float, default=None)
    parser.add_argument("--max-price", type=float, default=None)
    parser.add_argument("--min-acres", type=float, default=None)
    parser.add_argument("--max-acres", type=float, default=None)
    parser.add_argument("--min-score", type=float, default=None)
    parser.add_argument("-l", "--limit", type=int, default=None)
    args = parser.parse_args()

    configure_logging()
    await init_db()

    async with async_session() as session:
        rows = await PropertyRepository(session).find_by_filters(
            state=args.state.upper() if args.state else None,
            min_price=args.min_price,
            max_price=args.max_price,
            min_acres=args.min_acres,
            max_acres=args.max_acres,
            min_score=args.min_score,
            limit=args.limit,
        )

    if not rows:
        log.error("No properties found matching the filters")
        return 1

    Path(args.output).write_text(export_properties(rows, args.format), encoding="utf-8")
    log.info("Exported %d properties to %s", len(rows), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
