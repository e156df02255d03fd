from __future__ import annotations

import asyncio
import logging

from landbot.config import configure_logging
from landbot.db import init_db
from landbot.jobs.scheduler import build_scheduler

log = logging.getLogger("landbot.scheduler")


async def main() -> None:
    configure_logging()
    await init_db()

    scheduler = await build_scheduler()
    scheduler.start()
    log.info("Scheduler started")

    try:
        while True:
            await asyncio.sleep(3600)
    except (KeyboardInterrupt, asyncio.CancelledError):
        scheduler.shutdown()
        log.info("Scheduler stopped")


if __name__ == "__main__":
    asyncio.run(main())
