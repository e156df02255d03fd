# scripts/init_db.py
import asyncio

from landbot.db import init_db


async def main() -> None:
    await init_db()
    print("OK: created all tables (idempotent).")


if __name__ == "__main__":
    asyncio.run(main())
