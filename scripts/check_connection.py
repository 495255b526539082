"""Quick check that the configured database is reachable."""

import asyncio
import sys

from unidb.config import get_settings
from unidb.database import Database


async def _check() -> int:
    settings = get_settings()
    target = settings.name if settings.driver == "sqlite" else f"{settings.host}/{settings.name}"
    print(f"Connecting to {settings.driver} database {target}...")

    db = await Database.connect(settings)
    if not db.connected:
        print(f"  Connection failed: [{db.error_state.code}] {db.error_state.message}")
        return 1
    try:
        product = await db.get_database_type()
        version = await db.get_version_number()
        if product is False or version is False:
            print(f"  Version query failed: {db.error_state.message}")
            return 1
        print(f"  Connected: {product} {version}")
        return 0
    finally:
        await db.close()


def main() -> None:
    """Check database connectivity and report the server version."""
    sys.exit(asyncio.run(_check()))


if __name__ == "__main__":
    main()
