#!/usr/bin/env python3
"""One-shot quotes refresh (cron / manual warm-up).

Fetches all quote upstreams once and publishes the snapshot to Redis, where
API workers pick it up on startup instead of calling the upstreams themselves.

Run (local / cron):
  cd services/api
  python -m scripts.refresh_quotes
"""

import asyncio
import json
import os
import sys


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services.quotes import QuoteCache  # noqa: E402
from app.stores.redis import close_redis, init_redis  # noqa: E402


async def main() -> int:
    try:
        await init_redis()
    except Exception as e:
        print(f"Redis unavailable, snapshot will not be shared: {e}", file=sys.stderr)

    cache = QuoteCache()
    try:
        snapshot = await cache.refresh()
    finally:
        await cache.shutdown()
        await close_redis()

    print(json.dumps(snapshot.to_response(), ensure_ascii=False, indent=2))
    if snapshot.failed_sources:
        print(f"Failed sources: {', '.join(snapshot.failed_sources)}", file=sys.stderr)
    return 1 if snapshot.error else 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
