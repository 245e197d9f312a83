#!/usr/bin/env python3
"""Delete all rows from every creditgate table (development only)."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import get_settings
from creditgate.core.logging import get_logger, setup_logging
from creditgate.store.db import create_engine, truncate_all

log = get_logger(__name__)


async def main() -> int:
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)

    if settings.creditgate_env == "prod":
        log.error("reset_refused_in_prod")
        return 1

    engine = create_engine(settings)
    try:
        cleared = await truncate_all(engine)
        log.info("database_reset_complete", tables=cleared)
    except Exception as exc:
        log.error("database_reset_failed", error=str(exc))
        raise
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
