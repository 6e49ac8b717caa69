import asyncio
import logging
import resource
import sys
import time
from datetime import datetime, timezone
from typing import Dict

from app.settings import settings
from infra.realtime.broker import broker

logger = logging.getLogger(__name__)
STARTED = time.monotonic()


def uptime() -> float:
    return round(time.monotonic() - STARTED, 3)


def memory_usage() -> Dict:
    # ru_maxrss is bytes on macOS and kilobytes elsewhere
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return {"max_rss_bytes": peak if sys.platform == "darwin" else peak * 1024}


def snapshot() -> Dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "active_connections": broker.connection_count(),
        "memory_usage": memory_usage(),
        "uptime": uptime(),
    }


def broadcast() -> int:
    return broker.publish_all("system:health", snapshot())


async def run(interval: float | None = None) -> None:
    """Send system:health to every connected client each interval seconds."""
    interval = settings.HEALTH_BROADCAST_SECONDS if interval is None else interval
    if interval <= 0:
        logger.info("Health broadcast disabled")
        return
    logger.info("Broadcasting system health every %ss", interval)
    while True:
        await asyncio.sleep(interval)
        broadcast()
