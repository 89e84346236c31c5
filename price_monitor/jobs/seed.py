"""Bulk enrollment of products from a JSON file."""
import asyncio
import logging
from pathlib import Path

import aiofiles
import orjson

from price_monitor.config import config
from price_monitor.errors import EnrollFailed
from price_monitor.fetch.client import SyncGateway

logger = logging.getLogger(__name__)


async def read_seed_file(path: Path) -> list[dict]:
    """Read a JSON array of {product_name, my_price, min_price} entries."""
    async with aiofiles.open(path, "rb") as f:
        data = orjson.loads(await f.read())
    if not isinstance(data, list):
        raise ValueError(f"Seed file must hold a JSON array, got {type(data).__name__}")
    return data


class SeedRunner:
    """Enrolls seed products one at a time, continuing past failures."""

    def __init__(self, gateway: SyncGateway, delay: float = config.SEED_DELAY):
        self.gateway = gateway
        self.delay = delay

    async def run(self, entries: list[dict]) -> dict:
        logger.info(f"Starting to seed {len(entries)} products...")
        ok = 0
        failed: list[str] = []
        for index, entry in enumerate(entries, start=1):
            name = entry.get("product_name") if isinstance(entry, dict) else None
            if not name:
                logger.warning(f"[{index}/{len(entries)}] Skipping entry without product_name")
                failed.append(f"#{index}")
                continue

            try:
                my_price = float(entry["my_price"])
                min_price = float(entry["min_price"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"[{index}/{len(entries)}] Skipping {name}: invalid prices")
                failed.append(name)
                continue

            logger.info(f"[{index}/{len(entries)}] Sending: {name}...")
            try:
                await self.gateway.enroll(name, my_price, min_price)
            except EnrollFailed as e:
                logger.error(f"[{index}/{len(entries)}] Failed: {name}: {e}")
                failed.append(name)
            else:
                ok += 1

            if self.delay and index < len(entries):
                await asyncio.sleep(self.delay)

        logger.info(f"Seeding complete: {ok} ok, {len(failed)} failed")
        return {"total": len(entries), "ok": ok, "failed": failed}
