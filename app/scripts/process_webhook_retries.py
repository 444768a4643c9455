"""Replay queued Plivo hangup webhooks.

Usage (from cron or a worker):
    python -m app.scripts.process_webhook_retries
"""

import asyncio
import logging

from app.core.database import async_session
from app.services.telephony import replay_queued_hangups

logger = logging.getLogger(__name__)


async def run() -> dict:
    async with async_session() as db:
        return await replay_queued_hangups(db)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    summary = asyncio.run(run())
    logger.info("Processed %(processed)d queued webhooks (%(success)d ok, %(failed)d failed)", summary)


if __name__ == "__main__":
    main()
