"""Durable retry queue for provider webhooks.

Hangup events that still fail after their inline attempts are stored
here and replayed later with exponential backoff.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.webhook_retry import WebhookRetry

logger = logging.getLogger(__name__)

# Replay configuration
MAX_RETRY_ATTEMPTS = 3
RETRY_DELAYS = [1, 5, 30]  # minutes between replays

Processor = Callable[[str, Dict[str, Any]], Awaitable[None]]


async def save_failed_webhook(
    db: AsyncSession,
    service: str,
    payload: Dict[str, Any],
    error: str,
) -> WebhookRetry:
    """Queue a webhook payload whose processing failed.

    Args:
        db: Database session
        service: Queue name (e.g. 'plivo_hangup')
        payload: Original webhook fields
        error: Message of the last failure
    """
    retry_entry = WebhookRetry(
        service=service,
        payload=payload,
        attempts=0,
        last_error=error,
        status="pending",
    )

    db.add(retry_entry)
    await db.commit()
    await db.refresh(retry_entry)

    logger.info(
        "Saved failed webhook to retry queue: service=%s, id=%s, error=%s",
        service,
        retry_entry.id,
        error[:100],
    )
    return retry_entry


async def get_pending_retries(db: AsyncSession, limit: int = 50) -> list[WebhookRetry]:
    """Queued webhooks whose backoff delay has elapsed."""
    now = datetime.utcnow()

    query = select(WebhookRetry).where(
        and_(
            WebhookRetry.status.in_(["pending", "retrying"]),
            WebhookRetry.attempts < MAX_RETRY_ATTEMPTS,
        )
    ).order_by(WebhookRetry.created_at).limit(limit)

    result = await db.execute(query)
    all_pending = result.scalars().all()

    ready = []
    for retry in all_pending:
        if retry.attempts == 0:
            ready.append(retry)
            continue
        delay_minutes = RETRY_DELAYS[min(retry.attempts - 1, len(RETRY_DELAYS) - 1)]
        if now >= retry.updated_at + timedelta(minutes=delay_minutes):
            ready.append(retry)

    logger.info("Found %d pending webhooks, %d ready for retry", len(all_pending), len(ready))
    return ready


async def mark_retry_success(db: AsyncSession, retry_id: UUID) -> None:
    result = await db.execute(select(WebhookRetry).where(WebhookRetry.id == retry_id))
    retry = result.scalar_one_or_none()
    if retry:
        retry.status = "success"
        retry.updated_at = datetime.utcnow()
        await db.commit()
        logger.info("Webhook retry successful: id=%s, service=%s", retry_id, retry.service)


async def mark_retry_failed(db: AsyncSession, retry_id: UUID, error: str) -> None:
    """Count a failed replay; the entry is abandoned after MAX_RETRY_ATTEMPTS."""
    result = await db.execute(select(WebhookRetry).where(WebhookRetry.id == retry_id))
    retry = result.scalar_one_or_none()
    if not retry:
        return

    retry.attempts += 1
    retry.last_error = error
    retry.updated_at = datetime.utcnow()

    if retry.attempts >= MAX_RETRY_ATTEMPTS:
        retry.status = "failed"
        logger.error(
            "Webhook retry exhausted (max attempts): id=%s, service=%s, error=%s",
            retry_id, retry.service, error[:100],
        )
    else:
        retry.status = "retrying"
        logger.warning(
            "Webhook retry failed (attempt %d/%d), will retry in %d min: id=%s, error=%s",
            retry.attempts,
            MAX_RETRY_ATTEMPTS,
            RETRY_DELAYS[min(retry.attempts - 1, len(RETRY_DELAYS) - 1)],
            retry_id,
            error[:100],
        )
    await db.commit()


async def process_webhook_retries(db: AsyncSession, processor_func: Processor) -> Dict[str, int]:
    """Replay every ready queue entry through ``processor_func(service, payload)``.

    Meant to be called periodically from a worker or cron job.
    """
    retries = await get_pending_retries(db)
    # Processors may roll the session back, so read what we need up front
    batch = [(retry.id, retry.service, dict(retry.payload)) for retry in retries]

    success_count = 0
    fail_count = 0
    for retry_id, service, payload in batch:
        try:
            await processor_func(service, payload)
        except Exception as e:
            await mark_retry_failed(db, retry_id, str(e))
            fail_count += 1
        else:
            await mark_retry_success(db, retry_id)
            success_count += 1

    if batch:
        logger.info(
            "Webhook retry batch complete: %d success, %d failed, %d total",
            success_count, fail_count, len(batch),
        )

    return {"processed": len(batch), "success": success_count, "failed": fail_count}
