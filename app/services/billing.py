"""Razorpay webhook processing for payment transactions."""

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.payment_transaction import PaymentTransaction

logger = logging.getLogger(__name__)


def verify_razorpay_signature(payload_body: bytes, signature_header: Optional[str], secret: str) -> bool:
    """Check the X-Razorpay-Signature header (hex HMAC-SHA256 of the raw body)."""
    if not signature_header or not secret:
        return False

    hash_object = hmac.new(secret.encode("utf-8"), msg=payload_body, digestmod=hashlib.sha256)
    return hmac.compare_digest(hash_object.hexdigest(), signature_header)


def _entity(body: Dict[str, Any], kind: str) -> Dict[str, Any]:
    return ((body.get("payload") or {}).get(kind) or {}).get("entity") or {}


async def _find_transaction(db: AsyncSession, gateway_payment_id: Optional[str]) -> Optional[PaymentTransaction]:
    if not gateway_payment_id:
        return None
    result = await db.execute(
        select(PaymentTransaction).where(PaymentTransaction.gateway_payment_id == gateway_payment_id)
    )
    return result.scalar_one_or_none()


async def handle_payment_captured(db: AsyncSession, payment: Dict[str, Any]) -> Optional[PaymentTransaction]:
    transaction = await _find_transaction(db, payment.get("id"))
    if not transaction:
        logger.error("Payment transaction not found: %s", payment.get("id"))
        return None

    transaction.status = "captured"
    transaction.details = {"payment": payment}
    await db.commit()
    logger.info("Payment captured: %s (invoice=%s)", payment.get("id"), transaction.invoice_id)
    return transaction


async def handle_payment_failed(db: AsyncSession, payment: Dict[str, Any]) -> Optional[PaymentTransaction]:
    transaction = await _find_transaction(db, payment.get("id"))
    if not transaction:
        logger.error("Payment transaction not found: %s", payment.get("id"))
        return None

    transaction.status = "failed"
    transaction.details = {
        "payment": payment,
        "failure_reason": payment.get("error_description"),
    }
    await db.commit()
    logger.warning("Payment failed: %s (%s)", payment.get("id"), payment.get("error_description"))
    return transaction


async def handle_refund_created(db: AsyncSession, refund: Dict[str, Any]) -> Optional[PaymentTransaction]:
    transaction = await _find_transaction(db, refund.get("payment_id"))
    if not transaction:
        logger.error("Payment transaction not found for refund: %s", refund.get("payment_id"))
        return None

    transaction.status = "refunded"
    transaction.details = {"refund": refund}
    await db.commit()
    logger.info("Refund processed: %s for payment %s", refund.get("id"), refund.get("payment_id"))
    return transaction


async def process_razorpay_event(db: AsyncSession, body: Dict[str, Any]) -> Optional[str]:
    """Dispatch a verified webhook body. Returns the event name."""
    event = body.get("event")
    logger.info("Razorpay webhook event: %s", event)

    if event == "payment.captured":
        await handle_payment_captured(db, _entity(body, "payment"))
    elif event == "payment.failed":
        await handle_payment_failed(db, _entity(body, "payment"))
    elif event == "refund.created":
        refund = _entity(body, "refund") or _entity(body, "payment")
        await handle_refund_created(db, refund)
    else:
        logger.info("Unhandled Razorpay event: %s", event)

    return event
