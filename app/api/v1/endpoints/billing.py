"""Razorpay payment webhook."""

import json
import logging

from fastapi import APIRouter, Request, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import ValidationError
from app.services.billing import verify_razorpay_signature, process_razorpay_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/razorpay/webhook")
async def razorpay_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Verify the X-Razorpay-Signature header, then apply the payment event."""
    secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not secret:
        logger.error("Razorpay webhook secret not configured")
        raise HTTPException(status_code=500, detail="Webhook not configured")

    body = await request.body()
    if not verify_razorpay_signature(body, request.headers.get("X-Razorpay-Signature"), secret):
        logger.error("Invalid Razorpay webhook signature")
        raise ValidationError("Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON payload")

    event = await process_razorpay_event(db, payload)
    return {"success": True, "event": event}
