"""Plivo telephony webhook handlers.

Thin HTTP layer; call-control logic lives in app.services.telephony.
Plivo posts form fields and we also read query parameters set on the
answer/transfer URLs when the call was placed.
"""

import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import ValidationError
from app.services.telephony import (
    handle_answer,
    handle_hangup,
    handle_transfer,
    apply_status,
    apply_recording,
    log_stream_event,
)

router = APIRouter()
logger = logging.getLogger(__name__)

HANGUP_FIELDS = ("CallUUID", "Duration", "BillDuration", "HangupCause")


def _xml(content: str) -> Response:
    return Response(content=content, media_type="text/xml")


async def _form(request: Request) -> dict:
    try:
        form = await request.form()
    except Exception:
        logger.warning("Webhook body is not form data")
        return {}
    return {key: value for key, value in form.items() if isinstance(value, str)}


@router.post("/plivo/answer", response_class=Response)
async def plivo_answer(request: Request, db: AsyncSession = Depends(get_db)):
    """Plivo answer URL: returns Stream or Speak XML for the connected call."""
    params = request.query_params
    form = await _form(request)
    call_uuid = params.get("CallUUID") or params.get("callSid") or form.get("CallUUID") or form.get("callSid")

    xml = await handle_answer(
        db,
        lead_id=params.get("leadId"),
        campaign_id=params.get("campaignId"),
        call_uuid=call_uuid,
        host=request.headers.get("host"),
    )
    return _xml(xml)


@router.post("/plivo/hangup")
async def plivo_hangup(request: Request, db: AsyncSession = Depends(get_db)):
    """Plivo hangup URL: final duration and outcome of the call."""
    form = await _form(request)
    payload = {field: form[field] for field in HANGUP_FIELDS if field in form}
    logger.info("Call hangup: %s", payload)

    if not payload.get("CallUUID"):
        raise ValidationError("Missing CallUUID")

    await handle_hangup(db, payload)
    return {"success": True}


@router.post("/plivo/transfer", response_class=Response)
async def plivo_transfer(request: Request, db: AsyncSession = Depends(get_db)):
    """Blind-transfer the caller to an employee."""
    params = request.query_params
    xml = await handle_transfer(
        db,
        to=params.get("to"),
        lead_id=params.get("leadId"),
        campaign_id=params.get("campaignId"),
    )
    return _xml(xml)


@router.post("/plivo/status")
async def plivo_status(request: Request, db: AsyncSession = Depends(get_db)):
    """Call status callbacks."""
    form = await _form(request)
    call_uuid = form.get("CallUUID")
    logger.info("Call status update: %s %s", call_uuid, form.get("CallStatus"))

    if not call_uuid:
        raise ValidationError("Missing CallUUID")

    try:
        await apply_status(db, call_uuid, form.get("CallStatus"), form.get("Duration"))
    except Exception:
        logger.exception("Error updating call status for %s", call_uuid)
        await db.rollback()
    return {"success": True}


@router.post("/plivo/stream-status")
async def plivo_stream_status(request: Request):
    """Audio stream lifecycle events from the <Stream> element."""
    form = await _form(request)
    log_stream_event(form.get("CallUUID"), form.get("Event"), form.get("StreamID"))
    return {"success": True}


@router.post("/plivo/recording")
async def plivo_recording(request: Request, db: AsyncSession = Depends(get_db)):
    """Recording callback: store the recording URL on the call log."""
    form = await _form(request)
    call_uuid = form.get("CallUUID")
    record_url = form.get("RecordUrl")
    logger.info("Recording available: %s %s", call_uuid, record_url)

    if not call_uuid or not record_url:
        raise ValidationError("Missing CallUUID or RecordUrl")

    await apply_recording(
        db,
        call_uuid,
        record_url,
        recording_duration=form.get("RecordingDuration"),
        recording_format=form.get("RecordingFormat"),
    )
    return {"success": True}
