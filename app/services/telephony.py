"""Plivo call-control logic behind the telephony webhooks.

The provider must always receive a usable answer, so the public
``handle_*`` functions never raise: they degrade to a hangup-safe XML
document (answer, transfer) or queue the write for later (hangup).
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union
from urllib.parse import urlencode
from uuid import UUID

from plivo import plivoxml
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.call_log import CallLog
from app.models.campaign import Campaign
from app.models.lead import Lead, LeadStatus
from app.models.organization import Organization
from app.models.role import Role
from app.models.user import User
from app.services.webhook_retry_service import save_failed_webhook, process_webhook_retries

logger = logging.getLogger(__name__)

HANGUP_SERVICE = "plivo_hangup"
MAX_HANGUP_ATTEMPTS = 3
EMPLOYEE_ROLE = "Employee"
DEFAULT_SCRIPT = "We wanted to reach out to you regarding our services."
STREAM_PORT = 10000

# Plivo CallStatus -> call_logs.call_status
STATUS_MAP = {
    "ringing": "ringing",
    "in-progress": "in_progress",
    "completed": "completed",
    "busy": "no_answer",
    "failed": "failed",
    "no-answer": "no_answer",
    "canceled": "failed",
}

_sleep = asyncio.sleep


@dataclass(frozen=True)
class Streaming:
    ws_url: str


@dataclass(frozen=True)
class StaticScript:
    greeting: str
    script: str
    goodbye: str = "Thank you for your time. Goodbye."


AnswerStrategy = Union[Streaming, StaticScript]


@dataclass(frozen=True)
class CallContext:
    lead_id: str
    campaign_id: str
    call_sid: Optional[str]
    lead_name: str
    organization_name: str
    ai_script: Optional[str] = None


def _stream_base_url(ws_base_url: Optional[str], host: Optional[str]) -> str:
    base = ws_base_url
    if not base:
        hostname = (host or "localhost").split(":")[0]
        base = f"wss://{hostname}:{STREAM_PORT}"
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "wss://" + base[len("http://"):]
    return base.rstrip("/")


def choose_answer_strategy(
    context: CallContext,
    realtime_enabled: bool,
    openai_api_key: Optional[str],
    ws_base_url: Optional[str] = None,
    host: Optional[str] = None,
) -> AnswerStrategy:
    """Stream to the voice-AI relay when it is enabled and configured, else read a script."""
    if realtime_enabled and openai_api_key:
        query = urlencode({
            "leadId": context.lead_id,
            "campaignId": context.campaign_id,
            "callSid": context.call_sid or "",
        })
        return Streaming(ws_url=f"{_stream_base_url(ws_base_url, host)}/voice/stream?{query}")

    return StaticScript(
        greeting=f"Hello {context.lead_name}, this is a representative from {context.organization_name}.",
        script=context.ai_script or DEFAULT_SCRIPT,
    )


def render_answer_xml(strategy: AnswerStrategy) -> str:
    response = plivoxml.ResponseElement()
    if isinstance(strategy, Streaming):
        response.add(plivoxml.StreamElement(
            strategy.ws_url,
            bidirectional=True,
            streamTimeout=86400,
            contentType="audio/x-mulaw;rate=8000",
            statusCallbackUrl=f"{settings.SITE_URL.rstrip('/')}/api/v1/webhooks/plivo/stream-status",
            statusCallbackMethod="POST",
        ))
    else:
        response.add(plivoxml.SpeakElement(strategy.greeting))
        response.add(plivoxml.SpeakElement(strategy.script))
        response.add(plivoxml.SpeakElement(strategy.goodbye))
        response.add(plivoxml.HangupElement())
    return response.to_string()


def hangup_safe_xml() -> str:
    response = plivoxml.ResponseElement()
    response.add(plivoxml.SpeakElement("Sorry, there was an error. Goodbye."))
    response.add(plivoxml.HangupElement())
    return response.to_string()


def transfer_xml(number: Optional[str]) -> str:
    response = plivoxml.ResponseElement()
    if not number:
        response.add(plivoxml.HangupElement())
        return response.to_string()

    response.add(plivoxml.SpeakElement("Connecting you to a specialist now. Please hold."))
    dial = plivoxml.DialElement(caller_id=settings.PLIVO_PHONE_NUMBER or None)
    dial.add(plivoxml.NumberElement(number))
    response.add(dial)
    return response.to_string()


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    try:
        return UUID(value) if value else None
    except ValueError:
        return None


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


async def handle_answer(
    db: AsyncSession,
    lead_id: Optional[str],
    campaign_id: Optional[str],
    call_uuid: Optional[str],
    host: Optional[str] = None,
) -> str:
    """Answer-URL logic: record the call and tell Plivo what to do next."""
    try:
        lead = None
        campaign = None
        lead_key, campaign_key = _as_uuid(lead_id), _as_uuid(campaign_id)
        if lead_key and campaign_key:
            lead = (await db.execute(select(Lead).where(Lead.id == lead_key))).scalar_one_or_none()
            campaign = (await db.execute(select(Campaign).where(Campaign.id == campaign_key))).scalar_one_or_none()

        if not lead or not campaign:
            logger.warning("Answer webhook: lead %s or campaign %s not found", lead_id, campaign_id)
            return hangup_safe_xml()

        organization = (await db.execute(
            select(Organization).where(Organization.id == campaign.organization_id)
        )).scalar_one_or_none()

        context = CallContext(
            lead_id=str(lead.id),
            campaign_id=str(campaign.id),
            call_sid=call_uuid,
            lead_name=lead.name,
            organization_name=organization.name if organization else "our team",
            ai_script=campaign.ai_script,
        )

        await _record_answered_call(db, campaign, lead, call_uuid)

        strategy = choose_answer_strategy(
            context,
            realtime_enabled=settings.ENABLE_REALTIME_AI,
            openai_api_key=settings.OPENAI_API_KEY,
            ws_base_url=settings.WEBSOCKET_SERVER_URL or settings.WS_URL,
            host=host,
        )
        logger.info("Answer webhook: call %s -> %s", call_uuid, type(strategy).__name__)
        return render_answer_xml(strategy)

    except Exception:
        logger.exception("Answer webhook failed for call %s", call_uuid)
        return hangup_safe_xml()


async def _record_answered_call(db: AsyncSession, campaign: Campaign, lead: Lead, call_uuid: Optional[str]) -> None:
    """Insert an in-progress inbound log unless one already exists for this call."""
    if call_uuid:
        existing = await db.execute(select(CallLog.id).where(CallLog.call_sid == call_uuid))
        if existing.scalar_one_or_none() is not None:
            return

    try:
        db.add(CallLog(
            organization_id=campaign.organization_id,
            campaign_id=campaign.id,
            lead_id=lead.id,
            call_sid=call_uuid,
            call_status="in_progress",
            direction="inbound",
        ))
        await db.commit()
        logger.info("Call log created for call %s", call_uuid)
    except Exception:
        logger.exception("Failed to create call log for call %s", call_uuid)
        await db.rollback()


def hangup_status(hangup_cause: Optional[str]) -> str:
    return "called" if hangup_cause == "NORMAL_CLEARING" else "no_answer"


async def apply_hangup(db: AsyncSession, payload: Dict[str, Any]) -> CallLog:
    """Write one hangup event to call_logs (and the lead). Raises on failure."""
    call_sid = payload["CallUUID"]
    hangup_cause = payload.get("HangupCause")
    bill_duration = _as_int(payload.get("BillDuration"))
    now = datetime.utcnow()
    status = hangup_status(hangup_cause)
    metadata = {
        "hangup_cause": hangup_cause,
        "total_duration": _as_int(payload.get("Duration")),
        "bill_duration": bill_duration,
    }

    result = await db.execute(select(CallLog).where(CallLog.call_sid == call_sid))
    call_log = result.scalar_one_or_none()

    if call_log is None:
        logger.warning("No call log for %s, recording unanswered call", call_sid)
        call_log = CallLog(
            call_sid=call_sid,
            call_status=status,
            duration=bill_duration,
            notes=f"Unanswered call: {hangup_cause}",
            ended_at=now,
            call_metadata={**metadata, "unanswered": True},
        )
        db.add(call_log)
    else:
        call_log.duration = bill_duration
        call_log.call_status = status
        call_log.notes = f"Call ended: {hangup_cause}"
        call_log.ended_at = now
        call_log.call_metadata = {**(call_log.call_metadata or {}), **metadata}

        if call_log.lead_id:
            lead = (await db.execute(select(Lead).where(Lead.id == call_log.lead_id))).scalar_one_or_none()
            if lead:
                lead.call_status = status
                if status == "called":
                    lead.last_contacted_at = now
                    if lead.status not in (LeadStatus.TRANSFERRED.value, LeadStatus.CONVERTED.value):
                        lead.status = LeadStatus.CONTACTED.value

    await db.commit()
    return call_log


async def handle_hangup(db: AsyncSession, payload: Dict[str, Any]) -> bool:
    """Apply a hangup event with bounded retries; queue it when every attempt fails.

    Returns True when the write landed inline.
    """
    call_sid = payload.get("CallUUID")
    last_error = None

    for attempt in range(1, MAX_HANGUP_ATTEMPTS + 1):
        try:
            await apply_hangup(db, payload)
            logger.info("Call log %s updated on attempt %d", call_sid, attempt)
            return True
        except Exception as e:
            last_error = e
            logger.error("Attempt %d to update call log %s failed: %s", attempt, call_sid, e)
            await db.rollback()
            if attempt < MAX_HANGUP_ATTEMPTS:
                await _sleep(2 ** (attempt - 1))

    try:
        await save_failed_webhook(db, HANGUP_SERVICE, dict(payload), str(last_error))
    except Exception:
        logger.exception("Could not queue hangup payload for call %s", call_sid)
        await db.rollback()
    return False


async def resolve_transfer_number(db: AsyncSession, campaign_id: Optional[str], fallback: Optional[str]) -> Optional[str]:
    """First employee with a phone in the campaign's organization, else ``fallback``, else the default."""
    default = fallback or settings.DEFAULT_TRANSFER_NUMBER or None
    campaign_key = _as_uuid(campaign_id)
    if not campaign_key:
        return default

    try:
        organization_id = (await db.execute(
            select(Campaign.organization_id).where(Campaign.id == campaign_key)
        )).scalar_one_or_none()
        if not organization_id:
            return default

        result = await db.execute(
            select(User.phone, User.full_name)
            .join(Role, Role.id == User.role_id)
            .where(
                Role.name == EMPLOYEE_ROLE,
                User.organization_id == organization_id,
                User.phone.isnot(None),
                User.is_active.is_(True),
            )
            .order_by(User.created_at)
            .limit(1)
        )
        employee = result.first()
    except Exception:
        logger.exception("Employee lookup failed for campaign %s", campaign_id)
        await db.rollback()
        return default

    if employee:
        logger.info("Transferring to employee %s (%s)", employee.full_name, employee.phone)
        return employee.phone

    logger.warning("No employee with a phone in org %s, using fallback", organization_id)
    return default


async def mark_transferred(db: AsyncSession, lead_id: Optional[str], campaign_id: Optional[str]) -> bool:
    """Flag the latest call log for lead+campaign as transferred, and the lead with it."""
    lead_key, campaign_key = _as_uuid(lead_id), _as_uuid(campaign_id)
    if not lead_key or not campaign_key:
        return False

    result = await db.execute(
        select(CallLog)
        .where(CallLog.lead_id == lead_key, CallLog.campaign_id == campaign_key)
        .order_by(CallLog.created_at.desc())
        .limit(1)
    )
    call_log = result.scalar_one_or_none()
    if not call_log:
        logger.warning("No call log to mark transferred for lead %s campaign %s", lead_id, campaign_id)
        return False

    call_log.transferred = True
    call_log.call_status = "transferred"

    lead = (await db.execute(select(Lead).where(Lead.id == lead_key))).scalar_one_or_none()
    if lead:
        lead.transferred_to_human = True
        lead.status = LeadStatus.TRANSFERRED.value
    await db.commit()
    return True


async def handle_transfer(
    db: AsyncSession,
    to: Optional[str],
    lead_id: Optional[str],
    campaign_id: Optional[str],
) -> str:
    number = await resolve_transfer_number(db, campaign_id, to)
    if not number:
        logger.error("No transfer destination for lead %s campaign %s", lead_id, campaign_id)
        return transfer_xml(None)

    try:
        await mark_transferred(db, lead_id, campaign_id)
    except Exception:
        logger.exception("Failed to mark call transferred for lead %s", lead_id)
        await db.rollback()

    logger.info("Transfer target for lead %s: %s", lead_id, number)
    return transfer_xml(number)


async def apply_status(db: AsyncSession, call_sid: str, provider_status: Optional[str], duration: Any) -> Optional[CallLog]:
    """Mirror a provider status callback onto the call log."""
    result = await db.execute(select(CallLog).where(CallLog.call_sid == call_sid))
    call_log = result.scalar_one_or_none()
    if not call_log:
        logger.warning("Status callback for unknown call %s", call_sid)
        return None

    metadata = {**(call_log.call_metadata or {}), "last_update": datetime.utcnow().isoformat()}
    if provider_status:
        call_log.call_status = STATUS_MAP.get(provider_status, provider_status)
        metadata["plivo_status"] = provider_status
    if duration not in (None, ""):
        call_log.duration = _as_int(duration)
    call_log.call_metadata = metadata
    await db.commit()
    return call_log


def log_stream_event(call_sid: Optional[str], event: Optional[str], stream_id: Optional[str]) -> None:
    """Stream lifecycle events are informational only; they never touch call_logs."""
    if event == "StartStream":
        logger.info("[%s] Stream %s started", call_sid, stream_id)
    elif event == "StopStream":
        logger.info("[%s] Stream %s stopped", call_sid, stream_id)
    elif event == "DroppedStream":
        logger.error("[%s] Stream %s dropped", call_sid, stream_id)
    elif event == "DegradedStream":
        logger.warning("[%s] Stream %s degraded", call_sid, stream_id)
    else:
        logger.info("[%s] Unknown stream event %s for stream %s", call_sid, event, stream_id)


async def apply_recording(
    db: AsyncSession,
    call_sid: str,
    recording_url: str,
    recording_duration: Any = None,
    recording_format: Optional[str] = None,
) -> Optional[CallLog]:
    """Attach a finished recording to its call log."""
    result = await db.execute(select(CallLog).where(CallLog.call_sid == call_sid))
    call_log = result.scalar_one_or_none()
    if not call_log:
        logger.warning("Recording for unknown call %s", call_sid)
        return None

    call_log.recording_url = recording_url
    call_log.call_metadata = {
        **(call_log.call_metadata or {}),
        "recording_duration": _as_int(recording_duration),
        "recording_format": recording_format or "mp3",
    }
    await db.commit()
    logger.info("Recording saved for call %s", call_sid)
    return call_log


async def replay_queued_hangups(db: AsyncSession) -> Dict[str, int]:
    """Replay hangup payloads that exhausted their inline retries."""

    async def processor(service: str, payload: Dict[str, Any]) -> None:
        if service != HANGUP_SERVICE:
            raise ValueError(f"Unsupported webhook service: {service}")
        try:
            await apply_hangup(db, payload)
        except Exception:
            await db.rollback()
            raise

    return await process_webhook_retries(db, processor)
