"""
Message API Routes for Chatbot Copilot.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..services import get_services
from chat.business_hours import select_mode
from chat.processor import ProcessingMode, ProcessResult

logger = logging.getLogger(__name__)

router = APIRouter()


ESCALATION_NOTICE = (
    "ขอบคุณสำหรับข้อความครับ เรื่องนี้ต้องให้เจ้าหน้าที่ดูแลโดยตรง "
    "จะมีเจ้าหน้าที่ติดต่อกลับในเวลาทำการ ({hours}) ครับ"
)
LOW_CONFIDENCE_HINT = (
    "หากคำตอบไม่ตรงกับที่ต้องการ สามารถสอบถามเจ้าหน้าที่ได้ในเวลาทำการ ({hours}) ครับ"
)


# ── Request / Response Models ─────────────────────────────────────

class MessageRequest(BaseModel):
    sender_id: str = Field(..., min_length=1, max_length=128)
    text: str = Field(..., min_length=1, max_length=5000)
    mode: Optional[ProcessingMode] = None


class MessageResponse(BaseModel):
    result: Dict[str, Any]
    reply_to_send: Optional[str] = None


class StaffReplyRequest(BaseModel):
    sender_id: str = Field(..., min_length=1, max_length=128)
    staff_id: str = Field(..., min_length=1, max_length=128)
    text: str = Field(..., min_length=1, max_length=5000)


class StaffReplyResponse(BaseModel):
    success: bool
    indexed_ids: List[str] = []


class ImageRequest(BaseModel):
    sender_id: str = Field(..., min_length=1, max_length=128)
    image_url: str = Field(..., min_length=1, max_length=2048)


class SummaryRequest(BaseModel):
    sender_id: str = Field(..., min_length=1, max_length=128)
    limit: int = Field(default=20, ge=1, le=200)


class SummaryResponse(BaseModel):
    sender_id: str
    summary: str


# ── Helpers ───────────────────────────────────────────────────────

def reply_to_send(result: ProcessResult, hours_label: str, hint_threshold: float) -> Optional[str]:
    """
    Text to deliver to the customer, or None when staff will answer.

    A failed run always sends the apology, whatever the mode. Escalated
    conversations get a handoff notice instead of the generated reply.
    Replies that cleared escalation but score below hint_threshold get a
    hint appended.
    """
    if result.error:
        return result.reply

    if result.mode != ProcessingMode.ASSISTANT:
        return None

    if result.should_escalate:
        return ESCALATION_NOTICE.format(hours=hours_label)

    reply = result.reply or ""
    if result.confidence < hint_threshold:
        reply = f"{reply}\n\n{LOW_CONFIDENCE_HINT.format(hours=hours_label)}"
    return reply


def _require_processor():
    services = get_services()
    if not services.is_ready:
        raise HTTPException(status_code=503, detail="Message processor not available")
    return services


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/messages", response_model=MessageResponse)
async def process_message(request: MessageRequest):
    """
    Process an inbound customer message.

    The mode follows business hours unless the caller sets it explicitly.
    """
    services = _require_processor()
    mode = request.mode or select_mode(services.business_hours)

    result = await services.processor.process_message(request.sender_id, request.text, mode)

    return MessageResponse(
        result=result.to_dict(),
        reply_to_send=reply_to_send(
            result,
            services.business_hours.label,
            services.settings.low_confidence_hint_threshold,
        ),
    )


@router.post("/messages/staff-reply", response_model=StaffReplyResponse)
async def staff_reply(request: StaffReplyRequest):
    """Record a reply written by staff."""
    services = _require_processor()

    ack = await services.processor.process_staff_reply(request.sender_id, request.staff_id, request.text)
    if not ack.success:
        raise HTTPException(status_code=500, detail="Failed to record staff reply")

    return StaffReplyResponse(success=True, indexed_ids=ack.indexed_ids)


@router.post("/messages/image")
async def process_image(request: ImageRequest):
    """Analyze an image sent by a customer and index what it shows."""
    services = _require_processor()
    if services.image_analyzer is None:
        raise HTTPException(status_code=503, detail="Image analysis not available")

    result = await services.image_analyzer.process_image(request.sender_id, request.image_url)
    return result.to_dict()


@router.post("/conversations/summary", response_model=SummaryResponse)
async def summarize_conversation(request: SummaryRequest):
    """Summarize a customer's recent conversation."""
    services = _require_processor()

    try:
        summary = await services.processor.summarize(request.sender_id, request.limit)
    except Exception as e:
        logger.error(f"Summary failed for {request.sender_id}: {e}")
        raise HTTPException(status_code=502, detail="Summary generation failed")

    return SummaryResponse(sender_id=request.sender_id, summary=summary)


@router.get("/context/stats")
async def context_stats():
    """Vector index statistics for the chat-history namespace."""
    services = _require_processor()

    try:
        return await services.context_retriever.get_stats()
    except Exception as e:
        logger.error(f"Failed to read index stats: {e}")
        raise HTTPException(status_code=502, detail="Vector index unavailable")
