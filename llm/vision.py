"""
Image Analyzer for Chatbot Copilot.

Reads customer images (transfer slips, ID cards, general photos) through an
image-capable provider and files a text description of each image into the
Q&A index so later questions can draw on it.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from retrieval.context_retriever import ContextRetriever

from .json_extractor import extract_first_json_object
from .prompt_templates import PromptTemplates, PromptType
from .providers.base import VisionProvider
from .retry import RetryExecutor

logger = logging.getLogger(__name__)


UNREADABLE_SUMMARY = "ไม่สามารถวิเคราะห์รูปได้"
UNREADABLE_REPLY = "ไม่สามารถวิเคราะห์รูปได้ครับ กรุณาลองส่งใหม่หรือติดต่อเจ้าหน้าที่"
SLIP_TYPES = ("slip", "สลิปโอนเงิน")
DEFAULT_CURRENCY = "บาท"
UNSPECIFIED = "ไม่ระบุ"


@dataclass
class ImageAnalysis:
    """General-purpose reading of an image."""
    success: bool
    type: str = "unknown"
    details: Dict[str, Any] = field(default_factory=dict)
    summary: str = ""
    confidence: float = 0.5
    raw_text: str = ""
    error: Optional[str] = None

    @property
    def is_slip(self) -> bool:
        return self.type.strip().lower() in SLIP_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "type": self.type,
            "details": dict(self.details),
            "summary": self.summary,
            "confidence": self.confidence,
            "error": self.error,
        }


@dataclass
class ImageResult:
    """Outcome of handling one inbound image."""
    sender_id: str
    analysis: ImageAnalysis
    reply: str
    indexed_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender_id": self.sender_id,
            "analysis": self.analysis.to_dict(),
            "reply": self.reply,
            "indexed_ids": list(self.indexed_ids),
        }


def create_rag_description(analysis: Union[ImageAnalysis, Mapping[str, Any]]) -> Optional[str]:
    """
    One-line description of an analysis for the vector index.

    Accepts a general ImageAnalysis or the dict returned by slip / ID card
    readers. Returns None when there is nothing worth storing.
    """
    if isinstance(analysis, ImageAnalysis):
        if not analysis.success:
            return None
        return f"รูปประเภท: {analysis.type}. {analysis.summary}".strip()

    if analysis.get("isSlip"):
        amount = analysis.get("amount") or UNSPECIFIED
        currency = analysis.get("currency") or DEFAULT_CURRENCY
        date = analysis.get("date") or UNSPECIFIED
        return f"สลิปโอนเงิน: {amount} {currency} วันที่ {date}"

    if analysis.get("isIdCard"):
        name = f"{analysis.get('namePrefix') or ''}{analysis.get('firstName') or ''} {analysis.get('lastName') or ''}"
        return f"บัตรประชาชน: {name.strip()}"

    return None


def format_reply(analysis: ImageAnalysis) -> str:
    """Acknowledgement sent back to the customer."""
    if not analysis.success:
        return UNREADABLE_REPLY

    if analysis.is_slip:
        lines = ["📋 ได้รับสลิปแล้วครับ"]
        details = analysis.details
        if details.get("amount"):
            lines.append(f"💰 จำนวน: {details['amount']}")
        if details.get("date"):
            lines.append(f"📅 วันที่: {details['date']}")
        if details.get("reference"):
            lines.append(f"🔖 อ้างอิง: {details['reference']}")
        return "\n".join(lines)

    return f"📋 วิเคราะห์รูปแล้ว:\n{analysis.summary}"


class ImageAnalyzer:
    """
    Image reading through the vision capability.

    Provider calls go through the shared RetryExecutor. None of the analyze
    methods raise: failures come back as unsuccessful results.
    """

    def __init__(
        self,
        provider: VisionProvider,
        retry_executor: RetryExecutor,
        context_retriever: Optional[ContextRetriever] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            provider: Image-capable generation provider
            retry_executor: Retry/rotation policy for provider calls
            context_retriever: Where image descriptions are indexed (optional)
        """
        self.provider = provider
        self.retry_executor = retry_executor
        self.context_retriever = context_retriever

    async def _read(self, prompt: str, image_url: str) -> str:
        result = await self.retry_executor.execute_with_retry(
            lambda: self.provider.describe_image(prompt, image_url)
        )
        return result.text

    async def analyze_image(self, image_url: str, context: str = "") -> ImageAnalysis:
        """
        Describe an arbitrary image.

        Args:
            image_url: URL of the image
            context: Optional hint about what to look for

        Returns:
            ImageAnalysis (success=False on provider failure)
        """
        try:
            text = await self._read(PromptTemplates.build_image_prompt(context), image_url)
        except Exception as e:
            logger.error(f"Image analysis failed: {e}")
            return ImageAnalysis(success=False, type="error", summary=UNREADABLE_SUMMARY, error=str(e))

        data = extract_first_json_object(text)
        if data is None:
            logger.warning("Failed to parse image analysis JSON, using raw text")
            return ImageAnalysis(success=True, summary=text, raw_text=text)

        details = data.get("details")
        try:
            confidence = max(0.0, min(1.0, float(data.get("confidence", 0.5))))
        except (TypeError, ValueError):
            confidence = 0.5

        analysis = ImageAnalysis(
            success=True,
            type=str(data.get("type") or "unknown"),
            details=details if isinstance(details, dict) else {},
            summary=str(data.get("summary") or ""),
            confidence=confidence,
            raw_text=text,
        )
        logger.info(f"Image analyzed: {analysis.type}")
        return analysis

    async def analyze_slip(self, image_url: str) -> Dict[str, Any]:
        """Read a transfer slip. Returns {"isSlip": False, ...} when it is not one."""
        try:
            text = await self._read(PromptTemplates.get_prompt(PromptType.SLIP), image_url)
        except Exception as e:
            logger.error(f"Slip analysis failed: {e}")
            return {"isSlip": False, "error": str(e)}

        data = extract_first_json_object(text)
        if data is None:
            logger.warning("Failed to parse slip JSON")
            return {"isSlip": False, "error": "Could not parse slip"}
        return data

    async def analyze_id_card(self, image_url: str) -> Dict[str, Any]:
        """
        Read a national ID card.

        Only the last four digits of the card number are kept, even if the
        model returns more.
        """
        try:
            text = await self._read(PromptTemplates.get_prompt(PromptType.ID_CARD), image_url)
        except Exception as e:
            logger.error(f"ID card analysis failed: {e}")
            return {"isIdCard": False, "error": str(e)}

        data = extract_first_json_object(text)
        if data is None:
            logger.warning("Failed to parse ID card JSON")
            return {"isIdCard": False, "error": "Could not parse ID card"}

        for key in ("idNumber", "citizenId", "cardNumber"):
            data.pop(key, None)
        digits = "".join(ch for ch in str(data.get("lastFourDigits") or "") if ch.isdigit())
        data["lastFourDigits"] = digits[-4:]
        return data

    async def index_analysis(self, sender_id: str, analysis: ImageAnalysis) -> List[str]:
        """File a successful analysis into the Q&A index."""
        if self.context_retriever is None or not create_rag_description(analysis):
            return []

        return await self.context_retriever.add_documents([{
            "question": f"ลูกค้าส่งรูป: {analysis.type}",
            "answer": analysis.summary,
            "conversation_id": f"img_{sender_id}_{int(time.time() * 1000)}",
            "customer_id": sender_id,
        }])

    async def process_image(self, sender_id: str, image_url: str) -> ImageResult:
        """Analyze an inbound image, build the customer reply and index it."""
        analysis = await self.analyze_image(image_url)

        indexed_ids: List[str] = []
        if analysis.success:
            try:
                indexed_ids = await self.index_analysis(sender_id, analysis)
            except Exception as e:
                logger.error(f"Failed to index image analysis for {sender_id}: {e}")

        return ImageResult(
            sender_id=sender_id,
            analysis=analysis,
            reply=format_reply(analysis),
            indexed_ids=indexed_ids,
        )
