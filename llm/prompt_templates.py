"""
Prompt Templates for Chatbot Copilot.

All customer-facing prompts are in Thai; the assistant answers politely
using ครับ/ค่ะ.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional


class PromptType(Enum):
    """Types of prompts."""
    INTENT = "intent"
    RESPONSE = "response"
    QUICK_REPLIES = "quick_replies"
    SUMMARY = "summary"
    IMAGE = "image"
    SLIP = "slip"
    ID_CARD = "id_card"


class PromptTemplates:
    """
    Manages prompt templates for the pipeline.

    Literal JSON braces in templates are doubled for str.format.
    """

    DEFAULT_CUSTOMER_NAME = "ลูกค้า"
    NO_CONTEXT = "ไม่มีข้อมูลที่เกี่ยวข้อง"
    NO_EXAMPLES = "ไม่มี"

    TEMPLATES = {
        PromptType.INTENT: """วิเคราะห์ข้อความของลูกค้าและระบุความต้องการ (intent) เป็น JSON

ข้อความ: "{message}"

ตอบเป็น JSON format เท่านั้น:
{{
  "intent": "OPEN_ACCOUNT|TRANSFER|CARD|LOAN|COMPLAINT|GENERAL_INQUIRY|GREETING|OTHER",
  "confidence": 0.0-1.0,
  "keywords": ["keyword1", "keyword2"],
  "suggestedDepartment": "ฝ่ายที่เกี่ยวข้อง",
  "summary": "สรุปสั้นๆ ว่าลูกค้าต้องการอะไร"
}}""",

        PromptType.RESPONSE: """คุณเป็น AI ผู้ช่วยตอบคำถามลูกค้าสำหรับธุรกิจการเงิน ตอบเป็นภาษาไทยสุภาพ ใช้ครับ/ค่ะ

ข้อมูลลูกค้า:
- ชื่อ: {name}
- ประวัติการติดต่อ: {total_chats} ครั้ง

บทสนทนาที่เกี่ยวข้องจากประวัติ:
{context}

คำถามของลูกค้า: {message}

กรุณาตอบคำถามอย่างสุภาพ กระชับ และเป็นประโยชน์ ถ้าไม่แน่ใจให้แนะนำติดต่อเจ้าหน้าที่ในเวลาทำการ ({business_hours})""",

        PromptType.QUICK_REPLIES: """สร้างคำตอบแนะนำ 3 ข้อ สำหรับเจ้าหน้าที่ตอบลูกค้า

ข้อความลูกค้า: "{message}"

ตัวอย่างคำตอบจากประวัติ:
{examples}

ตอบเป็น JSON array:
[
  {{"text": "คำตอบที่ 1", "confidence": 0.9}},
  {{"text": "คำตอบที่ 2", "confidence": 0.8}},
  {{"text": "คำตอบที่ 3", "confidence": 0.7}}
]""",

        PromptType.SUMMARY: """สรุปบทสนทนาต่อไปนี้เป็นภาษาไทย ให้กระชับ 2-3 ประโยค:

{conversation}

สรุป:""",

        PromptType.IMAGE: """วิเคราะห์รูปภาพนี้และอธิบายเป็นภาษาไทย

{context}

กรุณาระบุ:
1. ประเภทของรูป (สลิปโอนเงิน, เอกสาร, รูปทั่วไป, etc.)
2. ข้อมูลสำคัญที่เห็น (ตัวเลข, วันที่, ชื่อ, etc.)
3. สรุปสั้นๆ ว่ารูปนี้เกี่ยวกับอะไร

ตอบเป็น JSON:
{{
  "type": "ประเภทรูป",
  "details": {{
    "amount": "จำนวนเงิน (ถ้ามี)",
    "date": "วันที่ (ถ้ามี)",
    "reference": "เลขอ้างอิง (ถ้ามี)",
    "other": "ข้อมูลอื่นๆ"
  }},
  "summary": "สรุปสั้นๆ",
  "confidence": 0.0-1.0
}}""",

        PromptType.SLIP: """นี่คือสลิปการโอนเงิน กรุณาอ่านข้อมูลและตอบเป็น JSON:
{{
  "isSlip": true/false,
  "amount": "จำนวนเงิน",
  "currency": "สกุลเงิน",
  "date": "วันที่ทำรายการ",
  "time": "เวลา",
  "fromAccount": "บัญชีผู้โอน",
  "toAccount": "บัญชีผู้รับ",
  "bankName": "ชื่อธนาคาร",
  "reference": "เลขอ้างอิง",
  "status": "สถานะ (สำเร็จ/รอดำเนินการ)",
  "confidence": 0.0-1.0
}}

ถ้าไม่ใช่สลิป ให้ตอบ {{"isSlip": false}}""",

        PromptType.ID_CARD: """นี่คือรูปบัตรประชาชน กรุณาอ่านข้อมูล (ไม่ต้องแสดงเลขบัตรเต็ม ให้แสดงแค่ 4 ตัวท้าย):
{{
  "isIdCard": true/false,
  "namePrefix": "คำนำหน้า",
  "firstName": "ชื่อ",
  "lastName": "นามสกุล",
  "lastFourDigits": "4 ตัวท้ายของเลขบัตร",
  "dateOfBirth": "วันเกิด",
  "expiryDate": "วันหมดอายุ",
  "address": "ที่อยู่ (ถ้าเห็น)",
  "confidence": 0.0-1.0
}}""",
    }

    @classmethod
    def get_prompt(cls, prompt_type: PromptType, **kwargs: Any) -> str:
        """
        Get formatted prompt.

        Args:
            prompt_type: Which template to use
            **kwargs: Template variables

        Returns:
            Formatted prompt
        """
        return cls.TEMPLATES[prompt_type].format(**kwargs)

    @classmethod
    def format_context(cls, documents: Iterable[Any], labels=("คำถาม", "คำตอบ")) -> str:
        """Format Q&A context documents as question/answer blocks."""
        q_label, a_label = labels
        return "\n\n".join(
            f"{q_label}: {doc.question}\n{a_label}: {doc.answer}"
            for doc in documents
        )

    @classmethod
    def build_intent_prompt(cls, message: str) -> str:
        return cls.get_prompt(PromptType.INTENT, message=message)

    @classmethod
    def build_response_prompt(
        cls,
        message: str,
        documents: List[Any],
        customer_name: Optional[str] = None,
        total_chats: int = 0,
        business_hours: str = "10:00-22:00",
    ) -> str:
        """
        Build the answer-generation prompt.

        Args:
            message: Customer message
            documents: Retrieved context documents (all of them are included)
            customer_name: Display name, if known
            total_chats: Number of prior conversations
            business_hours: Staff availability window quoted to the customer

        Returns:
            Formatted prompt
        """
        return cls.get_prompt(
            PromptType.RESPONSE,
            name=customer_name or cls.DEFAULT_CUSTOMER_NAME,
            total_chats=total_chats or 0,
            context=cls.format_context(documents) or cls.NO_CONTEXT,
            message=message,
            business_hours=business_hours,
        )

    @classmethod
    def build_quick_replies_prompt(cls, message: str, documents: List[Any]) -> str:
        examples = cls.format_context(documents[:3], labels=("Q", "A"))
        return cls.get_prompt(
            PromptType.QUICK_REPLIES,
            message=message,
            examples=examples or cls.NO_EXAMPLES,
        )

    @classmethod
    def build_summary_prompt(cls, messages: List[Mapping[str, Any]]) -> str:
        """Build a summary prompt from {"from", "text"} message dicts."""
        lines = []
        for m in messages:
            speaker = "ลูกค้า" if m.get("from") == "customer" else "เจ้าหน้าที่"
            lines.append(f"{speaker}: {m.get('text', '')}")
        return cls.get_prompt(PromptType.SUMMARY, conversation="\n".join(lines))

    @classmethod
    def build_image_prompt(cls, context: str = "") -> str:
        return cls.get_prompt(PromptType.IMAGE, context=f"บริบท: {context}" if context else "")
