import base64
import json
import logging
from typing import Optional

from openai import AsyncOpenAI

from app.configs.settings import settings
from app.dto.booking_dto import DiagnosisRead
from app.exceptions.base_exception import ExternalServiceException

logger = logging.getLogger(__name__)

FALLBACK_DIAGNOSIS = DiagnosisRead(
    issue_title="General Diagnostic Required",
    severity="medium",
    advice="Our technician will inspect the device to determine the exact issue.",
)

SEVERITIES = {"low", "medium", "high"}

SYSTEM_PROMPT = (
    "You are a repair technician triaging customer photos of damaged devices. "
    "Return the result in JSON format as follows (DO NOT include any other keys):\n"
    '{\n  "issueTitle": "",\n  "severity": "low|medium|high",\n  "advice": ""\n}'
    "\nKeep the advice to one or two sentences. Only return JSON, do not add any other explanations."
)


class DiagnosisService:
    """
    Photo-based issue classification. Any failure yields FALLBACK_DIAGNOSIS so
    a booking is never blocked by the AI call.
    """

    @staticmethod
    def get_client() -> AsyncOpenAI:
        if not settings.OPENAI_API_KEY:
            raise ExternalServiceException("AI diagnosis is not configured")
        return AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.AI_TIMEOUT_SECONDS)

    @staticmethod
    def parse_diagnosis(content: Optional[str]) -> DiagnosisRead:
        data = json.loads(content or "")
        if not isinstance(data, dict):
            raise ValueError("Diagnosis is not a JSON object")

        title = str(data.get("issueTitle") or "").strip()
        advice = str(data.get("advice") or "").strip()
        severity = str(data.get("severity") or "").strip().lower()
        if not title or not advice:
            raise ValueError("Diagnosis is missing fields")
        if severity not in SEVERITIES:
            severity = "medium"
        return DiagnosisRead(issue_title=title, severity=severity, advice=advice)

    @staticmethod
    async def diagnose(image: bytes, content_type: str, device_type: str) -> DiagnosisRead:
        try:
            client = DiagnosisService.get_client()
            encoded = base64.b64encode(image).decode("ascii")
            response = await client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                response_format={"type": "json_object"},
                temperature=0.2,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": f"Device type: {device_type or 'unknown'}"},
                            {"type": "image_url", "image_url": {"url": f"data:{content_type};base64,{encoded}"}},
                        ],
                    },
                ],
            )
            return DiagnosisService.parse_diagnosis(response.choices[0].message.content)
        except Exception:
            logger.warning("AI diagnosis failed, using fallback", exc_info=True)
            return FALLBACK_DIAGNOSIS.model_copy()
