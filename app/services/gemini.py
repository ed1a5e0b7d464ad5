import json
import re
import requests
from pydantic import ValidationError
from typing import Any, Dict, Optional
from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    ProviderError,
    RateLimitedError,
)
from app.schemas.providers import GeminiResponse
from app.utils.logger import get_logger

logger = get_logger(__name__)

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def extract_json(text: str) -> Any:
    """
    Parse JSON out of a model reply, tolerating markdown code fences.

    Raises:
        ValueError: the reply is not JSON
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip())
    return json.loads(cleaned)


class GeminiClient:
    """Thin wrapper over the generateContent REST endpoint."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self._model = model

    @property
    def api_key(self) -> str:
        return self._api_key if self._api_key is not None else settings.GEMINI_API_KEY

    @property
    def model(self) -> str:
        return self._model or settings.GEMINI_MODEL

    def _build_body(
        self,
        prompt: str,
        system_instruction: Optional[str],
        max_output_tokens: int,
        temperature: float,
        response_mime_type: Optional[str],
    ) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {
            "maxOutputTokens": max_output_tokens,
            "temperature": temperature,
        }
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type

        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
            "safetySettings": [
                {"category": c, "threshold": "BLOCK_NONE"} for c in SAFETY_CATEGORIES
            ],
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return body

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_output_tokens: int = 1024,
        temperature: float = 0.7,
        response_mime_type: Optional[str] = None,
    ) -> str:
        """
        Send one prompt and return the first candidate's text.

        Raises:
            ConfigurationError: no API key configured
            RateLimitedError: HTTP 429
            ProviderError: any other non-2xx status or malformed payload
            EmptyResponseError: the reply carries no text
            requests.exceptions.RequestException: transport failures
        """
        if not self.api_key:
            raise ConfigurationError("Gemini API key not configured")

        url = f"{settings.GEMINI_BASE_URL.rstrip('/')}/models/{self.model}:generateContent"
        body = self._build_body(
            prompt, system_instruction, max_output_tokens, temperature, response_mime_type
        )

        resp = requests.post(
            url,
            params={"key": self.api_key},
            json=body,
            timeout=settings.GEMINI_TIMEOUT,
        )

        if resp.status_code == 429:
            raise RateLimitedError("Gemini rate limited", status_code=429)
        if not resp.ok:
            raise ProviderError(
                f"Gemini API error: {resp.status_code} - {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            parsed = GeminiResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ProviderError(f"Malformed Gemini payload: {e}")

        text = parsed.first_text()
        if not text or not text.strip():
            raise EmptyResponseError("Gemini response has no text")

        logger.debug(f"Gemini returned {len(text)} characters")
        return text


gemini_client = GeminiClient()
