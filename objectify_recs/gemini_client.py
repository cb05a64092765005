"""
Gemini API Client
=================

Sends an image plus an instruction prompt to Gemini's ``generateContent``
endpoint and returns the text of the top candidate.

One blocking request per call; failures are raised as
DescriptorServiceError and never retried.
"""

import logging
import os
from typing import Any, Dict, Optional

import requests

from .config import (
    DEFAULT_MIME_TYPE,
    GEMINI_API_KEY,
    GEMINI_ENDPOINT,
    GEMINI_MODEL,
    GEMINI_TIMEOUT,
)
from .exceptions import DescriptorServiceError
from .prompts import DESCRIPTOR_PROMPT, STRUCTURED_PROMPT, STRUCTURED_SCHEMA

logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Thin wrapper around the Gemini REST API.

    Attributes:
        model: Model name used in the endpoint path
        timeout: Request timeout in seconds (None waits forever)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = GEMINI_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            api_key: Gemini API key (falls back to GEMINI_API_KEY)
            model: Model name (falls back to GEMINI_MODEL)
            timeout: Request timeout in seconds
            session: Optional requests session to send through
        """
        # Read the environment at runtime, not only at import time
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY") or GEMINI_API_KEY
        self.model = model or os.environ.get("GEMINI_MODEL") or GEMINI_MODEL
        self.timeout = timeout
        self._session = session

    @property
    def endpoint(self) -> str:
        return GEMINI_ENDPOINT.format(model=self.model)

    def build_payload(
        self,
        image_b64: str,
        mime_type: str = DEFAULT_MIME_TYPE,
        prompt: str = DESCRIPTOR_PROMPT,
        structured: bool = False,
    ) -> Dict[str, Any]:
        """Build the ``generateContent`` request body."""
        payload: Dict[str, Any] = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {
                            "inlineData": {
                                "mimeType": mime_type,
                                "data": image_b64,
                            }
                        },
                    ]
                }
            ]
        }

        if structured:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": STRUCTURED_SCHEMA,
            }

        return payload

    def describe_image(
        self,
        image_b64: str,
        mime_type: str = DEFAULT_MIME_TYPE,
        prompt: Optional[str] = None,
        structured: bool = False,
    ) -> str:
        """
        Ask the service to describe an image.

        Args:
            image_b64: Base64-encoded image bytes
            mime_type: MIME type of the image
            prompt: Instruction text (defaults to the line-per-value prompt,
                or the JSON prompt when ``structured`` is set)
            structured: Request schema-constrained JSON output

        Returns:
            Text of the first candidate's first part

        Raises:
            DescriptorServiceError: On missing key, network or HTTP errors,
                or a response without candidate text
        """
        if not self.api_key:
            raise DescriptorServiceError("Missing GEMINI_API_KEY in environment.")

        if prompt is None:
            prompt = STRUCTURED_PROMPT if structured else DESCRIPTOR_PROMPT

        payload = self.build_payload(image_b64, mime_type, prompt, structured)
        post = self._session.post if self._session is not None else requests.post

        logger.info("Requesting image description from %s", self.model)
        try:
            resp = post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DescriptorServiceError(f"Request to descriptor service failed: {e}") from e

        if not resp.ok:
            raise DescriptorServiceError(
                f"Descriptor service returned status {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise DescriptorServiceError("Descriptor service returned invalid JSON") from e

        return extract_text(data)


def extract_text(data: Dict[str, Any]) -> str:
    """
    Pull ``candidates[0].content.parts[0].text`` out of a response body.

    Raises:
        DescriptorServiceError: If the structure isn't there
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        reason = ""
        if isinstance(data, dict):
            feedback = data.get("promptFeedback") or {}
            reason = feedback.get("blockReason", "") if isinstance(feedback, dict) else ""
        detail = f" (blocked: {reason})" if reason else ""
        raise DescriptorServiceError(f"Malformed descriptor response{detail}") from e

    if not isinstance(text, str):
        raise DescriptorServiceError("Descriptor response text is not a string")
    return text


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return resp.text[:200]
