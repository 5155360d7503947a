"""
completion_client.py — Chat-completion capability used for AI extraction.

Talks to any OpenAI-compatible chat completions endpoint (OpenAI itself or a
gateway set through OPENAI_BASE_URL). The contract is deliberately thin:
prompt in, text out. JSON mode is requested unless LLM_JSON_MODE is off,
but callers still parse the reply defensively. Any transport or API
failure surfaces as ServiceError.
"""

from __future__ import annotations

from typing import Any, Optional

from openai import OpenAI, OpenAIError

from floattracker.core.config import settings
from floattracker.core.errors import ServiceError
from floattracker.core.logging import get_logger

logger = get_logger(__name__)


class CompletionClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout_seconds: Optional[int] = None,
        max_retries: Optional[int] = None,
        json_mode: Optional[bool] = None,
        client: Optional[Any] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self._model = model or settings.OPENAI_MODEL
        self._base_url = base_url if base_url is not None else settings.OPENAI_BASE_URL
        self._temperature = temperature if temperature is not None else settings.LLM_TEMPERATURE
        self._timeout = timeout_seconds or settings.LLM_TIMEOUT_SECONDS
        self._max_retries = max_retries if max_retries is not None else settings.LLM_MAX_RETRIES
        self._json_mode = json_mode if json_mode is not None else settings.LLM_JSON_MODE
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url or None,
                timeout=self._timeout,
                max_retries=self._max_retries,
            )
        return self._client

    def complete(self, prompt: str, system_instruction: str) -> str:
        """
        Send one system + user message pair and return the raw reply text.

        Raises:
            ServiceError: missing API key, non-success response, timeout
        """
        if self._client is None and (not self._api_key or not self._api_key.strip()):
            raise ServiceError(
                "Completion API key not configured. Set OPENAI_API_KEY "
                "(or OPENAI_API_KEY_PATH), or disable with LLM_ENABLED=false."
            )

        logger.info("Sending %d-char prompt to %s", len(prompt), self._model)
        request = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._temperature,
        }
        if self._json_mode:
            request["response_format"] = {"type": "json_object"}
        try:
            response = self._get_client().chat.completions.create(**request)
        except OpenAIError as e:
            raise ServiceError(f"Completion API call failed: {e}") from e

        if not response.choices:
            raise ServiceError("Completion response contained no choices")
        return response.choices[0].message.content or ""
