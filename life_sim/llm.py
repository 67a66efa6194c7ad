"""LLM client: HTTP connection to a chat or text-completion backend.

The narrator injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` identifies who is calling (currently only "narrator"). The
implementation may use it for logging; the simplest implementation ignores it.

Two implementations are provided:

    HttpLLM   real HTTP client, supports OpenAI chat, OpenAI completions
                and KoboldCpp backends. Selected by provider_format.
    EchoLLM   returns the prompt back unchanged. Useful for smoke-testing
                the turn wiring without a running model.

Production code constructs an HttpLLM from Settings and hands it to the
Narrator. Tests use StubLLM (defined in conftest.py) instead.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["openai_chat", "openai", "koboldcpp"]


class HttpLLM:
    """Async HTTP client for chat and text-completion backends.

    Supported formats:
      "openai_chat"  POST /v1/chat/completions
                      {"model", "messages": [{"role": "system", "content": prompt}],
                       "temperature", "response_format": {"type": "json_object"}}
                      Response: {"choices": [{"message": {"content": "..."}}]}
      "openai"       POST /v1/completions   {"model": ..., "prompt": ...}
                      Response: {"choices": [{"text": "..."}]}
      "koboldcpp"    POST /api/v1/generate  {"prompt": ...}
                      Response: {"results": [{"text": "..."}]}

    Args:
        provider_url:    Base URL of the backend, e.g. "https://api.openai.com".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format to use. Defaults to "openai_chat".
        model:           Model identifier, used by the openai formats.
        temperature:     Sampling temperature, sent by the openai_chat format.
        timeout:         HTTP timeout in seconds. Defaults to 30.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "openai_chat",
        model: str = "",
        temperature: float = 0.7,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._temperature = temperature
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai_chat":
            url = f"{self._base_url}/v1/chat/completions"
            body: dict = {
                "messages": [{"role": "system", "content": prompt}],
                "temperature": self._temperature,
                "response_format": {"type": "json_object"},
            }
            if self._model:
                body["model"] = self._model
            return url, body

        if self._format == "openai":
            url = f"{self._base_url}/v1/completions"
            body = {"prompt": prompt}
            if self._model:
                body["model"] = self._model
            return url, body

        # koboldcpp
        url = f"{self._base_url}/api/v1/generate"
        return url, {"prompt": prompt}

    def _parse_response(self, data: dict) -> str:
        """Extract the completion text from the response body."""
        if self._format == "openai_chat":
            choices = data.get("choices")
            first = choices[0] if isinstance(choices, list) and choices else None
            message = first.get("message") if isinstance(first, dict) else None
            if not isinstance(message, dict) or not isinstance(message.get("content"), str):
                raise LLMError("Unexpected response format from OpenAI chat backend")
            return message["content"]

        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "text" not in choices[0]:
                raise LLMError("Unexpected response format from OpenAI-compatible backend")
            return choices[0]["text"]

        results = data.get("results")
        if not results or "text" not in results[0]:
            raise LLMError("Unexpected response format from KoboldCpp backend")
        return results[0]["text"]

    async def __call__(self, stage: str, prompt: str) -> str:
        url, body = self._build_request(prompt)
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise LLMError("Unexpected response format from LLM backend")

        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# EchoLLM: returns the prompt unchanged; useful for wiring smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the prompt text as-is. No network calls.

    The output is not valid narrator JSON, so every turn takes the fallback
    path. That is enough to exercise storage, counters and stats end-to-end without
    a running model.
    """

    async def __call__(self, stage: str, prompt: str) -> str:
        logger.debug("EchoLLM stage=%s prompt_len=%d", stage, len(prompt))
        return prompt


# ---------------------------------------------------------------------------
# LLMError: raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
