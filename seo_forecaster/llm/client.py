"""
Chat-completions client for the predictive collaborator.

Speaks the OpenAI ``/chat/completions`` wire format, which both the hosted
OpenAI API and a local Ollama server (``http://localhost:11434/v1``) accept.

Request::

    POST {base_url}/chat/completions
    Authorization: Bearer <api_key>          (omitted when no key is set)
    {"model": ..., "messages": [...], "temperature": 0.2, "max_tokens": 2000}

Response (fields read)::

    {"choices": [{"message": {"content": "..."}}],
     "usage": {"prompt_tokens": 812, "completion_tokens": 1404, "total_tokens": 2216}}

Any failure of the call itself (timeout, connection error, non-2xx status,
unreadable body) raises ``PredictionServiceError``. Timeouts, transport
errors, 429 and 5xx responses are flagged ``retryable``; the client never
retries on its own.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from seo_forecaster.config import LLMConfig
from seo_forecaster.errors import PredictionServiceError

logger = logging.getLogger(__name__)


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class ChatCompletionClient:
    """Synchronous OpenAI-compatible chat-completions client.

    Usage::

        client = ChatCompletionClient(
            base_url="https://api.openai.com/v1",
            model_name="gpt-4o",
            api_key=os.environ["OPENAI_API_KEY"],
        )
        text = client.complete(messages, temperature=0.2, max_tokens=2000)

    Args:
        base_url: Endpoint root, without the ``/chat/completions`` suffix.
        model_name: Model identifier sent with every request.
        api_key: Bearer token; ``None`` for keyless local servers.
        timeout_seconds: Per-request timeout.
        cost_per_thousand_tokens: Used only to log an estimated cost.
        transport: Optional ``httpx`` transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        model_name: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 60.0,
        cost_per_thousand_tokens: float = 0.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.cost_per_thousand_tokens = cost_per_thousand_tokens
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send one chat-completion request and return the reply text.

        Raises:
            PredictionServiceError: On timeout, any other ``httpx.RequestError``,
                a non-2xx status, or a response without ``choices[0].message.content``.
        """
        body = {
            "model": self.model_name,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.debug("LLM request | model=%s | messages=%d", self.model_name, len(messages))

        try:
            with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
                resp = client.post(self.endpoint, json=body, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise PredictionServiceError(
                f"LLM request timed out after {self.timeout_seconds}s: {exc}",
                retryable=True,
            ) from exc
        except httpx.TransportError as exc:
            raise PredictionServiceError(
                f"LLM endpoint unreachable ({self.endpoint}): {exc}",
                retryable=True,
            ) from exc
        except httpx.RequestError as exc:
            raise PredictionServiceError(
                f"LLM request failed ({type(exc).__name__}): {exc}",
            ) from exc

        if resp.status_code >= 400:
            raise PredictionServiceError(
                f"LLM endpoint returned HTTP {resp.status_code}: {resp.text[:200]}",
                retryable=_is_retryable_status(resp.status_code),
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise PredictionServiceError(
                f"LLM response has no completion content: {exc}",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(content, str):
            raise PredictionServiceError(
                "LLM completion content is not text.", status_code=resp.status_code
            )

        self._log_usage(data.get("usage") or {})
        return content

    def _log_usage(self, usage: dict) -> None:
        total = int(usage.get("total_tokens") or 0)
        cost = total / 1000 * self.cost_per_thousand_tokens
        logger.info(
            "LLM usage | model=%s | prompt=%s | completion=%s | total=%d | est_cost=$%.4f",
            self.model_name,
            usage.get("prompt_tokens", "?"),
            usage.get("completion_tokens", "?"),
            total,
            cost,
        )


def build_prediction_client(
    config: LLMConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> ChatCompletionClient:
    """Build the client described by an ``LLMConfig`` section."""
    logger.info(
        "Prediction client | provider=%s | model=%s | base_url=%s",
        config.provider, config.model_name, config.base_url,
    )
    return ChatCompletionClient(
        base_url=config.base_url,
        model_name=config.model_name,
        api_key=config.api_key,
        timeout_seconds=config.timeout_seconds,
        cost_per_thousand_tokens=config.cost_per_thousand_tokens,
        transport=transport,
    )
