"""LLM client wrapper for Streamcentives.

Wraps the Anthropic Messages API for single-shot classification calls:
one bounded wait per request, no SDK retries, and token usage plus an
estimated cost on every response.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

import anthropic

from streamcentives.config import DEFAULT_CLASSIFIER_TIMEOUT, DEFAULT_MODEL

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pricing table (USD per 1 M tokens)
# ---------------------------------------------------------------------------

MODEL_PRICING: dict[str, dict[str, float]] = {
    "claude-opus-4-1-20250805": {"input": 15.0, "output": 75.0},
    "claude-sonnet-4-5-20250929": {"input": 3.0, "output": 15.0},
    "claude-sonnet-4-20250514": {"input": 3.0, "output": 15.0},
    "claude-haiku-3-5-20241022": {"input": 0.80, "output": 4.0},
}


# ---------------------------------------------------------------------------
# Response dataclass
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Structured response from an LLM call."""

    content: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    latency_ms: int = 0
    cost_estimate: float = 0.0
    stop_reason: str = ""

    @property
    def truncated(self) -> bool:
        """True when the model stopped at the token limit."""
        return self.stop_reason == "max_tokens"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class LLMClient:
    """Thin wrapper around the Anthropic Python SDK.

    Parameters
    ----------
    model : str
        Model identifier to use for completions.
    api_key : str | None
        Anthropic API key.  Falls back to the ``ANTHROPIC_API_KEY``
        environment variable when *None*.
    timeout : float
        Seconds to wait for a single completion before giving up.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = DEFAULT_CLASSIFIER_TIMEOUT,
    ) -> None:
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self.timeout = timeout
        self._configured = bool(self.api_key)

        if self._configured:
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                timeout=timeout,
                max_retries=0,
            )
        else:
            self._client = None  # type: ignore[assignment]

    # -- properties ----------------------------------------------------------

    @property
    def configured(self) -> bool:
        """Return *True* if an API key is available."""
        return self._configured

    # -- cost helpers --------------------------------------------------------

    def _estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        pricing = MODEL_PRICING.get(self.model, MODEL_PRICING[DEFAULT_MODEL])
        input_cost = (input_tokens / 1_000_000) * pricing["input"]
        output_cost = (output_tokens / 1_000_000) * pricing["output"]
        return round(input_cost + output_cost, 6)

    # -- synchronous completion ----------------------------------------------

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Send a completion request and return an :class:`LLMResponse`.

        SDK exceptions (``anthropic.APIConnectionError``,
        ``anthropic.APIStatusError``) propagate to the caller.  Raises
        ``RuntimeError`` when no API key is configured.
        """
        if not self._configured:
            raise RuntimeError("LLM not configured. Set ANTHROPIC_API_KEY.")

        messages = [{"role": "user", "content": prompt}]
        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": messages,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        start = time.monotonic()
        response = self._client.messages.create(**kwargs)
        latency_ms = int((time.monotonic() - start) * 1000)

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens
        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        logger.debug(
            "LLM call %s: %d in / %d out tokens in %d ms (stop=%s)",
            self.model,
            input_tokens,
            output_tokens,
            latency_ms,
            response.stop_reason,
        )

        return LLMResponse(
            content=content,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            latency_ms=latency_ms,
            cost_estimate=self._estimate_cost(input_tokens, output_tokens),
            stop_reason=response.stop_reason or "",
        )
