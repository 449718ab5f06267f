"""Classifier adapter: sends content to the LLM and returns its raw answer."""

from __future__ import annotations

import logging
from typing import Sequence

import anthropic

from streamcentives.llm.client import LLMClient
from streamcentives.llm.prompts import MODERATION_PROMPT, MODERATION_SYSTEM_PROMPT
from streamcentives.moderation.errors import ClassifierError, ClassifierUnavailable

logger = logging.getLogger(__name__)


def build_prompt(content: str, content_type: str, media_urls: Sequence[str] = ()) -> str:
    """Fill the moderation template for one content item."""
    return MODERATION_PROMPT.format(
        content=content,
        content_type=content_type,
        media_urls=", ".join(media_urls),
    )


class ModerationClassifier:
    """Wraps an :class:`LLMClient` with the fixed moderation instruction.

    The adapter keeps no state between calls; it only translates SDK
    failures into the pipeline's error taxonomy.
    """

    def __init__(self, client: LLMClient, max_tokens: int = 1000) -> None:
        self._client = client
        self._max_tokens = max_tokens

    def classify(
        self,
        content: str,
        content_type: str,
        media_urls: Sequence[str] = (),
    ) -> str:
        """Return the raw classifier text for *content*.

        Raises :class:`ClassifierUnavailable` on transport failure, timeout or
        missing API key and :class:`ClassifierError` on a non-2xx response.
        """
        if not self._client.configured:
            raise ClassifierUnavailable("ANTHROPIC_API_KEY is not configured")

        prompt = build_prompt(content, content_type, media_urls)
        try:
            response = self._client.complete(
                prompt,
                system_prompt=MODERATION_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
            )
        except anthropic.APIStatusError as exc:
            logger.error("Classifier returned status %s", exc.status_code)
            raise ClassifierError(exc.status_code) from exc
        except anthropic.APIConnectionError as exc:
            # APITimeoutError is a subclass and lands here too
            logger.error("Classifier unreachable: %s", exc)
            raise ClassifierUnavailable(f"Classifier unavailable: {exc}") from exc

        logger.debug(
            "Classified %s in %dms (%d tokens, $%.6f)",
            content_type,
            response.latency_ms,
            response.total_tokens,
            response.cost_estimate,
        )
        if response.truncated:
            logger.warning("Classifier answer for %s hit the token limit", content_type)
        return response.content
