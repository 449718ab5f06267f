"""Streamcentives LLM integration module.

Provides a thin wrapper around the Anthropic API and the prompt template
used by the moderation classifier.
"""

from streamcentives.llm.client import LLMClient, LLMResponse

__all__ = [
    "LLMClient",
    "LLMResponse",
]
