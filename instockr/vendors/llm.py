"""OpenAI helpers for JSON completions and embeddings."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional, Sequence

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class LlmError(RuntimeError):
    """Raised when the language model is unavailable or answers unusably."""


@lru_cache(maxsize=4)
def get_client(api_key: str) -> OpenAI:
    if not api_key:
        raise LlmError("OPENAI_API_KEY is not configured")
    return OpenAI(api_key=api_key, timeout=REQUEST_TIMEOUT, max_retries=0)


def chat_completion(
    prompt: str,
    *,
    api_key: str,
    model: str,
    system: str,
    temperature: float = 0.1,
    max_tokens: int = 2000,
) -> str:
    """Single chat round trip returning the assistant text."""
    client = get_client(api_key)
    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except OpenAIError as exc:
        logger.error("OpenAI chat completion failed: %s", exc)
        raise LlmError(str(exc)) from exc

    content: Optional[str] = response.choices[0].message.content if response.choices else None
    if not content:
        raise LlmError("OpenAI returned an empty completion")
    return content.strip()


def embed(texts: Sequence[str], *, api_key: str, model: str) -> List[List[float]]:
    """Embed every text in one request, preserving input order."""
    client = get_client(api_key)
    try:
        response = client.embeddings.create(model=model, input=list(texts))
    except OpenAIError as exc:
        logger.error("OpenAI embeddings request failed: %s", exc)
        raise LlmError(str(exc)) from exc

    vectors = [item.embedding for item in sorted(response.data, key=lambda item: item.index)]
    if len(vectors) != len(texts):
        raise LlmError(f"expected {len(texts)} embeddings, got {len(vectors)}")
    return vectors


def extract_json(response_text: str, *, opening: str = "{", closing: str = "}") -> str:
    """Pull the JSON payload out of a reply that may be wrapped in markdown fences."""
    text = response_text.strip()

    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        if end > start:
            text = text[start:end].strip()
    elif "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        if end > start:
            text = text[start:end].strip()

    start = text.find(opening)
    end = text.rfind(closing) + 1
    if start >= 0 and end > start:
        text = text[start:end]
    return text
