"""
Summarization Adapter

One short LLM call per upload, bounded by its own timeout:

    Summarizer.summarize(text)
        │
        ├─ no API key configured ───────────────► fallback_summary(text)
        │
        ├─ ChatOpenAI.ainvoke([system, user]) ──► stripped model output
        │        (input truncated, asyncio.wait_for timeout)
        │
        └─ timeout / provider error / empty ────► fallback_summary(text)

Summarization is enrichment, never a gate: summarize() does not raise.
The fallback is deterministic and extractive: a prefix of the extracted
text, cut at a sentence boundary when one falls inside the window.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from tenant_ingest.core.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that summarizes documents in 2-3 sentences."
USER_PROMPT = "Provide a concise summary of this document:"

_SENTENCE_ENDINGS = ".!?"


@dataclass(frozen=True)
class Summary:
    text:   str
    source: str   # "ai" | "fallback"

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


def fallback_summary(
    text: str,
    max_chars: int = 500,
    min_sentence_chars: int = 100,
) -> str:
    """
    Extractive summary used whenever the model is unavailable.

    The whole (stripped) text when it fits in `max_chars`. Otherwise the first
    `max_chars` characters, cut just after the last '.', '!' or '?' found at
    index >= `min_sentence_chars`; hard-truncated when there is none.
    The result is always a prefix of text.strip().
    """
    stripped = text.strip()
    if len(stripped) <= max_chars:
        return stripped

    window = stripped[:max_chars]
    cut = max(window.rfind(ch) for ch in _SENTENCE_ENDINGS)
    if cut >= min_sentence_chars:
        return window[: cut + 1]
    return window.rstrip()


class Summarizer:
    """
    Safe for concurrent use; the chat model client is built once on first
    use and shared.

    Pass `llm` to supply a pre-built chat model (tests, alternative providers).
    """

    def __init__(
        self,
        llm:                 BaseChatModel | None = None,
        api_key:             str | None = None,
        timeout_seconds:     float | None = None,
        max_input_chars:     int | None = None,
        fallback_max_chars:  int | None = None,
        fallback_min_sentence_chars: int | None = None,
    ) -> None:
        self._llm     = llm
        self._api_key = settings.openai_api_key if api_key is None else api_key
        self._timeout = timeout_seconds or settings.summary_timeout_seconds
        self._max_input_chars = max_input_chars or settings.summary_max_input_chars
        self._fallback_max = fallback_max_chars or settings.fallback_summary_max_chars
        self._fallback_min = (
            settings.fallback_summary_min_sentence_chars
            if fallback_min_sentence_chars is None
            else fallback_min_sentence_chars
        )

    @property
    def enabled(self) -> bool:
        return self._llm is not None or bool(self._api_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def summarize(self, text: str) -> Summary:
        if not self.enabled:
            return self._fallback(text, reason="disabled")

        t0 = time.perf_counter()
        try:
            content = await asyncio.wait_for(
                self._invoke(text), timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Summarization timed out after %.1fs", self._timeout)
            return self._fallback(text, reason="timeout")
        except Exception as exc:
            logger.warning("Summarization failed: %s: %s", type(exc).__name__, exc)
            return self._fallback(text, reason="error")

        if not content:
            logger.warning("Summarization returned empty output")
            return self._fallback(text, reason="empty")

        logger.info(
            "Summarization ok | chars=%d latency_ms=%.0f",
            len(content), (time.perf_counter() - t0) * 1000,
        )
        return Summary(text=content, source="ai")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def build_messages(self, text: str) -> list:
        if len(text) > self._max_input_chars:
            text = text[: self._max_input_chars] + "..."
        return [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=f"{USER_PROMPT}\n\n{text}"),
        ]

    async def _invoke(self, text: str) -> str:
        response = await self._get_llm().ainvoke(self.build_messages(text))
        content = response.content if isinstance(response.content, str) else ""
        return content.strip()

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = self._build_openai()
        return self._llm

    def _build_openai(self) -> BaseChatModel:
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model=settings.llm_model,
            api_key=self._api_key,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    def _fallback(self, text: str, reason: str) -> Summary:
        logger.info("Using fallback summary | reason=%s", reason)
        return Summary(
            text=fallback_summary(text, self._fallback_max, self._fallback_min),
            source="fallback",
        )
