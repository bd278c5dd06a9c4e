"""
LLM Package

Document summarization over LangChain chat models (OpenAI by default) with a
deterministic extractive fallback.

Public API::

    from tenant_ingest.llm import Summarizer

    summary = await Summarizer().summarize(text)
    summary.text, summary.source   # "ai" | "fallback"
"""

from tenant_ingest.llm.summarizer import Summarizer, Summary, fallback_summary

__all__ = [
    "Summarizer",
    "Summary",
    "fallback_summary",
]
