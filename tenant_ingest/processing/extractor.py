"""
Text Extraction Adapter
═══════════════════════

Best-effort text pull from the native PDF text layer with PyMuPDF.

Contract: extract() never raises. An unreadable upload (scanned, encrypted,
corrupt, not a PDF at all) yields a human-readable placeholder naming the
file instead, so ingestion of the bytes themselves is never blocked by
parsing trouble.

  PDF cannot be opened      → "PDF file: <name> (Text extraction not available - ...)"
  opens, but no text found  → "PDF file: <name> (No text content found - ...)"

Pages that fail individually are skipped; the rest are joined with "\n".
NUL characters are dropped from the result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

UNREADABLE_TEMPLATE = (
    "PDF file: {name} (Text extraction not available - "
    "PDF may be scanned, encrypted, or in unsupported format)"
)
NO_TEXT_TEMPLATE = (
    "PDF file: {name} (No text content found - PDF may be image-based or scanned)"
)


@dataclass
class ExtractedText:
    """
    text           : extracted text, or the placeholder
    page_count     : pages in the document (0 if it could not be opened)
    is_placeholder : True when `text` is a placeholder, not document content
    """
    text:           str
    page_count:     int
    is_placeholder: bool = False


class PdfTextExtractor:
    """
    Stateless — one instance is shared by every request.

    Thread-safety: fitz.open() returns an independent document object
    per call, so concurrent extractions in the executor do not interfere.
    """

    async def extract(self, pdf_bytes: bytes, filename: str) -> ExtractedText:
        loop = asyncio.get_running_loop()
        t0 = time.monotonic()

        try:
            text, page_count = await loop.run_in_executor(None, self._extract_sync, pdf_bytes)
        except Exception as exc:
            logger.warning("PDF text extraction failed | file=%s error=%s", filename, exc)
            return ExtractedText(
                text=UNREADABLE_TEMPLATE.format(name=filename),
                page_count=0,
                is_placeholder=True,
            )

        elapsed_ms = (time.monotonic() - t0) * 1000
        if not text:
            logger.warning("PDF has no text layer | file=%s pages=%d", filename, page_count)
            return ExtractedText(
                text=NO_TEXT_TEMPLATE.format(name=filename),
                page_count=page_count,
                is_placeholder=True,
            )

        logger.info(
            "PyMuPDF | file=%s pages=%d total_chars=%d elapsed_ms=%.0f",
            filename, page_count, len(text), elapsed_ms,
        )
        return ExtractedText(text=text, page_count=page_count)

    @staticmethod
    def _extract_sync(pdf_bytes: bytes) -> tuple[str, int]:
        """Blocking extraction — runs in thread executor."""
        import fitz  # PyMuPDF; imported here to avoid module-level import cost

        parts: list[str] = []
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            page_count = doc.page_count
            for page in doc:
                try:
                    raw = page.get_text("text") or ""
                except Exception as exc:
                    logger.debug("Skipping unreadable page %d: %s", page.number + 1, exc)
                    continue
                parts.append(raw)

        # PostgreSQL TEXT columns reject NUL
        return "\n".join(parts).replace("\x00", "").strip(), page_count
