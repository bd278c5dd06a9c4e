"""
Document Processing Package

  extractor.py  PDF text extraction with placeholder substitution

Runs in-process on the request path; the blocking PyMuPDF work is pushed to
the default thread executor.
"""

from tenant_ingest.processing.extractor import ExtractedText, PdfTextExtractor

__all__ = [
    "ExtractedText",
    "PdfTextExtractor",
]
