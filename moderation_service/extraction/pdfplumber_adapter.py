import io
from itertools import islice

import pdfplumber

from moderation_service.extraction.base import BaseTextExtractor
from moderation_service.extraction.exceptions import ExtractionError


class PdfPlumberAdapter(BaseTextExtractor):
    """PDF text via pdfplumber, reading at most max_pages pages."""

    def __init__(self, max_pages: int | None = None) -> None:
        self._max_pages = max_pages

    def extract(self, content: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                texts = [
                    page.extract_text() or ""
                    for page in islice(pdf.pages, self._max_pages)
                ]
        except Exception as exc:
            raise ExtractionError(f"pdfplumber could not read document: {exc}") from exc
        return "\n".join(t for t in texts if t.strip()).strip()
