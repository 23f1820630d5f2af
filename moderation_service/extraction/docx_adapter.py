import io

from docx import Document

from moderation_service.extraction.base import BaseTextExtractor
from moderation_service.extraction.exceptions import ExtractionError


class DocxAdapter(BaseTextExtractor):
    """Extracts paragraph and table text from Word documents using python-docx.

    Legacy binary .doc files are not readable by python-docx and surface as
    ExtractionError.
    """

    def extract(self, content: bytes) -> str:
        try:
            document = Document(io.BytesIO(content))
            parts = [p.text for p in document.paragraphs]
            for table in document.tables:
                for row in table.rows:
                    parts.append(" | ".join(cell.text.strip() for cell in row.cells))
            return "\n".join(parts).strip()
        except Exception as exc:
            raise ExtractionError(f"docx extraction failed: {exc}") from exc
