from moderation_service.config.settings import Settings
from moderation_service.extraction.base import BaseTextExtractor
from moderation_service.extraction.pdfplumber_adapter import PdfPlumberAdapter
from moderation_service.extraction.pymupdf_adapter import PyMuPdfAdapter

PdfAdapterClass = type[PdfPlumberAdapter] | type[PyMuPdfAdapter]


class PdfExtractorFactory:
    """Picks the PDF engine named by PDF_ENGINE."""

    ADAPTERS: dict[str, PdfAdapterClass] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTextExtractor:
        engine = settings.pdf_engine.strip().lower()
        try:
            adapter_cls = cls.ADAPTERS[engine]
        except KeyError:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {sorted(cls.ADAPTERS)}"
            ) from None
        max_pages = settings.pdf_max_pages if settings.pdf_max_pages > 0 else None
        return adapter_cls(max_pages=max_pages)
