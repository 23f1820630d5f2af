from pathlib import Path

from moderation_service.config.settings import Settings
from moderation_service.extraction.base import BaseTextExtractor
from moderation_service.extraction.docx_adapter import DocxAdapter
from moderation_service.extraction.exceptions import UnsupportedFileTypeError
from moderation_service.extraction.factory import PdfExtractorFactory
from moderation_service.extraction.file_loader import FileLoader
from moderation_service.extraction.txt_adapter import TxtAdapter
from moderation_service.logging.logger import Log


def file_type_from_path(file_path: str) -> str:
    """Return the lower-cased suffix without the dot, e.g. 'pdf'."""
    return Path(file_path).suffix.lstrip(".").lower()


class TextExtractor:
    """Routes a stored file to the adapter for its type.

    Never raises: unsupported types and any extraction failure produce an
    empty string so moderation can continue on metadata alone.
    """

    def __init__(
        self,
        file_loader: FileLoader,
        adapters: dict[str, BaseTextExtractor],
    ) -> None:
        self._file_loader = file_loader
        self._adapters = {key.lower(): adapter for key, adapter in adapters.items()}

    def extract(self, file_path: str, file_type: str) -> str:
        file_type = (file_type or "").lower().lstrip(".")
        try:
            adapter = self._adapter_for(file_type)
            content = self._file_loader.load(file_path)
            text = adapter.extract(content)
        except UnsupportedFileTypeError:
            Log.warning(f"Unsupported file type: '{file_type}', returning empty text")
            return ""
        except Exception as exc:
            Log.error(f"Text extraction failed for {file_path}: {exc}")
            return ""
        Log.info(f"Extracted {len(text)} chars from {file_path}")
        return text

    def _adapter_for(self, file_type: str) -> BaseTextExtractor:
        adapter = self._adapters.get(file_type)
        if adapter is None:
            raise UnsupportedFileTypeError(file_type)
        return adapter


def build_text_extractor(settings: Settings) -> TextExtractor:
    """Build a TextExtractor with the pdf, doc/docx and txt adapters."""
    files_root = Path(settings.files_root) if settings.files_root else None
    docx = DocxAdapter()
    return TextExtractor(
        file_loader=FileLoader(files_root=files_root),
        adapters={
            "pdf": PdfExtractorFactory.create(settings),
            "doc": docx,
            "docx": docx,
            "txt": TxtAdapter(),
        },
    )
