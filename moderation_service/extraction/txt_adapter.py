from moderation_service.extraction.base import BaseTextExtractor


class TxtAdapter(BaseTextExtractor):
    """Decodes plain text files as UTF-8, replacing undecodable bytes."""

    def extract(self, content: bytes) -> str:
        return content.decode("utf-8", errors="replace").strip()
