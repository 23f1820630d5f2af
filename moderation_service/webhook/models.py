from dataclasses import dataclass, field
from typing import Any

from moderation_service.moderation.models import AnalysisResult

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class CompletedPayload:
    """Verdict reported for a successfully moderated document."""

    document_id: str
    moderation_score: float
    moderation_flags: dict[str, bool] = field(default_factory=dict)
    extracted_text_preview: str = ""
    model_version: str = ""

    @classmethod
    def from_analysis(cls, document_id: str, analysis: AnalysisResult) -> "CompletedPayload":
        return cls(
            document_id=document_id,
            moderation_score=analysis.score,
            moderation_flags=dict(analysis.flags),
            extracted_text_preview=analysis.extracted_text_preview,
            model_version=analysis.model_version,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "moderation_status": STATUS_COMPLETED,
            "moderation_score": self.moderation_score,
            "moderation_flags": dict(self.moderation_flags),
            "extracted_text_preview": self.extracted_text_preview,
            "model_version": self.model_version,
        }


@dataclass(frozen=True)
class FailedPayload:
    """Failure notice for a document whose moderation could not be completed."""

    document_id: str
    error_message: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "moderation_status": STATUS_FAILED,
            "error_message": self.error_message,
        }


WebhookPayload = CompletedPayload | FailedPayload
