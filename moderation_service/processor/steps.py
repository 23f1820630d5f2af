from moderation_service.logging.logger import Log
from moderation_service.moderation.analyzer import Analyzer
from moderation_service.processor.pipeline import PipelineContext, PipelineStep
from moderation_service.webhook.models import CompletedPayload
from moderation_service.webhook.sender import WebhookSender


class AnalyzeStep(PipelineStep):
    progress = 70

    def __init__(self, analyzer: Analyzer) -> None:
        self._analyzer = analyzer

    def run(self, context: PipelineContext) -> PipelineContext:
        job = context.job
        Log.info(f"Analyzing document {job.document_id}...")
        context.analysis = self._analyzer.analyze(job.file_path, job.metadata)
        return context


class DeliverVerdictStep(PipelineStep):
    progress = 100

    def __init__(self, sender: WebhookSender) -> None:
        self._sender = sender

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.analysis is None:
            raise ValueError("PipelineContext.analysis must be set before delivery")
        Log.info(f"Sending results for document {context.job.document_id}...")
        payload = CompletedPayload.from_analysis(context.job.document_id, context.analysis)
        context.ack = self._sender.deliver(payload)
        return context
