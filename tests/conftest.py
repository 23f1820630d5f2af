import io
from datetime import datetime, timedelta, timezone

import pytest
from docx import Document
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from moderation_service.queue.job_queue import JobQueue
from moderation_service.queue.memory_store import InMemoryJobStore


class FakeClock:
    """Manually advanced UTC clock for queue backoff tests."""

    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_queue(clock: FakeClock) -> JobQueue:
    """An initialized in-memory queue with the reference retry policy."""
    queue = JobQueue(InMemoryJobStore(), max_attempts=3, backoff_base_seconds=2.0, clock=clock)
    queue.init()
    return queue


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_docx_bytes() -> bytes:
    """Generate a Word document with one paragraph and a one-row table."""
    document = Document()
    document.add_paragraph("Lecture notes on graph theory")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "vertex"
    table.rows[0].cells[1].text = "edge"
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()
