import fitz  # PyMuPDF
import httpx
import pytest
from fastapi.testclient import TestClient

from quizwise.api.common import get_fetcher, get_generator
from quizwise.main import app
from quizwise.services.file_service import PdfFetcher

SAMPLE_TEXT = """
Photosynthesis is the process used by plants, algae and certain bacteria to harness energy from sunlight.
The general equation for photosynthesis is: 6CO2 + 6H2O + Light Energy -> C6H12O6 + 6O2
This process takes place in the chloroplasts, specifically using chlorophyll.
"""


def create_dummy_pdf(text: str = SAMPLE_TEXT, pages: int = 1) -> bytes:
    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page()
        page.insert_text((50, 50), text)
    data = doc.tobytes()
    doc.close()
    return data


class FakeGenerator:
    """Stands in for the model: records prompt parts, returns a canned reply."""

    name = "Fake"

    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate(self, parts):
        self.calls.append(list(parts))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def pdf_bytes():
    return create_dummy_pdf(pages=2)


@pytest.fixture
def pdf_transport(pdf_bytes):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/doc.pdf":
            return httpx.Response(200, headers={"content-type": "application/pdf"}, content=pdf_bytes)
        if path == "/page.html":
            return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html></html>")
        if path == "/boom":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404, content=b"not found")

    return httpx.MockTransport(handler)


@pytest.fixture
def scratch_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def fetcher(scratch_dir, pdf_transport):
    return PdfFetcher(scratch_dir, timeout=5.0, transport=pdf_transport)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def client(fetcher, generator):
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    app.dependency_overrides[get_generator] = lambda: generator
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def scratch_files(scratch_dir):
    if not scratch_dir.exists():
        return []
    return list(scratch_dir.iterdir())
