"""
QuizWise — Document Fetching
============================
Downloads a remote PDF into a request-scoped scratch file.

  • http and https, chosen by the URL scheme
  • non-2xx responses and non-PDF content types are rejected
  • the scratch file is removed on every exit path, success included
"""

import os
import asyncio
import logging
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional
from urllib.parse import urlparse

import fitz  # PyMuPDF
import httpx

from quizwise.core.config import Settings
from quizwise.core.errors import ContentTypeError, TransportError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class DocumentPart:
    """Inline binary attachment for a generation call."""
    data: bytes
    mime_type: str = PDF_MIME_TYPE


@dataclass(frozen=True)
class FetchedDocument:
    path: Path
    mime_type: str = PDF_MIME_TYPE

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    async def load_part(self) -> DocumentPart:
        """Read the file off the event loop and wrap it as an attachment."""
        data = await asyncio.to_thread(self.read_bytes)
        return DocumentPart(data=data, mime_type=self.mime_type)


class PdfFetcher:
    """Single-attempt PDF downloader. Never retries."""

    def __init__(
        self,
        scratch_dir: Path,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.scratch_dir = Path(scratch_dir)
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "PdfFetcher":
        return cls(settings.SCRATCH_DIR, timeout=settings.FETCH_TIMEOUT_SECONDS)

    def _scratch_path(self) -> Path:
        """Atomically create an empty, uniquely named file owned by this request."""
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="pdf_", suffix=".pdf", dir=self.scratch_dir)
        os.close(fd)
        return Path(name)

    @asynccontextmanager
    async def fetch(self, url: str) -> AsyncIterator[FetchedDocument]:
        """
        Download ``url`` and yield the local copy.
        The file is deleted when the block exits, whatever the outcome.
        """
        scheme = urlparse(url).scheme.lower()
        if scheme not in ("http", "https"):
            raise TransportError(f"Unsupported URL scheme: '{scheme or url}'")

        path = self._scratch_path()
        try:
            await self._download(url, path)
            logger.info(f"[FETCH] ✓ {url} → {path.name}")
            yield FetchedDocument(path=path)
        finally:
            path.unlink(missing_ok=True)
            logger.debug(f"[FETCH] Removed scratch file {path.name}")

    async def _download(self, url: str, path: Path) -> None:
        logger.info(f"[FETCH] Downloading {url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise TransportError(f"HTTP {response.status_code}")

                    content_type = response.headers.get("content-type", "")
                    if PDF_MIME_TYPE not in content_type.lower():
                        raise ContentTypeError("URL does not point to a PDF file")

                    with path.open("wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PyMuPDF HELPERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def count_pdf_pages(content: bytes) -> int:
    """Return page count using PyMuPDF (zero-cost, no text extraction)."""
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            return doc.page_count
    except Exception:
        return 0


async def extract_pdf_text(content: bytes) -> str:
    """
    Extract text from PDF using PyMuPDF (fitz).
    Runs in a thread pool to avoid blocking the async event loop.
    """
    def _process_pdf(data: bytes) -> str:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page.get_text("text") for page in doc]
        except Exception as e:
            raise ValueError(f"PDF extraction failed: {e}") from e

        text = "\n\n".join(p for p in pages if p.strip())
        if not text:
            raise ValueError("No text content found in PDF.")
        return text

    return await asyncio.to_thread(_process_pdf, content)
