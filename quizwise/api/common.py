from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from quizwise.ai_engine import GenerationClient
from quizwise.schemas.common import ErrorResponse
from quizwise.services.file_service import PdfFetcher


# ── Dependencies ─────────────────────────────────────────────────────────────
# Built once in the app lifespan; tests swap them via app.dependency_overrides.

def get_fetcher(request: Request) -> PdfFetcher:
    return request.app.state.fetcher


def get_generator(request: Request) -> GenerationClient:
    return request.app.state.generator


# ── Helpers ──────────────────────────────────────────────────────────────────

def error_response(
    status_code: int,
    message: str,
    detail: Optional[str] = None,
    success: Optional[bool] = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, detail=detail, success=success)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def generate_from_source(
    generator: GenerationClient,
    fetcher: PdfFetcher,
    prompt: str,
    pdf_url: Optional[str] = None,
) -> str:
    """Run one generation call, attaching the downloaded PDF when a URL is given."""
    if not pdf_url:
        return await generator.generate([prompt])

    async with fetcher.fetch(pdf_url) as document:
        part = await document.load_part()
        return await generator.generate([prompt, part])
