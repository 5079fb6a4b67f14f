"""
QuizWise — Error Taxonomy
=========================
  FetchError              → caller-correctable, mapped to HTTP 400
    TransportError          non-2xx response, bad scheme, connection failure
    ContentTypeError        response is not a PDF
  GenerationError         → model call failed, HTTP 500
  ResponseContractError   → AI text violates the response contract, HTTP 500
    MalformedResponseError  not JSON after fence stripping
    SchemaError             missing "questions" array / wrong top-level shape
    ValidationError         per-question violation (index-tagged, 1-based)
      IncompleteQuestionError
      OptionCountError
"""

from typing import Optional


class QuizWiseError(Exception):
    """Base class for every error raised by the service."""


# ── Fetching ─────────────────────────────────────────────────────────────────

class FetchError(QuizWiseError):
    pass


class TransportError(FetchError):
    pass


class ContentTypeError(FetchError):
    pass


# ── Generation ───────────────────────────────────────────────────────────────

class GenerationError(QuizWiseError):
    pass


# ── Response contract ────────────────────────────────────────────────────────

class ResponseContractError(QuizWiseError):
    pass


class MalformedResponseError(ResponseContractError):
    """The model's text is not valid JSON. ``raw_text`` is kept for logs only."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class SchemaError(ResponseContractError):
    pass


class ValidationError(ResponseContractError):
    """A single question broke the contract. ``index`` is 1-based."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class IncompleteQuestionError(ValidationError):
    pass


class OptionCountError(ValidationError):
    pass
