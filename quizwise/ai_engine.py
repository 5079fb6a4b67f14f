"""
QuizWise — AI Engine
====================
One external model call per request:

    generate([prompt])            → raw text
    generate([prompt, document])  → raw text

Providers (selected once by AI_PROVIDER):
  - gemini  the PDF is sent inline as an application/pdf blob
  - groq    text only; an attached PDF is converted to text with PyMuPDF

No retries, no failover, no timeout beyond the SDK default.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple, Union

import google.generativeai as genai
from groq import AsyncGroq

from quizwise.core.config import Settings
from quizwise.core.errors import GenerationError, MalformedResponseError
from quizwise.services.file_service import DocumentPart, extract_pdf_text

logger = logging.getLogger(__name__)

PromptPart = Union[str, DocumentPart]


def _split_parts(parts: Sequence[PromptPart]) -> Tuple[str, Optional[DocumentPart]]:
    if not 1 <= len(parts) <= 2 or not isinstance(parts[0], str):
        raise ValueError("Prompt parts must be [text] or [text, document]")
    document = parts[1] if len(parts) == 2 else None
    if document is not None and not isinstance(document, DocumentPart):
        raise ValueError("The second prompt part must be a document attachment")
    return parts[0], document


class GenerationClient(ABC):
    name = "base"

    async def generate(self, parts: Sequence[PromptPart]) -> str:
        prompt, document = _split_parts(parts)
        logger.info(
            f"[AI‑ENGINE] Calling {self.name} "
            f"({'text + document' if document else 'text only'})..."
        )
        try:
            text = await self._generate(prompt, document)
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"[AI‑ENGINE] {self.name} call failed: {e}", exc_info=True)
            raise GenerationError(f"{self.name} generation failed: {e}") from e

        if not text or not text.strip():
            raise MalformedResponseError("Empty AI response received", raw_text=text or "")
        logger.info(f"[AI‑ENGINE] ✓ {self.name} call succeeded ({len(text)} chars)")
        return text

    @abstractmethod
    async def _generate(self, prompt: str, document: Optional[DocumentPart]) -> str:
        ...


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# GEMINI
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class GeminiClient(GenerationClient):
    name = "Gemini"

    def __init__(self, api_key: Optional[str], model_name: str):
        self.api_key = api_key
        self.model_name = model_name
        if api_key:
            genai.configure(api_key=api_key, transport="rest")
            logger.info("[AI‑ENGINE] ✓ Gemini client ready")
        else:
            logger.warning("[AI‑ENGINE] ✗ Google API key missing")

    async def _generate(self, prompt: str, document: Optional[DocumentPart]) -> str:
        if not self.api_key:
            raise GenerationError("Google API Key missing")

        model = genai.GenerativeModel(model_name=self.model_name)
        contents: List = [prompt]
        if document is not None:
            contents.append({"mime_type": document.mime_type, "data": document.data})

        response = await asyncio.to_thread(model.generate_content, contents)
        return response.text


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# GROQ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class GroqClient(GenerationClient):
    name = "Groq"

    def __init__(self, api_key: Optional[str], model_name: str):
        self.model_name = model_name
        self.client: Optional[AsyncGroq] = None
        if api_key:
            self.client = AsyncGroq(api_key=api_key)
            logger.info("[AI‑ENGINE] ✓ Groq client ready")
        else:
            logger.warning("[AI‑ENGINE] ✗ Groq API key missing")

    async def _generate(self, prompt: str, document: Optional[DocumentPart]) -> str:
        if not self.client:
            raise GenerationError("Groq API Key missing")

        if document is not None:
            try:
                source_text = await extract_pdf_text(document.data)
            except ValueError as e:
                raise GenerationError(str(e)) from e
            prompt = f"{prompt}\n\nDOCUMENT TEXT:\n{source_text}"

        completion = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            max_tokens=8000,
        )
        return completion.choices[0].message.content


def build_generation_client(settings: Settings) -> GenerationClient:
    logger.info(f"[AI‑ENGINE] Provider mode: {settings.AI_PROVIDER}")
    if settings.AI_PROVIDER == "groq":
        return GroqClient(settings.GROQ_API_KEY, settings.GROQ_MODEL)
    return GeminiClient(settings.GOOGLE_API_KEY, settings.GEMINI_MODEL)
