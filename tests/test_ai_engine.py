from types import SimpleNamespace

import google.generativeai as genai
import pytest

from conftest import create_dummy_pdf
from quizwise.ai_engine import (
    GeminiClient,
    GenerationClient,
    GroqClient,
    build_generation_client,
)
from quizwise.core.config import Settings
from quizwise.core.errors import GenerationError, MalformedResponseError
from quizwise.services.file_service import DocumentPart


class ScriptedClient(GenerationClient):
    """Returns ``reply`` or raises ``error``; records what reached the provider."""

    name = "Scripted"

    def __init__(self, reply="{}", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def _generate(self, prompt, document):
        self.calls.append((prompt, document))
        if self.error is not None:
            raise self.error
        return self.reply


def stub_groq(reply):
    """Stand-in for AsyncGroq: only chat.completions.create is used."""
    calls = []

    async def create(**kwargs):
        calls.append(kwargs)
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client, calls


# ── Prompt parts ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_text_only_and_text_with_document():
    client = ScriptedClient(reply='{"questions": []}')
    document = DocumentPart(data=b"%PDF")

    assert await client.generate(["Make a quiz"]) == '{"questions": []}'
    await client.generate(["Make a quiz", document])

    assert client.calls == [("Make a quiz", None), ("Make a quiz", document)]


@pytest.mark.asyncio
@pytest.mark.parametrize("parts", [
    [],
    ["a", DocumentPart(data=b"x"), "c"],
    [DocumentPart(data=b"x")],
    ["a", "b"],
    ["a", b"raw bytes"],
])
async def test_rejects_malformed_parts(parts):
    client = ScriptedClient()
    with pytest.raises(ValueError):
        await client.generate(parts)
    assert client.calls == []


# ── Error mapping ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_sdk_errors_become_generation_errors():
    client = ScriptedClient(error=RuntimeError("quota exceeded"))
    with pytest.raises(GenerationError, match="Scripted generation failed: quota exceeded"):
        await client.generate(["prompt"])


@pytest.mark.asyncio
async def test_generation_errors_pass_through():
    client = ScriptedClient(error=GenerationError("Google API Key missing"))
    with pytest.raises(GenerationError, match="^Google API Key missing$"):
        await client.generate(["prompt"])


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   \n\t", None])
async def test_empty_reply_is_malformed(reply):
    client = ScriptedClient(reply=reply)
    with pytest.raises(MalformedResponseError, match="Empty AI response"):
        await client.generate(["prompt"])


# ── Groq ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_groq_appends_document_text():
    groq = GroqClient(api_key=None, model_name="llama-test")
    groq.client, calls = stub_groq('{"questions": []}')
    pdf = DocumentPart(data=create_dummy_pdf("Chlorophyll absorbs light."))

    assert await groq.generate(["Make a quiz", pdf]) == '{"questions": []}'

    assert calls[0]["model"] == "llama-test"
    content = calls[0]["messages"][0]["content"]
    assert content.startswith("Make a quiz\n\nDOCUMENT TEXT:\n")
    assert "Chlorophyll" in content


@pytest.mark.asyncio
async def test_groq_text_only_prompt_is_sent_unchanged():
    groq = GroqClient(api_key=None, model_name="llama-test")
    groq.client, calls = stub_groq("{}")

    await groq.generate(["Make a quiz"])
    assert calls[0]["messages"] == [{"role": "user", "content": "Make a quiz"}]


@pytest.mark.asyncio
async def test_groq_unreadable_pdf_is_generation_error():
    groq = GroqClient(api_key=None, model_name="llama-test")
    groq.client, calls = stub_groq("{}")

    with pytest.raises(GenerationError, match="PDF extraction failed"):
        await groq.generate(["Make a quiz", DocumentPart(data=b"not a pdf")])
    assert calls == []


@pytest.mark.asyncio
async def test_groq_without_key():
    with pytest.raises(GenerationError, match="Groq API Key missing"):
        await GroqClient(api_key=None, model_name="llama-test").generate(["prompt"])


# ── Gemini ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_gemini_sends_pdf_inline(monkeypatch):
    sent = []

    class FakeModel:
        def __init__(self, model_name):
            self.model_name = model_name

        def generate_content(self, contents):
            sent.append((self.model_name, contents))
            return SimpleNamespace(text='{"questions": []}')

    monkeypatch.setattr(genai, "configure", lambda **kwargs: None)
    monkeypatch.setattr(genai, "GenerativeModel", FakeModel)

    gemini = GeminiClient(api_key="test-key", model_name="gemini-test")
    await gemini.generate(["Make a quiz", DocumentPart(data=b"%PDF-1.7")])

    model_name, contents = sent[0]
    assert model_name == "gemini-test"
    assert contents == ["Make a quiz", {"mime_type": "application/pdf", "data": b"%PDF-1.7"}]


@pytest.mark.asyncio
async def test_gemini_without_key():
    with pytest.raises(GenerationError, match="Google API Key missing"):
        await GeminiClient(api_key=None, model_name="gemini-test").generate(["prompt"])


# ── Provider selection ───────────────────────────────────────────────────────

def test_build_client_from_settings():
    groq = build_generation_client(
        Settings(_env_file=None, AI_PROVIDER="GROQ", GROQ_API_KEY="test-key", GROQ_MODEL="llama-x")
    )
    assert isinstance(groq, GroqClient)
    assert groq.model_name == "llama-x"

    gemini = build_generation_client(Settings(_env_file=None, AI_PROVIDER="gemini", GOOGLE_API_KEY=None))
    assert isinstance(gemini, GeminiClient)


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        Settings(_env_file=None, AI_PROVIDER="openai")
