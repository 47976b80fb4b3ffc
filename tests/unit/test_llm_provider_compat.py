from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import pytest

from resumecraft.llm.providers import LLMProvider, ProviderConfig, parse_json
from resumecraft.types import ResumeBlob


class DummyAPIError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FakeResponsePayload:
    def __init__(self, *, output_text: str = "", raw: dict | None = None):
        self.output_text = output_text
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeChatPayload:
    def __init__(self, *, content: str, raw: dict | None = None):
        self.choices = [SimpleNamespace(message=SimpleNamespace(content=content))]
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeAsyncEndpoint:
    def __init__(self, fn):
        self._fn = fn

    async def create(self, **kwargs):
        return self._fn(**kwargs)


class FakeClient:
    def __init__(self, *, responses_fn, chat_fn):
        self.responses = FakeAsyncEndpoint(responses_fn)
        self.chat = SimpleNamespace(completions=FakeAsyncEndpoint(chat_fn))


def _provider_with_fake_client(fake_client: FakeClient) -> LLMProvider:
    provider = LLMProvider(
        ProviderConfig(
            name="openai",
            base_url="http://localhost:9999/v1",
            api_key="dummy",
            timeout_sec=5,
        )
    )
    provider.client = fake_client
    return provider


def _pdf_blob() -> ResumeBlob:
    payload = base64.b64encode(b"%PDF-1.4 fake").decode("ascii")
    return ResumeBlob.from_data_uri(f"data:application/pdf;base64,{payload}")


def test_complete_text_uses_responses_when_available() -> None:
    chat_called = {"value": False}

    def responses_fn(**kwargs):
        return FakeResponsePayload(output_text="RESP_OK", raw={"id": "resp_1"})

    def chat_fn(**kwargs):
        chat_called["value"] = True
        return FakeChatPayload(content="CHAT_OK", raw={"id": "chat_1"})

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    result = asyncio.run(provider.complete_text(model="gpt-5", prompt="ping"))

    assert result.content == "RESP_OK"
    assert result.raw["api_path"] == "responses"
    assert chat_called["value"] is False


def test_resume_attachment_is_sent_as_input_file() -> None:
    seen: dict = {}

    def responses_fn(**kwargs):
        seen.update(kwargs)
        return FakeResponsePayload(output_text="{}")

    def chat_fn(**kwargs):
        raise AssertionError("chat path should not be used")

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    blob = _pdf_blob()
    asyncio.run(provider.complete_text(model="gpt-5", prompt="optimize", attachments=[blob]))

    content = seen["input"][0]["content"]
    assert content[0] == {"type": "input_text", "text": "optimize"}
    assert content[1] == {"type": "input_file", "filename": "resume.pdf", "file_data": blob.data_uri}


def test_complete_text_falls_back_to_chat_on_responses_not_found() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    def chat_fn(**kwargs):
        return FakeChatPayload(content="CHAT_OK", raw={"id": "chat_1"})

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    result = asyncio.run(provider.complete_text(model="gpt-5", prompt="ping"))

    assert result.content == "CHAT_OK"
    assert result.raw["api_path"] == "chat_completions"


def test_complete_text_raises_when_fallback_path_also_fails() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    def chat_fn(**kwargs):
        raise RuntimeError("chat path failed")

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    with pytest.raises(RuntimeError, match="chat path failed"):
        asyncio.run(provider.complete_text(model="gpt-5", prompt="ping"))


def test_other_responses_errors_are_not_swallowed() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("rate limited", status_code=429)

    def chat_fn(**kwargs):
        raise AssertionError("chat path should not be used")

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    with pytest.raises(DummyAPIError, match="rate limited"):
        asyncio.run(provider.complete_text(model="gpt-5", prompt="ping"))


def test_complete_json_parses_fenced_chat_fallback_payload() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    def chat_fn(**kwargs):
        return FakeChatPayload(content='```json\n{"skills": ["Go"]}\n```', raw={"id": "chat_2"})

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    payload = asyncio.run(provider.complete_json(model="gpt-5", prompt="json please"))

    assert payload == {"skills": ["Go"]}


def test_parse_json_returns_empty_dict_for_non_objects() -> None:
    assert parse_json("") == {}
    assert parse_json("not json") == {}
    assert parse_json("[1, 2]") == {}
