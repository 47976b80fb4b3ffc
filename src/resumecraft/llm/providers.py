from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from resumecraft.config import Settings
from resumecraft.types import ModelResponse, ResumeBlob

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


class LLMProvider:
    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = AsyncOpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )

    async def complete_text(
        self,
        *,
        model: str,
        prompt: str,
        attachments: Sequence[ResumeBlob] = (),
    ) -> ModelResponse:
        try:
            return await self._complete_via_responses(model=model, prompt=prompt, attachments=attachments)
        except Exception as exc:
            if not self._is_unsupported_responses_endpoint(exc):
                raise

            logger.warning(
                "Responses API unavailable for provider=%s base_url=%s; "
                "falling back to chat.completions (%s)",
                self.config.name,
                self.config.base_url,
                exc,
            )
            return await self._complete_via_chat_completions(model=model, prompt=prompt, attachments=attachments)

    async def complete_json(
        self,
        *,
        model: str,
        prompt: str,
        attachments: Sequence[ResumeBlob] = (),
    ) -> dict[str, Any]:
        text_response = await self.complete_text(model=model, prompt=prompt, attachments=attachments)
        return parse_json(text_response.content)

    async def aclose(self) -> None:
        await self.client.close()

    async def _complete_via_responses(
        self,
        *,
        model: str,
        prompt: str,
        attachments: Sequence[ResumeBlob],
    ) -> ModelResponse:
        content: list[dict[str, Any]] = [{"type": "input_text", "text": prompt}]
        for blob in attachments:
            if blob.is_image:
                content.append({"type": "input_image", "image_url": blob.data_uri})
            else:
                content.append({"type": "input_file", "filename": blob.filename, "file_data": blob.data_uri})

        response = await self.client.responses.create(
            model=model,
            input=[{"role": "user", "content": content}],
        )
        text = getattr(response, "output_text", "") or ""
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["api_path"] = "responses"
        return ModelResponse(content=text, raw=raw)

    async def _complete_via_chat_completions(
        self,
        *,
        model: str,
        prompt: str,
        attachments: Sequence[ResumeBlob],
    ) -> ModelResponse:
        message_content: str | list[dict[str, Any]] = prompt
        if attachments:
            parts: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
            for blob in attachments:
                if blob.is_image:
                    parts.append({"type": "image_url", "image_url": {"url": blob.data_uri}})
                else:
                    parts.append({"type": "file", "file": {"filename": blob.filename, "file_data": blob.data_uri}})
            message_content = parts

        response = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": message_content}],
        )

        text = self._extract_chat_text(response)
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["api_path"] = "chat_completions"
        return ModelResponse(content=text, raw=raw)

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)

    @staticmethod
    def _is_unsupported_responses_endpoint(exc: Exception) -> bool:
        status_code = getattr(exc, "status_code", None)
        if status_code == 404:
            return True

        message = str(exc).strip().lower()
        if not message:
            return False

        return "not found" in message or "404" in message


def parse_json(content: str) -> dict[str, Any]:
    candidate = content.strip()
    if not candidate:
        return {}

    if "```" in candidate:
        parts = candidate.split("```")
        for part in parts:
            part = part.strip()
            if part.startswith("json"):
                part = part[4:].strip()
            if part.startswith("{") and part.endswith("}"):
                candidate = part
                break

    try:
        value = json.loads(candidate)
        return value if isinstance(value, dict) else {}
    except json.JSONDecodeError:
        logger.warning("Failed to parse JSON model output")
        return {}


class ProviderPool:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._openai: LLMProvider | None = None
        self._local: LLMProvider | None = None

    def openai(self) -> LLMProvider:
        if self._openai is None:
            self._openai = LLMProvider(
                ProviderConfig(
                    name="openai",
                    base_url=self.settings.openai_base_url,
                    api_key=self.settings.openai_api_key,
                    timeout_sec=self.settings.openai_timeout_sec,
                )
            )
        return self._openai

    def local(self) -> LLMProvider:
        if self._local is None:
            self._local = LLMProvider(
                ProviderConfig(
                    name="local",
                    base_url=self.settings.local_llm_base_url,
                    api_key=self.settings.local_llm_api_key,
                    timeout_sec=self.settings.local_llm_timeout_sec,
                )
            )
        return self._local

    async def aclose(self) -> None:
        for provider in (self._openai, self._local):
            if provider is not None:
                await provider.aclose()
        self._openai = None
        self._local = None
