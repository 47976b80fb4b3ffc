from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import ValidationError

from resumecraft.config import Settings, get_settings
from resumecraft.llm.prompts import (
    COVER_LETTER_PROMPT,
    CREATE_RESUME_PROMPT,
    EXTRACT_SKILLS_PROMPT,
    OPTIMIZE_RESUME_PROMPT,
    RESUME_ATTACHED,
    RESUME_INLINE,
)
from resumecraft.llm.providers import ProviderPool
from resumecraft.types import (
    CoverLetter,
    CreatedResume,
    CreateResumeInput,
    KeySkills,
    OptimizedResume,
    PersonalInfo,
    ResumeBlob,
)

logger = logging.getLogger(__name__)

# name -> (pattern, case_sensitive)
_SKILL_VOCABULARY: dict[str, tuple[str, bool]] = {
    "Python": (r"\bpython\b", False),
    "Go": (r"\b(?:Go|Golang|golang)\b", True),
    "Java": (r"\bjava\b(?!\s*script)", False),
    "JavaScript": (r"\bjavascript\b", False),
    "TypeScript": (r"\btypescript\b", False),
    "Rust": (r"\brust\b", False),
    "C++": (r"\bc\+\+", False),
    "SQL": (r"\bsql\b", False),
    "PostgreSQL": (r"\bpostgres(?:ql)?\b", False),
    "AWS": (r"\baws\b", False),
    "GCP": (r"\bgcp\b|\bgoogle cloud\b", False),
    "Azure": (r"\bazure\b", False),
    "Docker": (r"\bdocker\b", False),
    "Kubernetes": (r"\bkubernetes\b|\bk8s\b", False),
    "React": (r"\breact(?:\.js)?\b", False),
    "Distributed systems": (r"\bdistributed systems?\b", False),
    "Microservices": (r"\bmicroservices?\b", False),
    "Machine learning": (r"\bmachine learning\b|\bml\b", False),
    "Data analysis": (r"\bdata analy(?:sis|tics)\b", False),
    "CI/CD": (r"\bci/cd\b", False),
    "Leadership": (r"\bleadership\b|\blead(?:ing)? (?:a )?teams?\b", False),
    "Communication": (r"\bcommunication\b", False),
}


class LLMRouter:
    """Prompt adapters for the three generation stages plus resume creation."""

    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    async def optimize_resume(self, *, resume: ResumeBlob, job_description: str) -> OptimizedResume:
        resume_section, attachments = _resume_prompt_parts(resume)
        prompt = OPTIMIZE_RESUME_PROMPT.format(
            resume_section=resume_section,
            job_description=self._clip(job_description),
        )
        data = await self._call_json(
            task="optimize",
            prompt=prompt,
            model=self.settings.openai_model_optimizer,
            attachments=attachments,
        )
        if not data:
            return OptimizedResume()

        try:
            return OptimizedResume.model_validate(data)
        except ValidationError:
            logger.warning("Invalid optimized resume payload keys=%s", sorted(data))
            return OptimizedResume()

    async def generate_cover_letter(
        self,
        *,
        resume: ResumeBlob | str,
        job_description: str,
        personal: PersonalInfo | None = None,
    ) -> CoverLetter:
        resume_section, attachments = _resume_prompt_parts(resume)
        prompt = COVER_LETTER_PROMPT.format(
            contact_block=personal.contact_block() if personal else "(not provided)",
            name=personal.name if personal else "the applicant",
            resume_section=resume_section,
            job_description=self._clip(job_description),
        )
        data = await self._call_json(
            task="cover_letter",
            prompt=prompt,
            model=self.settings.openai_model_writer,
            attachments=attachments,
        )
        cover_letter = data.get("cover_letter") if data else None
        if not isinstance(cover_letter, str):
            return CoverLetter()
        return CoverLetter(cover_letter=cover_letter.strip())

    async def extract_key_skills(self, *, job_description: str) -> KeySkills:
        prompt = EXTRACT_SKILLS_PROMPT.format(job_description=self._clip(job_description))
        data = await self._call_json(
            task="skills",
            prompt=prompt,
            model=self.settings.openai_model_extractor,
        )
        if not data:
            return KeySkills(skills=heuristic_key_skills(job_description))

        raw = data.get("skills", [])
        if not isinstance(raw, list):
            logger.warning("Skills payload was not a list; using heuristic extraction")
            return KeySkills(skills=heuristic_key_skills(job_description))
        return KeySkills(skills=normalize_skills(raw))

    async def create_resume(self, payload: CreateResumeInput) -> CreatedResume:
        prompt = CREATE_RESUME_PROMPT.format(
            candidate_json=json.dumps(payload.model_dump(), ensure_ascii=True, indent=2),
        )
        data = await self._call_json(task="create", prompt=prompt, model=self.settings.openai_model_writer)
        if not data:
            return CreatedResume()

        try:
            return CreatedResume.model_validate(data)
        except ValidationError:
            logger.warning("Invalid created resume payload keys=%s", sorted(data))
            return CreatedResume()

    async def aclose(self) -> None:
        await self.pool.aclose()

    def _clip(self, text: str) -> str:
        return text[: self.settings.max_job_description_chars]

    def _provider_order(self, task: str) -> tuple[str, str]:
        provider_name = {
            "optimize": self.settings.llm_router_optimize_provider,
            "cover_letter": self.settings.llm_router_cover_letter_provider,
            "skills": self.settings.llm_router_skills_provider,
            "create": self.settings.llm_router_create_provider,
        }.get(task, self.settings.llm_router_default)

        if provider_name == "local":
            return "local", "openai"
        return "openai", "local"

    def _is_available(self, provider_name: str) -> bool:
        if provider_name == "local":
            return self.settings.local_llm_enabled
        return bool(self.settings.openai_api_key)

    async def _call_json(
        self,
        *,
        task: str,
        prompt: str,
        model: str,
        attachments: Sequence[ResumeBlob] = (),
    ) -> dict[str, Any]:
        for provider_name in self._provider_order(task):
            if not self._is_available(provider_name):
                continue

            provider_model = self.settings.local_llm_model if provider_name == "local" else model
            try:
                provider = self.pool.local() if provider_name == "local" else self.pool.openai()
                return await provider.complete_json(model=provider_model, prompt=prompt, attachments=attachments)
            except Exception as exc:
                logger.warning("LLM JSON call failed task=%s provider=%s error=%s", task, provider_name, exc)
        return {}


def _resume_prompt_parts(resume: ResumeBlob | str) -> tuple[str, list[ResumeBlob]]:
    if isinstance(resume, str):
        return RESUME_INLINE.format(resume_text=resume), []
    if resume.is_text:
        return RESUME_INLINE.format(resume_text=resume.text()), []
    return RESUME_ATTACHED, [resume]


def normalize_skills(values: Iterable[Any]) -> list[str]:
    seen: set[str] = set()
    skills: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        skill = " ".join(value.split())
        if not skill or skill.lower() in seen:
            continue
        seen.add(skill.lower())
        skills.append(skill)
    return skills


def heuristic_key_skills(job_description: str) -> list[str]:
    skills = []
    for name, (pattern, case_sensitive) in _SKILL_VOCABULARY.items():
        flags = 0 if case_sensitive else re.IGNORECASE
        if re.search(pattern, job_description, flags):
            skills.append(name)
    return skills
