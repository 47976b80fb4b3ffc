from __future__ import annotations

import asyncio
import logging
import re

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from resumecraft.config import Settings, get_settings
from resumecraft.core.fingerprint import request_fingerprint
from resumecraft.db.models import ApplicationRequest
from resumecraft.db.repositories import Repository
from resumecraft.errors import (
    AuthenticationRequired,
    GenerationFailed,
    NotFound,
    ResumecraftError,
    ValidationFailed,
)
from resumecraft.llm.router import LLMRouter
from resumecraft.types import (
    CoverLetter,
    KeySkills,
    OptimizedResume,
    PersonalInfo,
    ProcessedApplication,
    ProcessResult,
    ResumeBlob,
)

logger = logging.getLogger(__name__)

STAGE_OPTIMIZE = "optimize-resume"
STAGE_COVER_LETTER = "generate-cover-letter"

GENERIC_FAILURE = "Failed to process application."

_DELETED_MARKUP = re.compile(r"<del>.*?</del>", re.DOTALL | re.IGNORECASE)
_INSERTED_MARKUP = re.compile(r"</?ins>", re.IGNORECASE)


class ApplicationOrchestrator:
    """Turns a (resume, job description) pair into a stored, tailored application.

    Identical pairs submitted by the same user are served from the stored
    request instead of being regenerated. Every invocation moves through
    ``checking-cache`` -> ``generating`` -> ``persisted``, stopping early on a
    cache hit or on the first failure.
    """

    def __init__(
        self,
        session: Session,
        *,
        llm: LLMRouter | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.llm = llm or LLMRouter(self.settings)

    async def process_application(
        self,
        *,
        user_id: int | None,
        resume_data_uri: str,
        job_description: str,
    ) -> ProcessResult:
        try:
            data = await self._process(
                user_id=user_id,
                resume_data_uri=resume_data_uri,
                job_description=job_description,
            )
        except GenerationFailed as exc:
            logger.error("Generation failed user_id=%s stage=%s detail=%s", user_id, exc.stage, exc.detail)
            return ProcessResult.failed(f"{GENERIC_FAILURE} {exc.detail}", exc.code, status_code=exc.status_code)
        except ValidationFailed as exc:
            return ProcessResult.failed(exc.detail, exc.code, status_code=exc.status_code, details=exc.errors)
        except ResumecraftError as exc:
            logger.warning("Application rejected user_id=%s code=%s detail=%s", user_id, exc.code, exc.detail)
            return ProcessResult.failed(exc.detail, exc.code, status_code=exc.status_code)
        except Exception:
            logger.exception("Unexpected failure processing application user_id=%s", user_id)
            return ProcessResult.failed(GENERIC_FAILURE)

        return ProcessResult.ok(data)

    def get_cached_result(self, *, user_id: int | None, request_id: int) -> ProcessedApplication:
        if user_id is None:
            raise AuthenticationRequired()

        record = self.repo.get_request_for_user(request_id, user_id)
        if record is None:
            raise NotFound("Request not found")
        return serialize_request(record, cached=True)

    async def _process(
        self,
        *,
        user_id: int | None,
        resume_data_uri: str,
        job_description: str,
    ) -> ProcessedApplication:
        personal = await run_in_threadpool(self._load_personal_info, user_id)
        resume = self._validate(resume_data_uri, job_description)

        logger.info("state=checking-cache user_id=%s", user_id)
        request_hash = request_fingerprint(resume_data_uri, job_description)
        cached = await run_in_threadpool(self._serve_cached, user_id, request_hash)
        if cached is not None:
            return cached

        logger.info(
            "state=generating user_id=%s request_hash=%s ordering=%s",
            user_id,
            request_hash[:12],
            self.settings.cover_letter_ordering,
        )
        optimized, cover_letter, skills = await self._generate(resume, job_description, personal)

        return await run_in_threadpool(
            self._persist,
            user_id=user_id,
            request_hash=request_hash,
            resume_data_uri=resume_data_uri,
            job_description=job_description,
            optimized=optimized,
            cover_letter=cover_letter,
            skills=skills,
        )

    def _load_personal_info(self, user_id: int | None) -> PersonalInfo:
        user = self.repo.get_user(user_id) if user_id is not None else None
        if user is None:
            raise AuthenticationRequired()
        return PersonalInfo.from_user(user)

    def _serve_cached(self, user_id: int, request_hash: str) -> ProcessedApplication | None:
        cached = self.repo.find_request(user_id, request_hash)
        if cached is None:
            # End the read transaction before the adapters are awaited.
            self.session.rollback()
            return None

        count = self.repo.increment_request_count(user_id)
        logger.info("Cache hit user_id=%s request_id=%s request_count=%s", user_id, cached.id, count)
        return serialize_request(cached, cached=True)

    def _persist(
        self,
        *,
        user_id: int,
        request_hash: str,
        resume_data_uri: str,
        job_description: str,
        optimized: OptimizedResume,
        cover_letter: CoverLetter,
        skills: KeySkills,
    ) -> ProcessedApplication:
        record = self.repo.save_request(
            user_id=user_id,
            request_hash=request_hash,
            resume=resume_data_uri,
            job_description=job_description,
            optimized_resume=optimized.optimized_resume,
            optimized_resume_latex=optimized.optimized_resume_latex,
            cover_letter=cover_letter.cover_letter,
            skills=skills.skills,
        )
        count = self.repo.increment_request_count(user_id)
        logger.info("state=persisted user_id=%s request_id=%s request_count=%s", user_id, record.id, count)
        return serialize_request(record, cached=False)

    def _validate(self, resume_data_uri: str, job_description: str) -> ResumeBlob:
        errors: dict[str, str] = {}
        resume: ResumeBlob | None = None

        try:
            resume = ResumeBlob.from_data_uri(resume_data_uri, max_bytes=self.settings.max_resume_bytes)
        except ValidationFailed as exc:
            errors.update(exc.errors)

        if not (job_description or "").strip():
            errors["job_description"] = "Job description is required"
        elif len(job_description) > self.settings.max_job_description_chars:
            errors["job_description"] = (
                f"Job description exceeds {self.settings.max_job_description_chars} characters"
            )

        if errors or resume is None:
            raise ValidationFailed("Validation failed", errors)
        return resume

    async def _generate(
        self,
        resume: ResumeBlob,
        job_description: str,
        personal: PersonalInfo,
    ) -> tuple[OptimizedResume, CoverLetter, KeySkills]:
        if self.settings.cover_letter_ordering == "parallel":
            # The cover letter is written from the original upload, not the optimized text.
            optimized, cover_letter, skills = await asyncio.gather(
                self.llm.optimize_resume(resume=resume, job_description=job_description),
                self.llm.generate_cover_letter(
                    resume=resume,
                    job_description=job_description,
                    personal=personal,
                ),
                self.llm.extract_key_skills(job_description=job_description),
            )
            _require_optimized(optimized)
            _require_cover_letter(cover_letter)
            return optimized, cover_letter, skills

        optimized, skills = await asyncio.gather(
            self.llm.optimize_resume(resume=resume, job_description=job_description),
            self.llm.extract_key_skills(job_description=job_description),
        )
        _require_optimized(optimized)

        cover_letter = await self.llm.generate_cover_letter(
            resume=strip_change_markup(optimized.optimized_resume),
            job_description=job_description,
            personal=personal,
        )
        _require_cover_letter(cover_letter)
        return optimized, cover_letter, skills


def _require_optimized(optimized: OptimizedResume) -> None:
    if not optimized.optimized_resume.strip() or not optimized.optimized_resume_latex.strip():
        raise GenerationFailed("Could not optimize resume.", stage=STAGE_OPTIMIZE)


def _require_cover_letter(cover_letter: CoverLetter) -> None:
    if not cover_letter.cover_letter.strip():
        raise GenerationFailed("Could not generate cover letter.", stage=STAGE_COVER_LETTER)


def strip_change_markup(markdown: str) -> str:
    """Final text of a highlighted resume: deletions dropped, insertions unwrapped."""
    return _INSERTED_MARKUP.sub("", _DELETED_MARKUP.sub("", markdown))


def serialize_request(record: ApplicationRequest, *, cached: bool) -> ProcessedApplication:
    return ProcessedApplication(
        request_id=record.id,
        request_hash=record.request_hash,
        optimized_resume=record.optimized_resume,
        optimized_resume_latex=record.optimized_resume_latex,
        cover_letter=record.cover_letter,
        skills=list(record.skills_json or []),
        cached=cached,
        created_at=record.created_at,
    )
