from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from resumecraft.errors import ValidationFailed

UserRole = Literal["user", "admin"]

_DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(?:;[\w.+-]+=[\w.+-]+)*);base64,(?P<payload>.*)$",
    re.DOTALL,
)
_MIME_EXTENSIONS = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
    "text/markdown": "md",
    "application/x-tex": "tex",
    "image/png": "png",
    "image/jpeg": "jpg",
}


class ResumeBlob(BaseModel):
    """A resume upload carried as a base64 data URI, e.g. ``data:application/pdf;base64,...``."""

    mime_type: str
    data: bytes
    data_uri: str

    @classmethod
    def from_data_uri(cls, value: str, *, max_bytes: int | None = None) -> "ResumeBlob":
        candidate = (value or "").strip()
        match = _DATA_URI_PATTERN.match(candidate)
        if not match:
            raise ValidationFailed(
                "Invalid resume upload.",
                errors={"resume": "expected a data URI of the form data:<mimetype>;base64,<data>"},
            )

        try:
            data = base64.b64decode(match.group("payload"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationFailed(
                "Invalid resume upload.",
                errors={"resume": "payload is not valid base64"},
            ) from exc

        if not data:
            raise ValidationFailed("Invalid resume upload.", errors={"resume": "resume is empty"})
        if max_bytes is not None and len(data) > max_bytes:
            raise ValidationFailed(
                "Invalid resume upload.",
                errors={"resume": f"resume exceeds {max_bytes} bytes"},
            )

        return cls(mime_type=match.group("mime").lower(), data=data, data_uri=candidate)

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/") or self.mime_type == "application/x-tex"

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def filename(self) -> str:
        return f"resume.{_MIME_EXTENSIONS.get(self.mime_type, 'bin')}"

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


class PersonalInfo(BaseModel):
    name: str
    email: str
    phone: str = ""
    address: str = ""
    website: str = ""
    linkedin: str = ""

    @classmethod
    def from_user(cls, user: Any) -> "PersonalInfo":
        return cls(
            name=user.name,
            email=user.email,
            phone=user.phone or "",
            address=user.address or "",
            website=user.website or "",
            linkedin=user.linkedin or "",
        )

    def contact_block(self) -> str:
        lines = [self.name, self.address, self.phone, self.email, self.website, self.linkedin]
        return "\n".join(line for line in lines if line)


class OptimizedResume(BaseModel):
    optimized_resume: str = ""
    optimized_resume_latex: str = ""


class CoverLetter(BaseModel):
    cover_letter: str = ""


class KeySkills(BaseModel):
    skills: list[str] = Field(default_factory=list)


class ProcessedApplication(BaseModel):
    request_id: int
    request_hash: str
    optimized_resume: str
    optimized_resume_latex: str
    cover_letter: str
    skills: list[str] = Field(default_factory=list)
    cached: bool = False
    created_at: datetime | None = None


class ProcessResult(BaseModel):
    success: bool
    data: ProcessedApplication | None = None
    error: str | None = None
    code: str | None = None
    details: dict[str, str] = Field(default_factory=dict)
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def ok(cls, data: ProcessedApplication) -> "ProcessResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(
        cls,
        error: str,
        code: str = "error",
        *,
        status_code: int = 500,
        details: dict[str, str] | None = None,
    ) -> "ProcessResult":
        return cls(success=False, error=error, code=code, details=details or {}, status_code=status_code)


class ExperienceEntry(BaseModel):
    title: str
    company: str
    location: str = ""
    start_date: str
    end_date: str = ""
    responsibilities: list[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    school: str
    degree: str
    location: str = ""
    start_date: str
    end_date: str = ""


class CreateResumeInput(BaseModel):
    personal_info: PersonalInfo
    summary: str
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)


class CreatedResume(BaseModel):
    resume_markdown: str = ""
    resume_latex: str = ""


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)
