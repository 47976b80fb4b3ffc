from __future__ import annotations

from typing import Any


class ResumecraftError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.detail, "code": self.code}


class AuthenticationRequired(ResumecraftError):
    code = "authentication_required"
    status_code = 401

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(detail)


class PermissionDenied(ResumecraftError):
    code = "permission_denied"
    status_code = 403

    def __init__(self, detail: str = "Admin access required.") -> None:
        super().__init__(detail)


class ValidationFailed(ResumecraftError):
    code = "validation_failed"
    status_code = 400

    def __init__(self, detail: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(detail)
        self.errors = errors or {}

    def to_payload(self) -> dict[str, Any]:
        return super().to_payload() | {"details": self.errors}


class GenerationFailed(ResumecraftError):
    """A prompt adapter produced no usable output for a required field."""

    code = "generation_failed"
    status_code = 502

    def __init__(self, detail: str, *, stage: str) -> None:
        super().__init__(detail)
        self.stage = stage


class NotFound(ResumecraftError):
    code = "not_found"
    status_code = 404


class Conflict(ResumecraftError):
    code = "conflict"
    status_code = 400


class PersistenceFailed(ResumecraftError):
    code = "persistence_failed"
    status_code = 500
