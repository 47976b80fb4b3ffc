from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_, case, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from resumecraft.core.security import hash_password
from resumecraft.db.models import ApplicationRequest, Template, User
from resumecraft.errors import Conflict, NotFound, PersistenceFailed

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "bio", "avatar", "address", "phone", "website", "linkedin")
TEMPLATE_FIELDS = ("name", "description", "image_url", "image_hint", "latex_code")


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str = "user",
        avatar: str = "",
    ) -> User:
        email = email.strip().lower()
        if self.get_user_by_email(email):
            raise Conflict("User with this email already exists")

        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            role=role,
            avatar=avatar,
        )
        self.session.add(user)
        try:
            self._commit()
        except IntegrityError as exc:
            raise Conflict("User with this email already exists") from exc
        self.session.refresh(user)
        return user

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email.strip().lower()))

    def list_users(self) -> list[User]:
        return list(self.session.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())).all())

    def update_user(self, user_id: int, values: dict[str, Any], *, password: str | None = None) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFound("User not found")

        email = values.get("email")
        if email is not None:
            email = email.strip().lower()
            other = self.get_user_by_email(email)
            if other and other.id != user_id:
                raise Conflict("User with this email already exists")
            values = values | {"email": email}

        for key, value in values.items():
            setattr(user, key, value)
        if password:
            user.hashed_password = hash_password(password)

        try:
            self._commit()
        except IntegrityError as exc:
            raise Conflict("User with this email already exists") from exc
        self.session.refresh(user)
        return user

    def update_profile(self, user_id: int, values: dict[str, Any]) -> User:
        allowed = {key: value for key, value in values.items() if key in PROFILE_FIELDS}
        return self.update_user(user_id, allowed)

    def delete_user(self, user_id: int) -> None:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFound("User not found")

        self.session.execute(delete(ApplicationRequest).where(ApplicationRequest.user_id == user_id))
        self.session.delete(user)
        self._commit()

    def increment_request_count(self, user_id: int) -> int:
        self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(request_count=User.request_count + 1)
            .execution_options(synchronize_session=False)
        )
        self._commit()
        count = self.session.scalar(select(User.request_count).where(User.id == user_id))
        return int(count or 0)

    def find_request(self, user_id: int, request_hash: str) -> ApplicationRequest | None:
        statement = select(ApplicationRequest).where(
            and_(
                ApplicationRequest.user_id == user_id,
                ApplicationRequest.request_hash == request_hash,
            )
        )
        return self.session.scalar(statement)

    def save_request(
        self,
        *,
        user_id: int,
        request_hash: str,
        resume: str,
        job_description: str,
        optimized_resume: str,
        optimized_resume_latex: str,
        cover_letter: str,
        skills: list[str],
    ) -> ApplicationRequest:
        item = ApplicationRequest(
            user_id=user_id,
            request_hash=request_hash,
            resume=resume,
            job_description=job_description,
            optimized_resume=optimized_resume,
            optimized_resume_latex=optimized_resume_latex,
            cover_letter=cover_letter,
            skills_json=list(skills),
        )
        self.session.add(item)
        try:
            self._commit()
        except IntegrityError as exc:
            existing = self.find_request(user_id, request_hash)
            if existing is None:
                raise PersistenceFailed("Could not store request.") from exc
            logger.info(
                "Concurrent duplicate request resolved to existing row user_id=%s request_id=%s",
                user_id,
                existing.id,
            )
            return existing

        self.session.refresh(item)
        return item

    def get_request(self, request_id: int) -> ApplicationRequest | None:
        return self.session.get(ApplicationRequest, request_id)

    def get_request_for_user(self, request_id: int, user_id: int) -> ApplicationRequest | None:
        statement = select(ApplicationRequest).where(
            and_(ApplicationRequest.id == request_id, ApplicationRequest.user_id == user_id)
        )
        return self.session.scalar(statement)

    def list_user_requests(self, user_id: int, limit: int = 20) -> list[ApplicationRequest]:
        statement = (
            select(ApplicationRequest)
            .where(ApplicationRequest.user_id == user_id)
            .order_by(ApplicationRequest.created_at.desc(), ApplicationRequest.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def list_requests(self, limit: int = 100) -> list[tuple[ApplicationRequest, str]]:
        statement = (
            select(ApplicationRequest, User.email)
            .join(User, User.id == ApplicationRequest.user_id)
            .order_by(ApplicationRequest.created_at.desc(), ApplicationRequest.id.desc())
            .limit(limit)
        )
        return [(row[0], row[1]) for row in self.session.execute(statement).all()]

    def delete_request(self, request_id: int) -> None:
        item = self.session.get(ApplicationRequest, request_id)
        if not item:
            raise NotFound("Request not found")
        self.session.delete(item)
        self._commit()

    def list_templates(self) -> list[Template]:
        statement = select(Template).order_by(Template.created_at.desc(), Template.id.desc())
        return list(self.session.scalars(statement).all())

    def get_default_template(self) -> Template | None:
        return self.session.scalar(select(Template).where(Template.is_default.is_(True)))

    def create_template(self, values: dict[str, Any], *, is_default: bool = False) -> Template:
        payload = {key: value for key, value in values.items() if key in TEMPLATE_FIELDS}
        if self.session.scalar(select(Template).where(Template.name == payload.get("name"))):
            raise Conflict("Template name already exists")

        template = Template(**payload, is_default=False)
        self.session.add(template)
        try:
            self.session.flush()
            if is_default:
                self._set_default(template.id)
            self._commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict("Template name already exists") from exc
        self.session.refresh(template)
        return template

    def update_template(
        self,
        template_id: int,
        values: dict[str, Any],
        *,
        is_default: bool | None = None,
    ) -> Template:
        template = self.session.get(Template, template_id)
        if not template:
            raise NotFound("Template not found")

        name = values.get("name")
        if name is not None:
            other = self.session.scalar(select(Template).where(Template.name == name))
            if other and other.id != template_id:
                raise Conflict("Template name already exists")

        for key, value in values.items():
            if key in TEMPLATE_FIELDS:
                setattr(template, key, value)

        try:
            if is_default:
                self.session.flush()
                self._set_default(template_id)
            elif is_default is False:
                template.is_default = False
            self._commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict("Template name already exists") from exc
        self.session.refresh(template)
        return template

    def set_default_template(self, template_id: int) -> Template:
        return self.update_template(template_id, {}, is_default=True)

    def delete_template(self, template_id: int) -> None:
        template = self.session.get(Template, template_id)
        if not template:
            raise NotFound("Template not found")
        self.session.delete(template)
        self._commit()

    def stats(self) -> dict[str, int]:
        return {
            "users": int(self.session.scalar(select(func.count(User.id))) or 0),
            "admins": int(self.session.scalar(select(func.count(User.id)).where(User.role == "admin")) or 0),
            "requests": int(self.session.scalar(select(func.count(ApplicationRequest.id))) or 0),
            "templates": int(self.session.scalar(select(func.count(Template.id))) or 0),
            "total_usage": int(self.session.scalar(select(func.coalesce(func.sum(User.request_count), 0))) or 0),
        }

    def _set_default(self, template_id: int) -> None:
        # One statement flips every row, so the chosen template is the only default.
        self.session.execute(
            update(Template)
            .values(is_default=case((Template.id == template_id, True), else_=False))
            .execution_options(synchronize_session=False)
        )

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Database commit failed")
            raise PersistenceFailed("Database write failed.") from exc
