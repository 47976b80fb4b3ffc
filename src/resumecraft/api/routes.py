from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from resumecraft.api.deps import get_app_settings, get_db, get_llm, require_user
from resumecraft.api.schemas import (
    ApplicationSubmitRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RequestSummaryResponse,
    SignupRequest,
    TemplateResponse,
    TokenResponse,
    UserResponse,
)
from resumecraft.config import Settings
from resumecraft.core.orchestrator import ApplicationOrchestrator
from resumecraft.core.security import create_access_token, verify_password
from resumecraft.db.models import User
from resumecraft.db.repositories import Repository
from resumecraft.errors import AuthenticationRequired, GenerationFailed, NotFound
from resumecraft.llm.router import LLMRouter
from resumecraft.types import CreatedResume, CreateResumeInput, ProcessedApplication, ProcessResult

router = APIRouter(prefix="/api", tags=["api"])


def _issue_session(response: Response, user: User, settings: Settings) -> TokenResponse:
    token = create_access_token(user_id=user.id, email=user.email, settings=settings)
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.session_ttl_min * 60,
        httponly=True,
        samesite="lax",
        secure=settings.app_env == "production",
    )
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/auth/signup", response_model=TokenResponse, status_code=201)
def signup(
    payload: SignupRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    user = Repository(db).create_user(name=payload.name, email=payload.email, password=payload.password)
    return _issue_session(response, user, settings)


@router.post("/auth/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    user = Repository(db).get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise AuthenticationRequired("Invalid email or password.")
    return _issue_session(response, user, settings)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(response: Response, settings: Settings = Depends(get_app_settings)) -> MessageResponse:
    response.delete_cookie(settings.auth_cookie_name)
    return MessageResponse(message="Logged out")


@router.get("/auth/me", response_model=UserResponse)
def me(user: User = Depends(require_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get("/user/profile", response_model=UserResponse)
def get_profile(user: User = Depends(require_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put("/user/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    values = payload.model_dump(exclude_unset=True, exclude_none=True)
    updated = Repository(db).update_profile(user.id, values)
    return UserResponse.model_validate(updated)


@router.get("/user/requests", response_model=list[RequestSummaryResponse])
def list_user_requests(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> list[RequestSummaryResponse]:
    rows = Repository(db).list_user_requests(user.id, limit=20)
    return [
        RequestSummaryResponse(id=row.id, job_description=row.job_description, created_at=row.created_at)
        for row in rows
    ]


@router.post("/applications", response_model=ProcessResult)
async def submit_application(
    payload: ApplicationSubmitRequest,
    response: Response,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm),
    settings: Settings = Depends(get_app_settings),
) -> ProcessResult:
    orchestrator = ApplicationOrchestrator(db, llm=llm, settings=settings)
    result = await orchestrator.process_application(
        user_id=user.id,
        resume_data_uri=payload.resume,
        job_description=payload.job_description,
    )
    if not result.success:
        response.status_code = result.status_code
    return result


@router.get("/applications/{request_id}", response_model=ProcessedApplication)
def get_application(
    request_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm),
    settings: Settings = Depends(get_app_settings),
) -> ProcessedApplication:
    orchestrator = ApplicationOrchestrator(db, llm=llm, settings=settings)
    return orchestrator.get_cached_result(user_id=user.id, request_id=request_id)


@router.get("/templates", response_model=list[TemplateResponse])
def list_templates(db: Session = Depends(get_db)) -> list[TemplateResponse]:
    return [TemplateResponse.model_validate(row) for row in Repository(db).list_templates()]


@router.get("/templates/default", response_model=TemplateResponse)
def get_default_template(db: Session = Depends(get_db)) -> TemplateResponse:
    template = Repository(db).get_default_template()
    if template is None:
        raise NotFound("No default template configured")
    return TemplateResponse.model_validate(template)


@router.post("/resumes", response_model=CreatedResume, dependencies=[Depends(require_user)])
async def create_resume(
    payload: CreateResumeInput,
    llm: LLMRouter = Depends(get_llm),
) -> CreatedResume:
    created = await llm.create_resume(payload)
    if not created.resume_markdown.strip() or not created.resume_latex.strip():
        raise GenerationFailed("Could not create resume.", stage="create-resume")
    return created
