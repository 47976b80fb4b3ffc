"""
Admin endpoints for managing users, resume templates and stored requests.

Every route requires an authenticated user with the ``admin`` role.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from resumecraft.api.deps import get_db, require_admin
from resumecraft.api.schemas import (
    AdminRequestResponse,
    AdminUserCreateRequest,
    AdminUserUpdateRequest,
    MessageResponse,
    TemplateRequest,
    TemplateResponse,
    TemplateUpdateRequest,
    UserResponse,
)
from resumecraft.db.repositories import Repository

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats")
def stats(db: Session = Depends(get_db)) -> dict[str, int]:
    return Repository(db).stats()


@router.get("/users", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)) -> list[UserResponse]:
    return [UserResponse.model_validate(user) for user in Repository(db).list_users()]


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: AdminUserCreateRequest, db: Session = Depends(get_db)) -> UserResponse:
    user = Repository(db).create_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        avatar=payload.avatar,
    )
    return UserResponse.model_validate(user)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: AdminUserUpdateRequest,
    db: Session = Depends(get_db),
) -> UserResponse:
    values = payload.model_dump(exclude={"password"})
    user = Repository(db).update_user(user_id, values, password=payload.password)
    return UserResponse.model_validate(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    Repository(db).delete_user(user_id)
    return MessageResponse(message="User deleted successfully", data={"user_id": user_id})


@router.get("/templates", response_model=list[TemplateResponse])
def list_templates(db: Session = Depends(get_db)) -> list[TemplateResponse]:
    return [TemplateResponse.model_validate(row) for row in Repository(db).list_templates()]


@router.post("/templates", response_model=TemplateResponse, status_code=201)
def create_template(payload: TemplateRequest, db: Session = Depends(get_db)) -> TemplateResponse:
    template = Repository(db).create_template(
        payload.model_dump(exclude={"is_default"}),
        is_default=payload.is_default,
    )
    return TemplateResponse.model_validate(template)


@router.put("/templates/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: int,
    payload: TemplateUpdateRequest,
    db: Session = Depends(get_db),
) -> TemplateResponse:
    template = Repository(db).update_template(
        template_id,
        payload.model_dump(exclude={"is_default"}),
        is_default=payload.is_default,
    )
    return TemplateResponse.model_validate(template)


@router.delete("/templates/{template_id}", response_model=MessageResponse)
def delete_template(template_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    Repository(db).delete_template(template_id)
    return MessageResponse(message="Template deleted successfully", data={"template_id": template_id})


@router.get("/requests", response_model=list[AdminRequestResponse])
def list_requests(limit: int = 100, db: Session = Depends(get_db)) -> list[AdminRequestResponse]:
    rows = Repository(db).list_requests(limit=limit)
    return [
        AdminRequestResponse(
            id=row.id,
            user_id=row.user_id,
            user_email=email,
            request_hash=row.request_hash,
            job_description=row.job_description,
            skills=list(row.skills_json or []),
            created_at=row.created_at,
        )
        for row, email in rows
    ]


@router.delete("/requests/{request_id}", response_model=MessageResponse)
def delete_request(request_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    Repository(db).delete_request(request_id)
    return MessageResponse(message="Request deleted successfully", data={"request_id": request_id})
