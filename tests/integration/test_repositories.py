from __future__ import annotations

import pytest
from sqlalchemy import func, select

from resumecraft.db.models import ApplicationRequest, Template
from resumecraft.db.repositories import Repository
from resumecraft.db.seed import DEFAULT_TEMPLATE_NAME
from resumecraft.errors import Conflict, NotFound

LATEX = r"\documentclass{article}\begin{document}Resume\end{document}"


def _template(name: str) -> dict[str, str]:
    return {
        "name": name,
        "description": f"{name} layout for technical resumes",
        "image_url": f"https://example.com/{name.lower()}.png",
        "latex_code": LATEX,
    }


def _defaults(session) -> list[str]:
    return list(session.scalars(select(Template.name).where(Template.is_default.is_(True))).all())


def _save(repo: Repository, user_id: int, request_hash: str) -> ApplicationRequest:
    return repo.save_request(
        user_id=user_id,
        request_hash=request_hash,
        resume="data:text/plain;base64,SGk=",
        job_description="Go engineer",
        optimized_resume="# Resume",
        optimized_resume_latex=LATEX,
        cover_letter="Dear Hiring Manager",
        skills=["Go"],
    )


def test_seeded_default_template_exists(session) -> None:
    assert _defaults(session) == [DEFAULT_TEMPLATE_NAME]


def test_only_one_template_is_default(session) -> None:
    repo = Repository(session)

    modern = repo.create_template(_template("Modern"), is_default=True)
    assert _defaults(session) == ["Modern"]

    repo.create_template(_template("Compact"))
    assert _defaults(session) == ["Modern"]

    repo.set_default_template(repo.list_templates()[0].id)
    assert len(_defaults(session)) == 1
    assert _defaults(session) == ["Compact"]

    repo.update_template(modern.id, {"description": "Updated modern layout"}, is_default=True)
    assert _defaults(session) == ["Modern"]
    assert repo.get_default_template().id == modern.id


def test_unsetting_default_leaves_no_default(session) -> None:
    repo = Repository(session)
    default = repo.get_default_template()

    repo.update_template(default.id, {}, is_default=False)

    assert repo.get_default_template() is None


def test_duplicate_template_name_is_rejected(session) -> None:
    repo = Repository(session)
    repo.create_template(_template("Modern"))

    with pytest.raises(Conflict):
        repo.create_template(_template("Modern"))


def test_duplicate_email_is_rejected(session, user) -> None:
    with pytest.raises(Conflict):
        Repository(session).create_user(name="Jane Again", email="JANE@example.com", password="secret123")


def test_request_counter_increments_atomically(session, user) -> None:
    repo = Repository(session)

    assert repo.increment_request_count(user.id) == 1
    assert repo.increment_request_count(user.id) == 2

    session.refresh(user)
    assert user.request_count == 2


def test_duplicate_request_resolves_to_existing_row(session, user) -> None:
    repo = Repository(session)

    first = _save(repo, user.id, "a" * 64)
    second = _save(repo, user.id, "a" * 64)

    assert second.id == first.id
    assert session.scalar(select(func.count(ApplicationRequest.id))) == 1


def test_delete_user_removes_their_requests(session, user) -> None:
    repo = Repository(session)
    user_id = user.id
    other = repo.create_user(name="John Roe", email="john@example.com", password="secret123")
    _save(repo, user.id, "a" * 64)
    _save(repo, other.id, "b" * 64)

    repo.delete_user(user_id)

    assert repo.get_user(user_id) is None
    remaining = session.scalars(select(ApplicationRequest.user_id)).all()
    assert remaining == [other.id]


def test_user_request_history_is_newest_first_and_limited(session, user) -> None:
    repo = Repository(session)
    for index in range(3):
        _save(repo, user.id, f"{index:064d}")

    rows = repo.list_user_requests(user.id, limit=2)

    assert [row.request_hash for row in rows] == [f"{2:064d}", f"{1:064d}"]


def test_profile_update_ignores_protected_fields(session, user) -> None:
    updated = Repository(session).update_profile(
        user.id,
        {"bio": "Go engineer", "role": "admin", "request_count": 99},
    )

    assert updated.bio == "Go engineer"
    assert updated.role == "user"
    assert updated.request_count == 0


def test_missing_rows_raise_not_found(session) -> None:
    repo = Repository(session)

    with pytest.raises(NotFound):
        repo.delete_user(9999)
    with pytest.raises(NotFound):
        repo.update_template(9999, {})
    with pytest.raises(NotFound):
        repo.delete_request(9999)
