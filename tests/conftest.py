from __future__ import annotations

import base64
from collections import Counter
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from resumecraft.api.app import create_app
from resumecraft.config import Settings
from resumecraft.db.init import init_database
from resumecraft.db.repositories import Repository
from resumecraft.db.session import Database
from resumecraft.types import CoverLetter, CreatedResume, KeySkills, OptimizedResume

RESUME_TEXT = "Jane Doe\nBackend engineer. 5 years of Go and Python. Built distributed systems at scale.\n"
RESUME_DATA_URI = "data:text/plain;base64," + base64.b64encode(RESUME_TEXT.encode("utf-8")).decode("ascii")
JOB_DESCRIPTION = "Senior Go engineer, 5 years, distributed systems"


class FakeRouter:
    """Stands in for LLMRouter; records every adapter call."""

    def __init__(
        self,
        *,
        optimized: OptimizedResume | None = None,
        cover_letter: CoverLetter | None = None,
        skills: KeySkills | None = None,
        created: CreatedResume | None = None,
    ):
        self.optimized = optimized or OptimizedResume(
            optimized_resume="# Jane Doe\nI have experience with <del>React</del><ins>React.js</ins>.",
            optimized_resume_latex="\\documentclass{article}\\begin{document}Jane Doe\\end{document}",
        )
        self.cover_letter = cover_letter or CoverLetter(cover_letter="Dear Hiring Manager,\n...\nSincerely,\nJane Doe")
        self.skills = skills or KeySkills(skills=["Go", "Distributed systems"])
        self.created = created or CreatedResume(
            resume_markdown="# Jane Doe",
            resume_latex="\\documentclass{article}\\begin{document}Jane Doe\\end{document}",
        )
        self.calls: Counter[str] = Counter()
        self.cover_letter_inputs: list = []
        self.closed = False

    async def optimize_resume(self, *, resume, job_description):
        self.calls["optimize"] += 1
        return self.optimized

    async def generate_cover_letter(self, *, resume, job_description, personal=None):
        self.calls["cover_letter"] += 1
        self.cover_letter_inputs.append(resume)
        return self.cover_letter

    async def extract_key_skills(self, *, job_description):
        self.calls["skills"] += 1
        return self.skills

    async def create_resume(self, payload):
        self.calls["create"] += 1
        return self.created

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'resumecraft.db'}",
        data_dir=tmp_path / "data",
        secret_key="test-secret",
        openai_api_key="",
        local_llm_enabled=False,
        bootstrap_admin_email="",
        bootstrap_admin_password="",
        cover_letter_ordering="sequential",
    )


@pytest.fixture
def database(settings: Settings):
    db = Database(settings.database_url)
    init_database(db, settings)
    yield db
    db.dispose()


@pytest.fixture
def session(database: Database):
    with database.session() as db:
        yield db


@pytest.fixture
def user(session):
    return Repository(session).create_user(name="Jane Doe", email="jane@example.com", password="secret123")


@pytest.fixture
def fake_llm() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def client(settings: Settings, database: Database, fake_llm: FakeRouter):
    app = create_app(settings, database=database, llm=fake_llm)
    with TestClient(app) as test_client:
        yield test_client


def signup(client: TestClient, *, name: str = "Jane Doe", email: str = "jane@example.com") -> dict[str, str]:
    response = client.post("/api/auth/signup", json={"name": name, "email": email, "password": "secret123"})
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def admin_headers(client: TestClient, database: Database) -> dict[str, str]:
    with database.session() as db:
        Repository(db).create_user(name="Admin", email="admin@example.com", password="secret123", role="admin")
    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "secret123"})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
