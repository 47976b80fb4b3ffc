from __future__ import annotations

import json

import pytest
from conftest import JOB_DESCRIPTION, RESUME_TEXT
from typer.testing import CliRunner

from resumecraft.cli import app as cli_module
from resumecraft.db.repositories import Repository

runner = CliRunner()


@pytest.fixture
def cli_database(database, settings, monkeypatch):
    monkeypatch.setattr(cli_module, "get_database", lambda: database)
    monkeypatch.setattr(cli_module, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_module, "configure_logging", lambda: None)
    return database


def test_user_create_and_list(cli_database) -> None:
    created = runner.invoke(
        cli_module.app,
        ["user", "create", "--name", "Jane Doe", "--email", "jane@example.com", "--password", "secret123", "--admin"],
    )
    assert created.exit_code == 0, created.output
    assert json.loads(created.output)["role"] == "admin"

    listed = runner.invoke(cli_module.app, ["user", "list"])
    assert listed.exit_code == 0
    assert [row["email"] for row in json.loads(listed.output)] == ["jane@example.com"]


def test_template_add_marks_new_default(cli_database, tmp_path) -> None:
    latex = tmp_path / "modern.tex"
    latex.write_text(r"\documentclass{article}\begin{document}Modern\end{document}", encoding="utf-8")

    result = runner.invoke(
        cli_module.app,
        [
            "template",
            "add",
            "--file",
            str(latex),
            "--name",
            "Modern",
            "--description",
            "Modern two-column layout",
            "--image-url",
            "https://example.com/modern.png",
            "--default",
        ],
    )
    assert result.exit_code == 0, result.output

    listed = json.loads(runner.invoke(cli_module.app, ["template", "list"]).output)
    assert [row["name"] for row in listed if row["is_default"]] == ["Modern"]


def test_export_latex_writes_stored_request(cli_database, tmp_path) -> None:
    with cli_database.session() as db:
        repo = Repository(db)
        user = repo.create_user(name="Jane Doe", email="jane@example.com", password="secret123")
        record = repo.save_request(
            user_id=user.id,
            request_hash="f" * 64,
            resume="data:text/plain;base64,SGk=",
            job_description=JOB_DESCRIPTION,
            optimized_resume=RESUME_TEXT,
            optimized_resume_latex=r"\documentclass{article}",
            cover_letter="Dear Hiring Manager",
            skills=["Go"],
        )
        request_id = record.id
    out = tmp_path / "out" / "resume.tex"

    result = runner.invoke(cli_module.app, ["export-latex", "--request-id", str(request_id), "--out", str(out)])

    assert result.exit_code == 0, result.output
    assert out.read_text(encoding="utf-8") == r"\documentclass{article}"
