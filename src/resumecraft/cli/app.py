from __future__ import annotations

import asyncio
import base64
import json
import mimetypes
from pathlib import Path

import typer
import uvicorn

from resumecraft.api.app import create_app
from resumecraft.config import get_settings
from resumecraft.core.orchestrator import ApplicationOrchestrator
from resumecraft.db.init import init_database
from resumecraft.db.repositories import Repository
from resumecraft.db.session import Database
from resumecraft.errors import ResumecraftError
from resumecraft.llm.router import LLMRouter
from resumecraft.logging_config import configure_logging

app = typer.Typer(help="Resumecraft CLI")
user_app = typer.Typer(help="Manage user accounts")
template_app = typer.Typer(help="Manage LaTeX resume templates")
requests_app = typer.Typer(help="Inspect stored requests")

app.add_typer(user_app, name="user")
app.add_typer(template_app, name="template")
app.add_typer(requests_app, name="requests")

_DATABASE: Database | None = None


def get_database() -> Database:
    global _DATABASE
    if _DATABASE is None:
        settings = get_settings()
        _DATABASE = Database(settings.database_url)
        init_database(_DATABASE, settings)
    return _DATABASE


def _fail(exc: ResumecraftError) -> None:
    typer.echo(json.dumps(exc.to_payload(), indent=2), err=True)
    raise typer.Exit(code=1)


def file_to_data_uri(path: Path) -> str:
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


@app.command("init")
def init_cmd() -> None:
    """Create tables and seed the default template and bootstrap admin."""
    configure_logging()
    settings = get_settings()
    result = init_database(Database(settings.database_url), settings)
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@user_app.command("create")
def user_create(
    name: str = typer.Option(..., "--name"),
    email: str = typer.Option(..., "--email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
    admin: bool = typer.Option(False, "--admin"),
) -> None:
    configure_logging()
    with get_database().session() as db:
        try:
            user = Repository(db).create_user(
                name=name,
                email=email,
                password=password,
                role="admin" if admin else "user",
            )
        except ResumecraftError as exc:
            _fail(exc)
        typer.echo(json.dumps({"id": user.id, "email": user.email, "role": user.role}, indent=2))


@user_app.command("list")
def user_list() -> None:
    configure_logging()
    with get_database().session() as db:
        users = Repository(db).list_users()
        typer.echo(
            json.dumps(
                [
                    {
                        "id": user.id,
                        "name": user.name,
                        "email": user.email,
                        "role": user.role,
                        "request_count": user.request_count,
                    }
                    for user in users
                ],
                indent=2,
            )
        )


@user_app.command("promote")
def user_promote(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    with get_database().session() as db:
        repo = Repository(db)
        user = repo.get_user_by_email(email)
        if user is None:
            raise typer.BadParameter(f"user {email} not found")
        user = repo.update_user(user.id, {"role": "admin"})
        typer.echo(json.dumps({"id": user.id, "email": user.email, "role": user.role}, indent=2))


@template_app.command("add")
def template_add(
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    name: str = typer.Option(..., "--name"),
    description: str = typer.Option(..., "--description"),
    image_url: str = typer.Option(..., "--image-url"),
    image_hint: str = typer.Option("", "--image-hint"),
    default: bool = typer.Option(False, "--default"),
) -> None:
    configure_logging()
    with get_database().session() as db:
        try:
            template = Repository(db).create_template(
                {
                    "name": name,
                    "description": description,
                    "image_url": image_url,
                    "image_hint": image_hint,
                    "latex_code": file.read_text(encoding="utf-8"),
                },
                is_default=default,
            )
        except ResumecraftError as exc:
            _fail(exc)
        typer.echo(json.dumps({"id": template.id, "name": template.name, "is_default": template.is_default}, indent=2))


@template_app.command("list")
def template_list() -> None:
    configure_logging()
    with get_database().session() as db:
        templates = Repository(db).list_templates()
        typer.echo(
            json.dumps(
                [{"id": row.id, "name": row.name, "is_default": row.is_default} for row in templates],
                indent=2,
            )
        )


@template_app.command("set-default")
def template_set_default(template_id: int = typer.Option(..., "--template-id")) -> None:
    configure_logging()
    with get_database().session() as db:
        try:
            template = Repository(db).set_default_template(template_id)
        except ResumecraftError as exc:
            _fail(exc)
        typer.echo(json.dumps({"id": template.id, "name": template.name, "is_default": True}, indent=2))


@requests_app.command("list")
def requests_list(limit: int = typer.Option(20, "--limit")) -> None:
    configure_logging()
    with get_database().session() as db:
        rows = Repository(db).list_requests(limit=limit)
        typer.echo(
            json.dumps(
                [
                    {
                        "id": row.id,
                        "user": email,
                        "request_hash": row.request_hash,
                        "skills": row.skills_json,
                        "created_at": row.created_at.isoformat() if row.created_at else None,
                    }
                    for row, email in rows
                ],
                indent=2,
            )
        )


@app.command("process")
def process_cmd(
    email: str = typer.Option(..., "--email"),
    resume: Path = typer.Option(..., "--resume", exists=True, readable=True),
    job: Path = typer.Option(..., "--job", exists=True, readable=True),
) -> None:
    """Run the tailoring pipeline for a user from local files."""
    configure_logging()
    settings = get_settings()

    async def _run() -> dict:
        llm = LLMRouter(settings)
        try:
            with get_database().session() as db:
                user = Repository(db).get_user_by_email(email)
                if user is None:
                    raise typer.BadParameter(f"user {email} not found")
                result = await ApplicationOrchestrator(db, llm=llm, settings=settings).process_application(
                    user_id=user.id,
                    resume_data_uri=file_to_data_uri(resume),
                    job_description=job.read_text(encoding="utf-8"),
                )
                return result.model_dump(mode="json")
        finally:
            await llm.aclose()

    payload = asyncio.run(_run())
    typer.echo(json.dumps(payload, indent=2))
    if not payload["success"]:
        raise typer.Exit(code=1)


@app.command("export-latex")
def export_latex(
    request_id: int = typer.Option(..., "--request-id"),
    out: Path = typer.Option(..., "--out"),
) -> None:
    """Write the optimized LaTeX resume of a stored request to a file."""
    configure_logging()
    with get_database().session() as db:
        record = Repository(db).get_request(request_id)
        if record is None:
            raise typer.BadParameter(f"request {request_id} not found")
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(record.optimized_resume_latex, encoding="utf-8")
    typer.echo(json.dumps({"request_id": request_id, "path": str(out)}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    app_instance = create_app(settings)
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
