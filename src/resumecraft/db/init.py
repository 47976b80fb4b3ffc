from __future__ import annotations

from resumecraft.config import Settings, get_settings
from resumecraft.db.seed import seed_bootstrap_admin, seed_default_template
from resumecraft.db.session import Database


def ensure_data_directories(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def init_database(database: Database, settings: Settings | None = None) -> dict[str, int]:
    settings = settings or get_settings()
    ensure_data_directories(settings)
    database.create_all()

    with database.session() as session:
        templates = seed_default_template(session)
        admins = seed_bootstrap_admin(session, settings)
    return {"seeded_templates": templates, "seeded_admins": admins}
