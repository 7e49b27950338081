from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from competitii.config import load_settings
from competitii.db.engine import make_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def print_tables(database_url: str) -> None:
    """List the draw tables present in the configured database."""
    engine = make_engine(database_url)
    try:
        names = sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    print("Current tables:", ", ".join(names) if names else "(none)")


def main() -> None:
    """Migrate the configured database to head and report its tables."""
    settings = load_settings(project_root=PROJECT_ROOT)
    upgrade_db()
    print_tables(settings.db_url)


if __name__ == "__main__":
    main()
