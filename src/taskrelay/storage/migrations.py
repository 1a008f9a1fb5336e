"""Schema migrations shipped inside the package and applied with Alembic."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

SCRIPT_LOCATION = Path(__file__).resolve().parent / "schema"


def migration_config(db_path: Path) -> Config:
    """Alembic config targeting `db_path`, independent of the working directory."""

    config = Config()
    config.set_main_option("script_location", str(SCRIPT_LOCATION))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    return config


def head_revision() -> str | None:
    return ScriptDirectory(str(SCRIPT_LOCATION)).get_current_head()


def upgrade_head(db_path: Path) -> None:
    """Bring the SQLite database at `db_path` to the latest schema revision."""

    command.upgrade(migration_config(db_path), "head")
