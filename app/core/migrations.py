import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

from app.core.config import settings

logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def build_alembic_config(database_url: Optional[str] = None) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "app" / "alembic"))
    cfg.set_main_option(
        "sqlalchemy.url",
        str(database_url or settings.SQLALCHEMY_DATABASE_URI).replace("%", "%%"),
    )
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(database_url: Optional[str] = None) -> None:
    cfg = build_alembic_config(database_url)
    logger.info("Upgrading schema to head.")
    command.upgrade(cfg, "head")
