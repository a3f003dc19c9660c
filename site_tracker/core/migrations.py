from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from site_tracker.core.config import settings

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Upgrade the configured database to the latest Alembic revision."""
    project_root = Path(__file__).resolve().parents[2]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    logger.info("Running migrations against %s", settings.database_url.split("@")[-1])
    command.upgrade(alembic_cfg, "head")
