from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.eventhub.eventhub.database.bootstrap import apply_seed_sql, ensure_admin_user
from src.eventhub.eventhub.database.connection import DBConfig

logger = logging.getLogger("eventhub.seed_db")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    admin_email = getattr(settings, "ADMIN_EMAIL", None)
    admin_password = getattr(settings, "ADMIN_PASSWORD", None)
    if admin_email and admin_password:
        ensure_admin_user(db_config, email=admin_email, password=admin_password)
    else:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account")

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    logger.info("Seeded database -> %s", DBConfig.from_dict(db_config).describe())


if __name__ == "__main__":
    main()
