from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, ensure_admin_user, list_tables
from .database.connection import DBConfig

from .container import Container, build_container
from .errors import register_error_handlers
from .checkin.controller import register as register_checkin
from .events.controller import register as register_events
from .qr.controller import register as register_qr
from .registrations.controller import register as register_registrations
from .reports.controller import register as register_reports
from .users.controller import register as register_users

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Pass ``container`` to run against prepared repositories (tests); the
    database bootstrap is skipped in that case.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    if container is None:
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())
        _bootstrap_database(settings, db_config)
        container = build_container(
            db_config=db_config,
            qr_token_bytes=int(getattr(settings, "QR_TOKEN_BYTES", 16)),
            qr_box_size=int(getattr(settings, "QR_BOX_SIZE", 10)),
            qr_border=int(getattr(settings, "QR_BORDER", 2)),
        )

    app.extensions["eventhub.container"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_events(app, container)
    register_registrations(app, container)
    register_qr(app, container)
    register_checkin(app, container)
    register_reports(app, container)

    return app


def _bootstrap_database(settings, db_config: dict) -> None:
    root = Path(__file__).resolve().parents[3] / "database"

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=root / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=root / "seed.sql")
        admin_email = getattr(settings, "ADMIN_EMAIL", None)
        admin_password = getattr(settings, "ADMIN_PASSWORD", None)
        if admin_email and admin_password:
            ensure_admin_user(db_config, email=admin_email, password=admin_password)
        else:
            logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set, no admin account created")
