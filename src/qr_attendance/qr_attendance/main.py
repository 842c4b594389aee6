from __future__ import annotations

import atexit
import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .codes.controller import register as register_codes
from .container import Container, build_container
from .core.constants import DEFAULT_CODE_TTL_MINUTES, DEFAULT_UPLOAD_PREFIX
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .database.connection import DatabaseConnection, DBConfig
from .justifications.controller import register as register_justifications
from .timetable.controller import register as register_timetable

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    When no container is given, the store handle is opened here and closed at
    process exit; repositories receive it through build_container().
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["CODE_TTL_MINUTES"] = int(getattr(settings, "CODE_TTL_MINUTES", DEFAULT_CODE_TTL_MINUTES))
    app.config["UPLOAD_PREFIX"] = getattr(settings, "UPLOAD_PREFIX", DEFAULT_UPLOAD_PREFIX)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = DBConfig.from_mapping(getattr(settings, "DB_CONFIG"))
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.user,
            db_config.host,
            db_config.port,
            db_config.database,
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config)

        conn = DatabaseConnection(db_config).open()
        atexit.register(conn.close)
        container = build_container(
            conn=conn,
            code_ttl_minutes=app.config["CODE_TTL_MINUTES"],
            upload_prefix=app.config["UPLOAD_PREFIX"],
        )

    app.extensions["qr_attendance"] = container

    register_timetable(app, container)
    register_codes(app, container)
    register_attendance(app, container)
    register_justifications(app, container)

    return app
