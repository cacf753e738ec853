from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import DEBOUNCE_MINUTES
from .core.enums import DayBucketPolicy
from .database.bootstrap import apply_schema, ensure_demo_data, list_tables
from .employees.controller import register as register_employees
from .overrides.controller import register as register_overrides
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(*, container: Optional[Container] = None) -> Flask:
    """Application factory.

    A prebuilt container (e.g. over in-memory repositories) skips all database setup.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_data(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            debounce_minutes=int(getattr(settings, "DEBOUNCE_MINUTES", DEBOUNCE_MINUTES)),
            day_bucket=DayBucketPolicy(getattr(settings, "TIMESHEET_DAY_BUCKET", DayBucketPolicy.PROCESSING_DAY.value)),
        )

    register_attendance(app, container)
    register_overrides(app, container)
    register_employees(app, container)
    register_reports(app, container)

    return app
