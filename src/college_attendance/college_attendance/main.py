from __future__ import annotations

import importlib
import logging
import signal
import threading
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .alerts.controller import register as register_alerts
from .alerts.scheduler import run_scheduler
from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .schedules.controller import register as register_schedules

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def load_settings():
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def _container_from_settings(settings) -> Container:
    db_config = getattr(settings, "DB_CONFIG")
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    return build_container(db_config=db_config, settings=settings)


def create_app(container: Optional[Container] = None) -> Flask:
    settings = load_settings()
    debug = bool(getattr(settings, "DEBUG", False))
    configure_logging(debug)

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = debug

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings.__name__,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        container = _container_from_settings(settings)

    app.extensions["container"] = container

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok", "time": container.clock.now().isoformat()}), 200

    register_attendance(app, container)
    register_schedules(app, container)
    register_alerts(app, container)

    return app


def run_jobs() -> None:
    """Console entry point: run the recurring notification jobs until SIGINT/SIGTERM."""
    settings = load_settings()
    configure_logging(bool(getattr(settings, "DEBUG", False)))
    container = _container_from_settings(settings)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    try:
        run_scheduler(container, stop, settings=settings)
    finally:
        container.close()
