from __future__ import annotations

import importlib
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask

from .checkin.controller import register as register_checkin
from .common.logging import configure_logging, get_logger
from .config import get_settings_module
from .container import build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables, seed_memory
from .database.memory_base import MemoryDatabase
from .sessions.controller import register as register_sessions
from .stats.controller import register as register_stats

logger = get_logger(__name__)


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config.from_object(settings)
    if overrides:
        app.config.update(overrides)
    app.secret_key = app.config["SECRET_KEY"]

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    backend = str(app.config.get("STORAGE_BACKEND", "mysql")).lower()
    db_config = dict(app.config.get("DB_CONFIG") or {})
    logger.info(
        "settings=%s backend=%s db=%s@%s:%s/%s",
        settings_module, backend,
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    memory_db = None
    if backend == "memory":
        memory_db = MemoryDatabase()
        if app.config.get("AUTO_SEED_DB"):
            seed_memory(memory_db)
    else:
        if app.config.get("AUTO_INIT_DB"):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if app.config.get("AUTO_SEED_DB"):
            apply_seed_sql(db_config)

    container = build_container(
        db_config=db_config,
        backend=backend,
        memory_db=memory_db,
        default_late_after_minutes=int(app.config.get("DEFAULT_LATE_AFTER_MINUTES", 15)),
    )
    app.extensions["container"] = container

    register_checkin(app, container)
    register_sessions(app, container)
    register_stats(app, container)

    return app
