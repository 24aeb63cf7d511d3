from __future__ import annotations

import logging
import os

import uvicorn
from fastapi import FastAPI

from ..core.config.loader import load_settings
from .api.app import create_app
from .runtime import build_observability, build_runtime


SETTINGS_ENV = "FORMATION_MCP_SETTINGS_PATH"
DEFAULT_SETTINGS_PATH = "config/settings.yaml"

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """App factory (`uvicorn --factory src.formation_mcp.entry:create_app_from_env`)."""
    settings_path = os.environ.get(SETTINGS_ENV, DEFAULT_SETTINGS_PATH)
    settings = load_settings(settings_path)
    build_observability(settings)
    return create_app(build_runtime(settings))


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings_path = os.environ.get(SETTINGS_ENV, DEFAULT_SETTINGS_PATH)
    settings = load_settings(settings_path)
    build_observability(settings)
    app = create_app(build_runtime(settings))

    logger.info("serving %s on %s:%d", settings.server.name, settings.server.host, settings.server.port)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":  # pragma: no cover
    main()
