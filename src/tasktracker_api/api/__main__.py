"""
tasktracker_api.api.__main__

`python -m tasktracker_api.api` / `tasktracker-api` console entrypoint.
"""

from __future__ import annotations

import uvicorn

from tasktracker_api.api.app import create_app
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.settings import get_settings

log = get_logger(__name__)


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)
    log.info("serving", host=settings.api_host, port=settings.api_port, env=settings.env)

    # structlog owns log formatting; RequestContextMiddleware emits the access line.
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    main()
