from __future__ import annotations

import logging

from resumind.config import get_settings

# client libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "multipart")

_LOG_CONFIGURED = False


def configure_logging() -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    logging.getLogger("resumind").info("Logging configured (env=%s, level=%s)", settings.app_env, settings.log_level)
    _LOG_CONFIGURED = True
