import logging

from app.core import config

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the root handler on first use."""
    global _configured
    if not _configured:
        logging.basicConfig(
            level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        _configured = True
    return logging.getLogger(name)
