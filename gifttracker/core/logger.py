import logging
from pathlib import Path

from gifttracker.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _build_handlers(root: logging.Logger) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if not root.handlers:
        handlers.append(logging.StreamHandler())
    if settings.log_file:
        path = Path(settings.log_file).resolve()
        already_attached = any(
            getattr(handler, "baseFilename", None) == str(path) for handler in root.handlers
        )
        if not already_attached:
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def configure_logging() -> logging.Logger:
    """Attach the household service handlers once and return the ``gifttracker`` logger."""
    level = logging.getLevelName((settings.log_level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in _build_handlers(root):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    app_logger = logging.getLogger("gifttracker")
    app_logger.setLevel(level)
    return app_logger
