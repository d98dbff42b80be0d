"""
Centralized logging configuration.

Модули движка используют logging.getLogger(__name__) и не настраивают
handlers сами; setup_logging вызывается один раз приложением-хостом.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from hanbuy.settings import Settings

ROOT_LOGGER_NAME = "hanbuy"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Стандартные атрибуты LogRecord, не попадающие в extra
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON formatter для structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra поля
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str | None = None,
    use_json: bool | None = None,
    settings: Settings | None = None,
) -> logging.Logger:
    """
    Настройка логгера пакета hanbuy.

    Args:
        level: Уровень логирования (default из settings)
        use_json: JSON формат (default из settings.log_format)
        settings: Источник defaults (default Settings())

    Returns:
        Настроенный корневой логгер пакета
    """
    if level is None or use_json is None:
        settings = settings or Settings()
        level = level or settings.log_level
        use_json = use_json if use_json is not None else settings.log_format == "json"

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Повторный вызов не дублирует handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if use_json else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)

    return logger
