from __future__ import annotations
import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def _json_formatter(record: logging.LogRecord) -> str:
    base = {
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
        "time": getattr(record, "asctime", None),
    }
    extra = getattr(record, "extra", None)
    if isinstance(extra, dict):
        base.update(extra)
    if record.exc_info:
        base["exc"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def setup_logging(level: str = "INFO", logs_dir: Optional[Path] = None) -> logging.Logger:
    """
    Настройка логов:
      - консоль (stderr)
      - файл {logs_dir}/astra.log (ротация), если logs_dir задан
    JSON формат, чтобы легко парсить.
    """
    logger = logging.getLogger("astra_sdk")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    stream_h = logging.StreamHandler()
    stream_h.setFormatter(JsonFormatter())
    stream_h.setLevel(logger.level)
    logger.addHandler(stream_h)

    logfile = None
    if logs_dir is not None:
        logs_dir = Path(logs_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        logfile = logs_dir / "astra.log"
        file_h = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        file_h.setFormatter(JsonFormatter())
        file_h.setLevel(logger.level)
        logger.addHandler(file_h)

    logger.propagate = False
    logger.debug("logging.initialized", extra={"extra": {"logfile": str(logfile) if logfile else None}})
    return logger
