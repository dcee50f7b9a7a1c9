"""
Process-wide logging for imghash.

- Rich console output for humans (default), or one JSON object per line.
- Optional rotating log file.
- Records are funnelled through a QueueHandler so that hashing threads never
  block on console or file I/O.

Usage:
    from logs import init_logging, get_logger

    init_logging(level="DEBUG")
    log = get_logger("imghash.cli")

Env vars (used when the matching argument is not given):
    IMGHASH_LOG_LEVEL   = DEBUG|INFO|WARNING|ERROR (default INFO)
    IMGHASH_LOG_JSON    = 0|1 (default 0)
    IMGHASH_LOG_TO_FILE = 0|1 (default 0)
    IMGHASH_LOG_FILE    = path to log file (default .imghash/logs/imghash.log)
"""

from __future__ import annotations

import atexit
import json
import logging
import os
import queue
import sys
from dataclasses import dataclass
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "imghash"
DEFAULT_LOG_FILE = Path(".imghash/logs/imghash.log")


@dataclass
class LogSettings:
    level: str = "INFO"
    json: bool = False
    to_file: bool = False
    file_path: Path = DEFAULT_LOG_FILE
    max_bytes: int = 2 * 1024 * 1024
    backup_count: int = 3

    @classmethod
    def resolve(
        cls,
        level: Optional[str],
        json: Optional[bool],
        to_file: Optional[bool],
        file_path: Optional[Path],
    ) -> "LogSettings":
        """Explicit arguments win over env vars, env vars over defaults."""
        return cls(
            level=(level or os.getenv("IMGHASH_LOG_LEVEL") or "INFO").upper(),
            json=json if json is not None else _env_flag("IMGHASH_LOG_JSON"),
            to_file=(
                to_file if to_file is not None else _env_flag("IMGHASH_LOG_TO_FILE")
            ),
            file_path=Path(
                file_path or os.getenv("IMGHASH_LOG_FILE") or DEFAULT_LOG_FILE
            ),
        )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0").strip() == "1"


_console = Console(stderr=True, highlight=False, soft_wrap=True)
_listener: Optional[QueueListener] = None


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, with stable keys for log ingestion."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "thread": record.threadName,
            "where": f"{record.filename}:{record.lineno}",
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _sinks(settings: LogSettings) -> List[logging.Handler]:
    sinks: List[logging.Handler] = []

    if settings.json:
        stream = logging.StreamHandler(stream=sys.stderr)
        stream.setFormatter(JsonLineFormatter())
        sinks.append(stream)
    else:
        rich_handler = RichHandler(
            console=_console, show_time=True, show_path=False, markup=True
        )
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        sinks.append(rich_handler)

    if settings.to_file:
        try:
            settings.file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                settings.file_path,
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            # File logging is optional; report on the console sink and go on.
            _console.print(f"[yellow]File logging disabled:[/] {exc}")
        else:
            file_handler.setFormatter(
                JsonLineFormatter()
                if settings.json
                else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            sinks.append(file_handler)

    return sinks


def init_logging(
    level: Optional[str] = None,
    *,
    json: Optional[bool] = None,
    to_file: Optional[bool] = None,
    file_path: Optional[Path] = None,
) -> None:
    """
    Configure the "imghash" logger tree. Idempotent: later calls only adjust
    the level.
    """
    global _listener

    settings = LogSettings.resolve(level, json, to_file, file_path)
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, settings.level, logging.INFO))

    if _listener is not None:
        return

    records: "queue.Queue[logging.LogRecord]" = queue.Queue(-1)
    root.addHandler(QueueHandler(records))
    root.propagate = False

    _listener = QueueListener(records, *_sinks(settings), respect_handler_level=True)
    _listener.start()
    atexit.register(shutdown_logging)

    logging.getLogger("PIL").setLevel(logging.WARNING)


def shutdown_logging() -> None:
    """Flush and stop the queue listener. Safe to call more than once."""
    global _listener
    if _listener is None:
        return
    _listener.stop()
    _listener = None
    root = logging.getLogger(ROOT_LOGGER)
    for handler in [h for h in root.handlers if isinstance(h, QueueHandler)]:
        root.removeHandler(handler)
    root.propagate = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Namespaced logger under "imghash". Modules call this at import time;
    init_logging() decides where the records go.
    """
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
