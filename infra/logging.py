"""
Centralized Logging
-------------------
Every record under the "aac" namespace carries the id of the
conversation turn it belongs to, so routing, tool calls and spend for
one user message can be stitched back together.

- Console: Rich, human readable
- File: JSON lines, one object per record, rotated at 10 MB
- Severity: INFO=state, WARNING=recoverable, ERROR=anomaly

Usage:
    from infra.logging import get_logger, TurnContext, log_turn_end

    logger = get_logger("routing")

    with TurnContext() as turn_id:
        logger.info("Routing message")
        log_turn_end(turn_id, success=True, tools_executed=1, total_cost=0.0004)
"""

from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional
import contextvars
import json
import logging
import uuid

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "aac"
LOG_FILE_NAME = "assistant.log"
MAX_LOG_BYTES = 10 * 1024 * 1024

_current_turn: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("aac_turn_id", default=None)


def generate_turn_id() -> str:
    return f"turn_{uuid.uuid4().hex[:12]}"


def get_turn_id() -> Optional[str]:
    """Turn id of the running task, if it is inside a TurnContext."""
    return _current_turn.get()


class TurnContext:
    """
    Scopes a conversation turn. Nested scopes restore the outer id on exit;
    concurrent tasks each see their own.
    """

    def __init__(self, turn_id: Optional[str] = None):
        self.turn_id = turn_id or generate_turn_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _current_turn.set(self.turn_id)
        return self.turn_id

    def __exit__(self, *exc) -> None:
        if self._token is not None:
            _current_turn.reset(self._token)
            self._token = None


class TurnIdFilter(logging.Filter):
    """Stamps records with the current turn id unless one was passed in `extra`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "turn_id", None) is None:
            record.turn_id = get_turn_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the structured extras the assistant emits."""

    EXTRA_FIELDS = (
        "tool_name",
        "execution_time_ms",
        "success",
        "tools_executed",
        "error_category",
        "message_class",
        "latency_ms",
        "total_cost",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "turn_id": getattr(record, "turn_id", "-"),
            "message": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in self.EXTRA_FIELDS if hasattr(record, key)})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(turn_id)s] %(name)s: %(message)s"))
    return handler


def _file_handler(log_dir: Optional[str]) -> logging.Handler:
    directory = Path(log_dir or "logs")
    directory.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        directory / LOG_FILE_NAME,
        maxBytes=MAX_LOG_BYTES,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JSONFormatter())
    return handler


_configured = False


def configure_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    console: bool = True,
    file: bool = False,
    force: bool = False,
) -> None:
    """
    Install handlers on the "aac" logger.

    Called once by the entry point; library code never configures
    logging itself. A second call is a no-op unless `force` is set.

    Args:
        level: Console level (the file always receives DEBUG)
        log_dir: Directory for assistant.log (default ./logs)
        console: Rich output on stderr
        file: JSON-lines output
        force: Replace handlers installed by an earlier call
    """
    global _configured

    if _configured and not force:
        return

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(min(level, logging.DEBUG) if file else level)
    logger.handlers.clear()

    handlers = []
    if console:
        handlers.append(_console_handler(level))
    if file:
        handlers.append(_file_handler(log_dir))

    turn_filter = TurnIdFilter()
    for handler in handlers:
        handler.addFilter(turn_filter)
        logger.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger under the "aac" namespace ('routing' becomes 'aac.routing')."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_turn_end(
    turn_id: str,
    success: bool,
    tools_executed: int = 0,
    total_cost: Optional[float] = None,
    error: Optional[str] = None,
) -> None:
    """
    TURN_END boundary event: one per conversation turn, carrying what
    billing and post-mortems need (outcome, tool count, spend).
    """
    extra: Dict[str, Any] = {"turn_id": turn_id, "success": success, "tools_executed": tools_executed}
    details = [f"success={success}"]

    if success:
        details.append(f"tools_executed={tools_executed}")
    else:
        details.append(f"error={error or 'Unknown'}")

    if total_cost is not None:
        extra["total_cost"] = total_cost
        details.append(f"cost=${total_cost:.6f}")

    get_logger("turn").log(
        logging.INFO if success else logging.ERROR,
        "TURN_END: " + ", ".join(details),
        extra=extra,
    )
