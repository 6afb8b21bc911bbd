"""Console logging for the board: level + tag prefix, key=value fields appended."""
from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("fourier_board")
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s][%(tag)s] %(message)s"))
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        tag = kwargs.pop("tag", "App")
        kwargs.setdefault("extra", {})["tag"] = tag
        return msg, kwargs


_logger_adapter = _TagAdapter(_logger, {})


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log `message` under `tag`, appending ``k=v`` pairs for any fields."""
    if fields:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        message = f"{message} | {extras}"
    level_val = getattr(logging, level.upper(), logging.INFO)
    _logger_adapter.log(level_val, message, tag=tag)


def set_log_level(level: str) -> None:
    """Set the board's log level (DEBUG/INFO/WARNING/ERROR)."""
    level_val = getattr(logging, (level or "INFO").upper(), logging.INFO)
    _logger.setLevel(level_val)


def get_log_level() -> str:
    return logging.getLevelName(_logger.level)
