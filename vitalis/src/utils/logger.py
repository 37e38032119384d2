"""
Vitalis - Logging Implementation
=================================
Provides a pre-configured logger factory for consistent, readable
log output across all Vitalis modules.

Logging verbosity is driven by ``settings.ENV``:
  • ``"dev"``  → DEBUG level  (maximum detail)
  • ``"prod"`` → WARNING level (errors & warnings only)
``settings.LOG_LEVEL`` overrides both when set.

Every record carries the request's correlation context (``session_id``
and pipeline ``stage``), bound with the ``correlation`` context manager.
The values live in ``contextvars`` so concurrent requests never see each
other's context.

Usage:
    from vitalis.src.utils.logger import correlation, get_logger
    logger = get_logger(__name__)
    with correlation(session_id="session_1", stage="EMBED"):
        logger.info("Something happened")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from vitalis.config.settings import settings

# ── Resolve default level from environment mode ───────────────────────
_ENV_LEVEL_MAP = {
    "dev": logging.DEBUG,
    "prod": logging.WARNING,
}
_DEFAULT_LEVEL = logging.getLevelName(settings.LOG_LEVEL.upper()) if settings.LOG_LEVEL else _ENV_LEVEL_MAP.get(settings.ENV, logging.INFO)
if not isinstance(_DEFAULT_LEVEL, int):
    _DEFAULT_LEVEL = logging.INFO

# ── Correlation context ───────────────────────────────────────────────
_session_id: ContextVar[str] = ContextVar("vitalis_session_id", default="-")
_stage: ContextVar[str] = ContextVar("vitalis_stage", default="-")


class CorrelationFilter(logging.Filter):
    """Stamp ``session_id`` and ``stage`` from the current context onto records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()
        record.stage = _stage.get()
        return True


@contextmanager
def correlation(session_id: str | None = None, stage: str | None = None) -> Iterator[None]:
    """
    Bind correlation fields for the duration of the ``with`` block.

    Fields left as *None* keep their current value, so a stage can be
    re-bound inside an outer session binding.
    """
    tokens = []
    if session_id is not None:
        tokens.append((_session_id, _session_id.set(session_id)))
    if stage is not None:
        tokens.append((_stage, _stage.set(stage)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def current_correlation() -> dict[str, str]:
    """Return the correlation fields bound in the current context."""
    return {"session_id": _session_id.get(), "stage": _stage.get()}


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Create and return a named logger with a standardised formatter.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit logging level override.
               If *None*, the level is derived from ``settings``.

    Returns:
        A configured ``logging.Logger`` instance.
    """
    resolved_level = level if level is not None else _DEFAULT_LEVEL
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers if the logger already exists
    if not logger.handlers:
        logger.setLevel(resolved_level)

        # ── Console Handler ────────────────────────────────────────────
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(resolved_level)
        console_handler.addFilter(CorrelationFilter())

        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | session=%(session_id)s stage=%(stage)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # Prevent log propagation to the root logger (avoids duplicates)
        logger.propagate = False

    return logger
