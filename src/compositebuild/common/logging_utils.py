"""Logging helpers shared by every module.

Keeps log configuration in one place and provides small utilities for
structured DEBUG traces (``extra_context``), timing and credential-safe URLs.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from compositebuild.constants import Constants

_SECRET_PATTERN = re.compile(r"(?i)(password|token|secret|apikey|api_key)=([^&\s]+)")
_warned_once: set = set()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger.

    The level comes from the argument, then ``COMPOSITEBUILD_LOG_LEVEL``,
    then defaults to INFO. Safe to call more than once.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=Constants.LOG_FORMAT, level=level_value)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` payload, dropping fields that are None."""
    return {key: value for key, value in fields.items() if value is not None}


def warn_once(logger: logging.Logger, key: str, message: str, *args: Any) -> None:
    """Log a warning only the first time ``key`` is seen in this process."""
    if key in _warned_once:
        return
    _warned_once.add(key)
    logger.warning(message, *args)


def redact(text: str) -> str:
    """Mask secret looking query values inside ``text``."""
    if not text:
        return text
    return _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}=***", text)


def safe_url(url: str) -> str:
    """Return ``url`` without user info and with secret query values masked."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return redact(urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)))


class Timer:
    """Context manager measuring wall clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; running total while still inside the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
