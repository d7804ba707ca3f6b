"""Logging for cuda-doctor.

Each detection attempt is logged at DEBUG under the ``cuda_doctor`` logger: the
command line, what it printed and why the strategy was discarded.  A normal
run prints nothing.  ``--verbose`` (or ``CUDA_DOCTOR_LOG_LEVEL=DEBUG``) shows
the whole trail on stderr, apart from the report on stdout.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_ROOT = "cuda_doctor"
_ENV_LOG_LEVEL = "CUDA_DOCTOR_LOG_LEVEL"

_FORMAT = "[cuda-doctor] %(levelname)s %(name)s: %(message)s"
# DEBUG adds timestamps to the command trail
_DEBUG_FORMAT = "[cuda-doctor %(asctime)s] %(levelname)s %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def _level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def _apply(level: int) -> None:
    global _handler  # noqa: PLW0603
    root = logging.getLogger(_ROOT)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        root.addHandler(_handler)
    _handler.setFormatter(logging.Formatter(_DEBUG_FORMAT if level <= logging.DEBUG else _FORMAT))
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """``logging.getLogger(name)``, with the ``cuda_doctor`` stderr handler installed."""
    if _handler is None:
        _apply(_level(os.environ.get(_ENV_LOG_LEVEL, "")))
    return logging.getLogger(name)


def set_log_level(level: Optional[str] = None) -> None:
    """Set the ``cuda_doctor`` level by name (``"DEBUG"``, ``"error"``, ...).

    ``None`` goes back to ``CUDA_DOCTOR_LOG_LEVEL``, or WARNING when unset.
    Unknown names also mean WARNING.
    """
    if level is None:
        level = os.environ.get(_ENV_LOG_LEVEL, "")
    _apply(_level(level))
