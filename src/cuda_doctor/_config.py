"""Runtime configuration read from environment variables.

cuda-doctor has no configuration file; like the log level, everything that
can be tuned is an environment variable so CI jobs and container images can
set it without touching command lines.

+------------------------------+----------------------+---------------------------+
| Variable                     | Default              | Meaning                   |
+==============================+======================+===========================+
| CUDA_DOCTOR_PROBE_TIMEOUT    | 30                   | seconds per probe attempt |
| CUDA_DOCTOR_PYTHON           | python,python3       | interpreters to introspect|
| CUDA_DOCTOR_PIP              | pip,pip3             | pip commands to query     |
+------------------------------+----------------------+---------------------------+
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from cuda_doctor._logging import get_logger

logger = get_logger(__name__)

_ENV_PROBE_TIMEOUT = "CUDA_DOCTOR_PROBE_TIMEOUT"
_ENV_PYTHON = "CUDA_DOCTOR_PYTHON"
_ENV_PIP = "CUDA_DOCTOR_PIP"

DEFAULT_PROBE_TIMEOUT = 30.0
DEFAULT_PYTHON_COMMANDS: Tuple[str, ...] = ("python", "python3")
DEFAULT_PIP_COMMANDS: Tuple[str, ...] = ("pip", "pip3")


@dataclass(frozen=True)
class DoctorConfig:
    """Tunables shared by the probe executor and the detection facades."""
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    python_commands: Tuple[str, ...] = DEFAULT_PYTHON_COMMANDS
    pip_commands: Tuple[str, ...] = DEFAULT_PIP_COMMANDS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DoctorConfig":
        """Build a config from ``environ`` (defaults to :data:`os.environ`).

        Invalid values are logged and replaced by their defaults rather than
        aborting a diagnostic run.
        """
        env = os.environ if environ is None else environ
        return cls(
            probe_timeout=_parse_timeout(env.get(_ENV_PROBE_TIMEOUT, "")),
            python_commands=_parse_list(env.get(_ENV_PYTHON, ""), DEFAULT_PYTHON_COMMANDS),
            pip_commands=_parse_list(env.get(_ENV_PIP, ""), DEFAULT_PIP_COMMANDS),
        )


def _parse_timeout(raw: str) -> float:
    raw = raw.strip()
    if not raw:
        return DEFAULT_PROBE_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number, using %ss", _ENV_PROBE_TIMEOUT, raw,
                       DEFAULT_PROBE_TIMEOUT)
        return DEFAULT_PROBE_TIMEOUT
    if not math.isfinite(value) or value <= 0:
        logger.warning("%s must be a positive finite number, using %ss", _ENV_PROBE_TIMEOUT,
                       DEFAULT_PROBE_TIMEOUT)
        return DEFAULT_PROBE_TIMEOUT
    return value


def _parse_list(raw: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default
