"""Capability parsers: raw probe output -> normalized token.

Every parser is a pure function that returns the normalized value or
``None``.  ``None`` means "this strategy told us nothing" and the chain moves
on to the next strategy, so a parser must reject anything it cannot read
completely.  Half a version (e.g. a cuDNN header with only two of the three
``#define`` lines) is a rejection, never a partial token.

Output shapes handled here:

- free-text one-liners (``python -c "import torch; print(torch.__version__)"``)
- key:value listings (``pip show``)
- whitespace tables (``conda list``)
- ``nvcc --version`` banners and CUDA ``version.txt`` / ``version.json``
- C preprocessor headers (``cudnn_version.h``)
- ``nvidia-smi --format=csv,noheader`` rows and the ``topo -m`` matrix
- adapter listings (``lspci``, ``wmic``, ``system_profiler``, ``nvidia-smi -L``)
"""

from __future__ import annotations

import json
import re
from typing import Callable, List, Optional, Tuple

from cuda_doctor.snapshot.model import GpuInfo, GpuStatus

# A normalized version token: starts with a digit (optionally ``v``),
# no whitespace.  Covers "12.2", "2.1.0+cu121", "8902", "535.104.05".
_TOKEN_RE = re.compile(r"^[vV]?\d[0-9A-Za-z.+_\-]*$")

# Output fragments that mean "the thing you asked about is not there", even
# when the rest of the output happens to contain version-shaped text.
_NOT_FOUND_SENTINELS = (
    "not found",
    "no module named",
    "modulenotfounderror",
    "importerror",
    "traceback (most recent call last)",
    "packagesnotfounderror",
)

_DIAGNOSTIC_RES = (
    re.compile(r"^(warning|warn|info|debug|note|error)\b", re.IGNORECASE),
    re.compile(r"^[IWEF]\d{4}\s"),                               # glog (TensorFlow, XLA)
    re.compile(r"^\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2}"),      # timestamped log lines
    re.compile(r"\b\w*Warning:"),                                # Python warnings
    re.compile(r"^warnings\.warn\("),
)

_NA_VALUES = {"", "[n/a]", "n/a", "[not supported]"}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def is_version_token(text: str) -> bool:
    """True if ``text`` is a complete normalized version token."""
    return bool(_TOKEN_RE.match(text))


def has_not_found_sentinel(text: str) -> bool:
    lowered = text.lower()
    return any(sentinel in lowered for sentinel in _NOT_FOUND_SENTINELS)


def _is_diagnostic(line: str) -> bool:
    return any(pattern.search(line) for pattern in _DIAGNOSTIC_RES)


def _content_lines(text: str) -> List[str]:
    """Stripped, non-blank lines of ``text``."""
    return [line.strip() for line in text.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# Free text
# ---------------------------------------------------------------------------


def parse_plain_version(text: str) -> Optional[str]:
    """Parse the stdout of a runtime introspection one-liner.

    Blank lines and diagnostic lines (warnings, framework log lines) are
    ignored.  Exactly one distinct version-shaped line must remain; two
    different candidates are ambiguous and rejected.
    """
    if has_not_found_sentinel(text):
        return None
    candidates = []
    for line in _content_lines(text):
        if _is_diagnostic(line) or not is_version_token(line):
            continue
        if line not in candidates:
            candidates.append(line)
    if len(candidates) != 1:
        return None
    return candidates[0]


# ---------------------------------------------------------------------------
# Package managers
# ---------------------------------------------------------------------------


def parse_pip_show(text: str) -> Optional[str]:
    """Extract ``Version:`` from ``pip show <package>`` output."""
    if has_not_found_sentinel(text):
        return None
    for line in _content_lines(text):
        key, sep, value = line.partition(":")
        if sep and key.strip() == "Version":
            value = value.strip()
            return value if is_version_token(value) else None
    return None


def conda_list_parser(package: str) -> Callable[[str], Optional[str]]:
    """Build a parser for ``conda list <package>`` output.

    ``conda list torch`` also lists ``torchvision`` and friends, so the row's
    first column must equal ``package`` exactly.
    """

    def parse(text: str) -> Optional[str]:
        if has_not_found_sentinel(text):
            return None
        for line in _content_lines(text):
            if line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) >= 2 and parts[0] == package:
                return parts[1] if is_version_token(parts[1]) else None
        return None

    parse.__name__ = f"parse_conda_list_{package}"
    return parse


# ---------------------------------------------------------------------------
# CUDA toolkit
# ---------------------------------------------------------------------------

# Tried in order: "release 12.2" first, then the "V12.2.140" build string.
_NVCC_PATTERNS = (
    re.compile(r"release (\d+\.\d+)"),
    re.compile(r"V(\d+\.\d+\.\d+)"),
)

_CUDA_VERSION_TXT_RE = re.compile(r"CUDA Version (\d+\.\d+)")


def parse_nvcc_version(text: str) -> Optional[str]:
    """Parse ``nvcc --version``."""
    for pattern in _NVCC_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def parse_cuda_version_file(text: str) -> Optional[str]:
    """Parse the legacy ``<cuda>/version.txt`` (``CUDA Version 10.2.89``)."""
    match = _CUDA_VERSION_TXT_RE.search(text)
    return match.group(1) if match else None


def parse_cuda_version_json(text: str) -> Optional[str]:
    """Parse ``<cuda>/version.json`` shipped since CUDA 11.1."""
    try:
        data = json.loads(text)
    except ValueError:
        return None
    cuda = data.get("cuda") if isinstance(data, dict) else None
    version = cuda.get("version") if isinstance(cuda, dict) else None
    if isinstance(version, str) and is_version_token(version.strip()):
        return version.strip()
    return None


# ---------------------------------------------------------------------------
# cuDNN headers
# ---------------------------------------------------------------------------

_CUDNN_DIRECTIVES = ("CUDNN_MAJOR", "CUDNN_MINOR", "CUDNN_PATCHLEVEL")


def _define_value(text: str, name: str) -> Optional[str]:
    match = re.search(rf"^[ \t]*#[ \t]*define[ \t]+{name}[ \t]+(\d+)\b", text, re.MULTILINE)
    return match.group(1) if match else None


def parse_cudnn_header(text: str) -> Optional[str]:
    """Join ``CUDNN_MAJOR.CUDNN_MINOR.CUDNN_PATCHLEVEL`` from a header.

    Each directive is located on its own; their order in the file does not
    matter.  All three must be present.
    """
    parts = [_define_value(text, name) for name in _CUDNN_DIRECTIVES]
    if any(part is None for part in parts):
        return None
    return ".".join(parts)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# NVIDIA driver / nvidia-smi
# ---------------------------------------------------------------------------

_PROC_DRIVER_RE = re.compile(r"Kernel Module(?: for \S+)?\s+(\d+(?:\.\d+)+)")


def parse_csv_first_field(text: str) -> Optional[str]:
    """First column of ``--format=csv,noheader`` output.

    One row per GPU; all rows must agree (the driver version is per machine).
    """
    values = []
    for line in _content_lines(text):
        value = line.split(",")[0].strip()
        if value not in values:
            values.append(value)
    if len(values) != 1 or not is_version_token(values[0]):
        return None
    return values[0]


def parse_driver_proc_file(text: str) -> Optional[str]:
    """Parse ``/proc/driver/nvidia/version``."""
    match = _PROC_DRIVER_RE.search(text)
    return match.group(1) if match else None


def _optional_field(parts: List[str], index: int) -> Optional[str]:
    if index >= len(parts) or parts[index].lower() in _NA_VALUES:
        return None
    return parts[index]


def parse_gpu_csv(text: str) -> Optional[Tuple[GpuInfo, ...]]:
    """Parse ``nvidia-smi --query-gpu=name,memory.total[,compute_cap]`` rows.

    Memory is reported in MiB (``nounits``) and converted to GiB.  Fields
    reported as ``[N/A]`` become ``None``.  No rows at all is ``None``.
    """
    gpus = []
    for line in _content_lines(text):
        parts = [part.strip() for part in line.split(",")]
        if len(parts) < 2 or not parts[0]:
            continue
        memory = _optional_field(parts, 1)
        try:
            memory_gb = float(memory) / 1024.0 if memory is not None else None
        except ValueError:
            memory_gb = None
        gpus.append(GpuInfo(name=parts[0], memory_gb=memory_gb,
                            compute_capability=_optional_field(parts, 2)))
    return tuple(gpus) or None

_STATUS_COLUMNS = 10


def parse_gpu_status(text: str) -> Optional[Tuple[GpuStatus, ...]]:
    """Parse the ten-column ``--query-gpu=index,name,memory.*,utilization.*,...`` rows.

    Rows with fewer columns are skipped; no complete row at all is ``None``.
    """
    statuses = []
    for line in _content_lines(text):
        parts = [part.strip() for part in line.split(",")]
        if len(parts) < _STATUS_COLUMNS or not parts[1]:
            continue
        readings = [_optional_field(parts, i) for i in range(2, _STATUS_COLUMNS)]
        statuses.append(GpuStatus(parts[0], parts[1], *readings))
    return tuple(statuses) or None


def parse_topology(text: str, max_lines: int = 10) -> Optional[str]:
    """First ``max_lines`` lines of ``nvidia-smi topo -m``; must start with the GPU header."""
    lines = [line.rstrip() for line in text.splitlines()[:max_lines] if line.strip()]
    if not lines or "GPU0" not in lines[0]:
        return None
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Adapter listings
# ---------------------------------------------------------------------------

_SMI_LIST_RE = re.compile(r"^GPU \d+:\s*(.+?)(?:\s*\(UUID:.*\))?$")


def nvidia_device_lines(text: str) -> Optional[str]:
    """NVIDIA adapter lines from ``lspci``, ``wmic`` or ``system_profiler``."""
    lines = [
        line for line in _content_lines(text)
        if "nvidia" in line.lower() and "audio" not in line.lower()
    ]
    return ", ".join(lines) or None


def parse_smi_list(text: str) -> Optional[str]:
    """Device names from ``nvidia-smi -L``."""
    names = []
    for line in _content_lines(text):
        match = _SMI_LIST_RE.match(line)
        if match:
            names.append(match.group(1))
    return ", ".join(names) or None
