"""Snapshot codec: FactSnapshot <-> JSON document.

Document layout::

    {
      "system_info": {"os": ..., "arch": ..., "cpu": ..., "total_memory_gb": 31.2,
                      "python_version": "3.11.4"},
      "cuda_info": {"driver_version": "535.104.05", "cuda_version": "12.2",
                    "cudnn_version": "8.9.2",
                    "gpus": [{"name": "NVIDIA GeForce RTX 3090", "memory_gb": 24.0,
                              "compute_capability": "8.6"}]},
      "frameworks": {"tensorflow": "2.14.0", "pytorch": "2.1.0"},
      "timestamp": "2024-05-01T12:00:00.123456Z",
      "hostname": "gpu-box-01"
    }

Optional fields that were not detected are left out of the document, not
written as empty strings.  When decoding, an optional field may be absent or
``null``.  Required fields (``system_info`` and its ``os``/``arch``/``cpu``/
``total_memory_gb``, ``timestamp``, ``hostname``, and each GPU ``name``) are
never defaulted, and unknown fields are rejected.
"""

from __future__ import annotations

import json
import math
import os
import re
import stat
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cuda_doctor._exceptions import SnapshotDecodeError, SnapshotWriteError
from cuda_doctor._logging import get_logger
from cuda_doctor.snapshot.model import (
    CudaInfo,
    FactSnapshot,
    FrameworkInfo,
    GpuInfo,
    SystemInfo,
)

logger = get_logger(__name__)

_TOP_LEVEL_FIELDS = {"system_info", "cuda_info", "frameworks", "timestamp", "hostname"}
_SYSTEM_FIELDS = {"os", "arch", "cpu", "total_memory_gb", "python_version"}
_CUDA_FIELDS = {"driver_version", "cuda_version", "cudnn_version", "gpus"}
_GPU_FIELDS = {"name", "memory_gb", "compute_capability"}
_FRAMEWORK_FIELDS = {"tensorflow", "pytorch"}

# Fractional seconds of any precision (other writers emit nanoseconds).
_FRACTION_RE = re.compile(r"^(.*T\d{2}:\d{2}:\d{2})\.(\d+)(.*)$")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 UTC with a ``Z`` suffix, microseconds kept."""
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def to_dict(snapshot: FactSnapshot) -> Dict[str, Any]:
    system = snapshot.system_info
    cuda = snapshot.cuda_info
    return {
        "system_info": _drop_none({
            "os": system.os,
            "arch": system.arch,
            "cpu": system.cpu,
            "total_memory_gb": system.total_memory_gb,
            "python_version": system.python_version,
        }),
        "cuda_info": {
            **_drop_none({
                "driver_version": cuda.driver_version,
                "cuda_version": cuda.cuda_version,
                "cudnn_version": cuda.cudnn_version,
            }),
            "gpus": [
                _drop_none({
                    "name": gpu.name,
                    "memory_gb": gpu.memory_gb,
                    "compute_capability": gpu.compute_capability,
                })
                for gpu in cuda.gpus
            ],
        },
        "frameworks": _drop_none({
            "tensorflow": snapshot.frameworks.tensorflow,
            "pytorch": snapshot.frameworks.pytorch,
        }),
        "timestamp": format_timestamp(snapshot.timestamp),
        "hostname": snapshot.hostname,
    }


def encode(snapshot: FactSnapshot) -> bytes:
    """Serialize ``snapshot`` to UTF-8 JSON."""
    return json.dumps(to_dict(snapshot), indent=2).encode("utf-8") + b"\n"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _object(value: Any, where: str, allowed: set) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SnapshotDecodeError(f"{where}: expected an object, got {type(value).__name__}")
    unknown = sorted(set(value) - allowed)
    if unknown:
        raise SnapshotDecodeError(f"{where}: unknown field(s) {', '.join(unknown)}")
    return value


def _required(data: Dict[str, Any], key: str, where: str) -> Any:
    if data.get(key) is None:
        raise SnapshotDecodeError(f"{where}: missing required field '{key}'")
    return data[key]


def _string(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise SnapshotDecodeError(f"{where}: expected a string, got {type(value).__name__}")
    return value


def _optional_string(data: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = data.get(key)
    return None if value is None else _string(value, f"{where}.{key}")


def _number(value: Any, where: str) -> float:
    # bool is an int subclass; true/false are not sizes
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotDecodeError(f"{where}: expected a number, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError:
        raise SnapshotDecodeError(f"{where}: number out of range") from None
    if not math.isfinite(number):
        raise SnapshotDecodeError(f"{where}: expected a finite number, got {number}")
    return number


def _timestamp(value: Any) -> datetime:
    text = _string(value, "timestamp")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    match = _FRACTION_RE.match(text)
    if match:
        head, fraction, tail = match.groups()
        text = f"{head}.{(fraction + '000000')[:6]}{tail}"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        raise SnapshotDecodeError(f"timestamp: not an RFC 3339 date-time: {value!r}") from None
    if ts.tzinfo is None:
        raise SnapshotDecodeError(f"timestamp: missing UTC offset: {value!r}")
    return ts.astimezone(timezone.utc)


def _decode_gpu(value: Any, where: str) -> GpuInfo:
    data = _object(value, where, _GPU_FIELDS)
    memory = data.get("memory_gb")
    return GpuInfo(
        name=_string(_required(data, "name", where), f"{where}.name"),
        memory_gb=None if memory is None else _number(memory, f"{where}.memory_gb"),
        compute_capability=_optional_string(data, "compute_capability", where),
    )


def from_dict(document: Any) -> FactSnapshot:
    """Build a :class:`FactSnapshot` from parsed JSON, validating as it goes."""
    root = _object(document, "snapshot", _TOP_LEVEL_FIELDS)

    system = _object(_required(root, "system_info", "snapshot"), "system_info", _SYSTEM_FIELDS)
    system_info = SystemInfo(
        os=_string(_required(system, "os", "system_info"), "system_info.os"),
        arch=_string(_required(system, "arch", "system_info"), "system_info.arch"),
        cpu=_string(_required(system, "cpu", "system_info"), "system_info.cpu"),
        total_memory_gb=_number(_required(system, "total_memory_gb", "system_info"),
                                "system_info.total_memory_gb"),
        python_version=_optional_string(system, "python_version", "system_info"),
    )

    cuda_raw = root.get("cuda_info")
    cuda = {} if cuda_raw is None else _object(cuda_raw, "cuda_info", _CUDA_FIELDS)
    gpus_raw = cuda.get("gpus")
    if gpus_raw is None:
        gpus_raw = []
    if not isinstance(gpus_raw, list):
        raise SnapshotDecodeError("cuda_info.gpus: expected a list")
    cuda_info = CudaInfo(
        driver_version=_optional_string(cuda, "driver_version", "cuda_info"),
        cuda_version=_optional_string(cuda, "cuda_version", "cuda_info"),
        cudnn_version=_optional_string(cuda, "cudnn_version", "cuda_info"),
        gpus=tuple(_decode_gpu(gpu, f"cuda_info.gpus[{i}]") for i, gpu in enumerate(gpus_raw)),
    )

    frameworks_raw = root.get("frameworks")
    frameworks = ({} if frameworks_raw is None
                  else _object(frameworks_raw, "frameworks", _FRAMEWORK_FIELDS))
    framework_info = FrameworkInfo(
        tensorflow=_optional_string(frameworks, "tensorflow", "frameworks"),
        pytorch=_optional_string(frameworks, "pytorch", "frameworks"),
    )

    return FactSnapshot(
        system_info=system_info,
        cuda_info=cuda_info,
        frameworks=framework_info,
        timestamp=_timestamp(_required(root, "timestamp", "snapshot")),
        hostname=_string(_required(root, "hostname", "snapshot"), "hostname"),
    )


def decode(data: bytes) -> FactSnapshot:
    """Parse a snapshot document.

    Raises:
        SnapshotDecodeError: The bytes are not UTF-8 JSON, or the document
            does not describe a valid snapshot.
    """
    try:
        document = json.loads(data.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as exc:
        raise SnapshotDecodeError(f"not a valid JSON document: {exc}") from exc
    except RecursionError:
        raise SnapshotDecodeError("not a valid JSON document: nested too deeply") from None
    return from_dict(document)


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity are not JSON
    raise ValueError(f"non-standard constant {name}")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def save_snapshot(path: str, snapshot: FactSnapshot) -> None:
    """Write ``snapshot`` to ``path`` atomically (temp file + rename).

    Raises:
        SnapshotWriteError: The destination directory is not writable or the
            rename failed.  ``path`` is left as it was.
    """
    payload = encode(snapshot)
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        mode = _target_mode(path)
        fd, tmp_path = tempfile.mkstemp(prefix=".cuda-doctor-", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp always creates 0600
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise SnapshotWriteError(f"cannot write {path}: {exc}") from exc
    logger.debug("Snapshot written to %s (%d bytes)", path, len(payload))


def _target_mode(path: str) -> int:
    """Permissions for ``path``: kept if it exists, else what ``open()`` would give."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def load_snapshot(path: str) -> FactSnapshot:
    """Read and decode a snapshot file.

    Raises:
        SnapshotDecodeError: The file is unreadable or malformed.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise SnapshotDecodeError(f"cannot read {path}: {exc}") from exc
    return decode(data)
