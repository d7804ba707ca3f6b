"""Reconciler: field-by-field comparison of two fact snapshots.

Typical use is ``cuda-doctor --import baseline.json``: a snapshot exported
on a known-good machine (the *remote*) is compared against a snapshot built
now (the *local*).

Version tokens are compared by exact string equality.  Different sources
report the same toolkit as ``12.2``, ``12.2.140`` or ``V12.2.91``, so
numeric ordering would be false precision; an honest "different" is more
useful than a wrong "older".

+-----------------+-----------------+--------------+
| local           | remote          | status       |
+=================+=================+==============+
| a               | a               | MATCH        |
| a               | b               | MISMATCH     |
| a               | absent          | LOCAL_ONLY   |
| absent          | b               | REMOTE_ONLY  |
| absent          | absent          | BOTH_ABSENT  |
+-----------------+-----------------+--------------+
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from cuda_doctor.snapshot.model import FactSnapshot


class ReconcileStatus(enum.Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    LOCAL_ONLY = "local-only"
    REMOTE_ONLY = "remote-only"
    BOTH_ABSENT = "both-absent"


@dataclass(frozen=True)
class ReconciliationEntry:
    """Classification of one field; both literal values are kept for display."""
    field: str
    label: str
    local: Optional[str]
    remote: Optional[str]
    status: ReconcileStatus


def _gpu_names(snapshot: FactSnapshot) -> Optional[str]:
    return ", ".join(gpu.name for gpu in snapshot.cuda_info.gpus) or None


# Fixed checklist: system, then driver, toolkit, library, frameworks.
TRACKED_FIELDS: Tuple[Tuple[str, str, Callable[[FactSnapshot], Optional[str]]], ...] = (
    ("os", "Operating system", lambda s: s.system_info.os),
    ("arch", "Architecture", lambda s: s.system_info.arch),
    ("python_version", "Python", lambda s: s.system_info.python_version),
    ("gpus", "GPUs", _gpu_names),
    ("driver_version", "Driver", lambda s: s.cuda_info.driver_version),
    ("cuda_version", "CUDA", lambda s: s.cuda_info.cuda_version),
    ("cudnn_version", "cuDNN", lambda s: s.cuda_info.cudnn_version),
    ("tensorflow", "TensorFlow", lambda s: s.frameworks.tensorflow),
    ("pytorch", "PyTorch", lambda s: s.frameworks.pytorch),
)


def classify(local: Optional[str], remote: Optional[str]) -> ReconcileStatus:
    """Classify one ``(local, remote)`` pair.  ``None`` means absent."""
    if local is not None and remote is not None:
        return ReconcileStatus.MATCH if local == remote else ReconcileStatus.MISMATCH
    if local is not None:
        return ReconcileStatus.LOCAL_ONLY
    if remote is not None:
        return ReconcileStatus.REMOTE_ONLY
    return ReconcileStatus.BOTH_ABSENT


def reconcile(local: FactSnapshot, remote: FactSnapshot) -> List[ReconciliationEntry]:
    """Compare two snapshots over :data:`TRACKED_FIELDS`, in checklist order."""
    entries = []
    for name, label, getter in TRACKED_FIELDS:
        local_value, remote_value = getter(local), getter(remote)
        entries.append(ReconciliationEntry(name, label, local_value, remote_value,
                                           classify(local_value, remote_value)))
    return entries


def summarize(entries: List[ReconciliationEntry]) -> Dict[ReconcileStatus, int]:
    """Count entries per status (every status present, zero if unused)."""
    counts = {status: 0 for status in ReconcileStatus}
    for entry in entries:
        counts[entry.status] += 1
    return counts
