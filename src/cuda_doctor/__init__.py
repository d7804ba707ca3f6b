"""cuda-doctor: diagnose the NVIDIA GPU / CUDA / cuDNN / framework stack.

Architecture::

    ┌─────────────────────────────────────────────────────┐
    │  cuda_doctor.cli / cuda_doctor.doctor               │
    │  sweep report, export/import, sysinfo, validation   │
    ├─────────────────────────────────────────────────────┤
    │  cuda_doctor.snapshot / cuda_doctor.reconcile       │
    │  fact snapshots, JSON codec, snapshot comparison    │
    ├─────────────────────────────────────────────────────┤
    │  cuda_doctor.detect                                 │
    │  per-capability facades + platform strategy tables  │
    ├─────────────────────────────────────────────────────┤
    │  cuda_doctor.probe                                  │
    │  executor, ordered fallback chain, output parsers   │
    └─────────────────────────────────────────────────────┘

Nothing is installed or modified; every probe only reads.

Usage::

    from cuda_doctor import Detector, SnapshotBuilder, load_snapshot, reconcile

    detector = Detector()
    print(detector.cuda_toolkit_version())

    local = SnapshotBuilder(detector).build()
    for entry in reconcile(local, load_snapshot("baseline.json")):
        print(entry.label, entry.status.value)
"""

from __future__ import annotations

__version__ = "0.1.0"

from cuda_doctor._logging import set_log_level
from cuda_doctor.detect.facades import Detector
from cuda_doctor.reconcile import ReconcileStatus, ReconciliationEntry, reconcile
from cuda_doctor.snapshot.builder import SnapshotBuilder, build_snapshot
from cuda_doctor.snapshot.codec import decode, encode, load_snapshot, save_snapshot
from cuda_doctor.snapshot.model import FactSnapshot

__all__ = [
    "__version__",
    "Detector",
    "FactSnapshot",
    "ReconcileStatus",
    "ReconciliationEntry",
    "SnapshotBuilder",
    "build_snapshot",
    "decode",
    "encode",
    "load_snapshot",
    "reconcile",
    "save_snapshot",
    "set_log_level",
]
