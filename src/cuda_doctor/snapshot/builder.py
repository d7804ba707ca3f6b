"""Fact snapshot builder: one full detection pass over the machine."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from cuda_doctor._logging import get_logger
from cuda_doctor.detect.facades import Detector
from cuda_doctor.snapshot.model import CudaInfo, FactSnapshot, FrameworkInfo
from cuda_doctor.snapshot.system import SystemInfoReader

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotBuilder:
    """Invokes every detection facade once and assembles a :class:`FactSnapshot`.

    A capability that is not detected is recorded as ``None``; building a
    snapshot cannot fail.

    Args:
        detector: Detection facades; defaults to one for the running platform.
        system_reader: Source of host facts and the hostname.
        clock: Returns the snapshot timestamp (timezone-aware UTC).
    """

    def __init__(self, detector: Optional[Detector] = None,
                 system_reader: Optional[SystemInfoReader] = None,
                 clock: Optional[Callable[[], datetime]] = None) -> None:
        self.detector = detector or Detector()
        self.system_reader = system_reader or SystemInfoReader()
        self.clock = clock or _utc_now

    def build(self) -> FactSnapshot:
        detector = self.detector
        cuda_info = CudaInfo(
            driver_version=detector.driver_version(),
            cuda_version=detector.cuda_toolkit_version(),
            cudnn_version=detector.cudnn_version(),
            gpus=tuple(detector.gpu_devices()),
        )
        frameworks = FrameworkInfo(
            tensorflow=detector.tensorflow_version(),
            pytorch=detector.pytorch_version(),
        )
        snapshot = FactSnapshot(
            system_info=self.system_reader.read(),
            cuda_info=cuda_info,
            frameworks=frameworks,
            timestamp=self.clock().astimezone(timezone.utc),
            hostname=self.system_reader.hostname(),
        )
        logger.debug("Built snapshot for %s: detected %s", snapshot.hostname,
                     ", ".join(snapshot.detected_capabilities()) or "nothing")
        return snapshot


def build_snapshot(detector: Optional[Detector] = None) -> FactSnapshot:
    """Convenience wrapper: ``SnapshotBuilder(detector).build()``."""
    return SnapshotBuilder(detector=detector).build()
