"""Shared test fixtures for cuda-doctor.

Detection is exercised without a GPU, a CUDA toolkit or any framework
installed: a :class:`FakeExecutor` stands in for the probe executor and
answers only the strategies a test scripts, so every other strategy is a
plain failure, just as on a bare machine.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from cuda_doctor._config import DoctorConfig
from cuda_doctor._logging import set_log_level
from cuda_doctor.detect.facades import Detector
from cuda_doctor.probe.executor import ProbeResult, Strategy
from cuda_doctor.snapshot.model import (
    CudaInfo,
    FactSnapshot,
    FrameworkInfo,
    GpuInfo,
    SystemInfo,
)


class FakeExecutor:
    """Answers strategies by label (or joined argv for ``run_command``).

    Args:
        outputs: ``label -> stdout`` for strategies that should succeed.
    """

    def __init__(self, outputs: Optional[Dict[str, str]] = None) -> None:
        self.outputs = dict(outputs or {})
        self.calls: List[str] = []

    def execute(self, strategy: Strategy) -> ProbeResult:
        self.calls.append(strategy.label)
        if strategy.label in self.outputs:
            return ProbeResult.success(self.outputs[strategy.label])
        return ProbeResult.failure("not scripted")

    def run_command(self, argv: Tuple[str, ...]) -> ProbeResult:
        key = " ".join(argv)
        self.calls.append(key)
        if key in self.outputs:
            return ProbeResult.success(self.outputs[key])
        return ProbeResult.failure("not scripted")


class FakeSystemReader:
    """Fixed host facts."""

    def __init__(self, hostname: str = "gpu-box-01") -> None:
        self._hostname = hostname

    def read(self) -> SystemInfo:
        return SystemInfo(os="Ubuntu 22.04.3 LTS", arch="x86_64",
                          cpu="AMD Ryzen 9 5950X 16-Core Processor",
                          total_memory_gb=62.7, python_version="3.11.4")

    def hostname(self) -> str:
        return self._hostname

    def details(self) -> Dict[str, str]:
        return {"Kernel": "6.5.0-14-generic"}


def make_detector(outputs: Optional[Dict[str, str]] = None,
                  platform_name: str = "linux",
                  environ: Optional[Dict[str, str]] = None) -> Detector:
    """A Linux detector whose probes only succeed where scripted."""
    return Detector(platform_name=platform_name,
                    executor=FakeExecutor(outputs),  # type: ignore[arg-type]
                    config=DoctorConfig(),
                    environ=environ or {})


FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_log_level():
    """``--verbose`` raises the log level globally; restore it after each test."""
    yield
    set_log_level(None)


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def system_reader() -> FakeSystemReader:
    return FakeSystemReader()


@pytest.fixture
def full_snapshot() -> FactSnapshot:
    """A snapshot of a fully provisioned workstation."""
    return FactSnapshot(
        system_info=FakeSystemReader().read(),
        cuda_info=CudaInfo(
            driver_version="535.104.05",
            cuda_version="12.2",
            cudnn_version="8.9.2",
            gpus=(GpuInfo("NVIDIA GeForce RTX 3090", 24.0, "8.6"),),
        ),
        frameworks=FrameworkInfo(tensorflow="2.14.0", pytorch="2.1.0+cu121"),
        timestamp=FIXED_TIME,
        hostname="gpu-box-01",
    )


@pytest.fixture
def empty_snapshot() -> FactSnapshot:
    """A snapshot of a CPU-only machine: every capability absent."""
    return FactSnapshot(
        system_info=SystemInfo(os="macOS 14.2", arch="arm64", cpu="Apple M2",
                               total_memory_gb=16.0),
        cuda_info=CudaInfo(),
        frameworks=FrameworkInfo(),
        timestamp=FIXED_TIME,
        hostname="laptop",
    )


@pytest.fixture
def detector_with():
    """Factory fixture: ``detector_with({label: stdout}, platform_name=...)``."""
    return make_detector
