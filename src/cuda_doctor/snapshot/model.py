"""Fact snapshot data model.

A snapshot is everything cuda-doctor learned about one machine at one point
in time.  Capability facts are ``Optional[str]``: a normalized token when
detected, ``None`` when not.  ``None`` is never collapsed into ``""``.

All classes are frozen and collections are tuples, so a snapshot can be
handed to the reconciler (or reloaded from disk) without anyone mutating it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class SystemInfo:
    """Host facts that are always readable without probing."""
    os: str
    arch: str
    cpu: str
    total_memory_gb: float
    python_version: Optional[str] = None


@dataclass(frozen=True)
class GpuInfo:
    """One GPU device.  Not every probing path reports memory or compute capability."""
    name: str
    memory_gb: Optional[float] = None
    compute_capability: Optional[str] = None


@dataclass(frozen=True)
class GpuStatus:
    """Live readings for one GPU, as printed by ``nvidia-smi`` (units dropped).

    Shown by ``--multi-gpu`` only; never part of a snapshot.  A reading the
    device does not report (``[N/A]``) is ``None``.
    """
    index: str
    name: str
    memory_total_mib: Optional[str] = None
    memory_used_mib: Optional[str] = None
    memory_free_mib: Optional[str] = None
    utilization_gpu: Optional[str] = None
    utilization_memory: Optional[str] = None
    temperature_c: Optional[str] = None
    power_draw_w: Optional[str] = None
    power_limit_w: Optional[str] = None


@dataclass(frozen=True)
class CudaInfo:
    driver_version: Optional[str] = None
    cuda_version: Optional[str] = None
    cudnn_version: Optional[str] = None
    gpus: Tuple[GpuInfo, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FrameworkInfo:
    tensorflow: Optional[str] = None
    pytorch: Optional[str] = None


@dataclass(frozen=True)
class FactSnapshot:
    """The aggregate root: system facts, capability facts, when and where."""
    system_info: SystemInfo
    cuda_info: CudaInfo
    frameworks: FrameworkInfo
    timestamp: datetime
    hostname: str

    def detected_capabilities(self) -> Tuple[str, ...]:
        """Names of the capability fields that hold a detected version."""
        facts = (
            ("driver_version", self.cuda_info.driver_version),
            ("cuda_version", self.cuda_info.cuda_version),
            ("cudnn_version", self.cuda_info.cudnn_version),
            ("tensorflow", self.frameworks.tensorflow),
            ("pytorch", self.frameworks.pytorch),
        )
        return tuple(name for name, value in facts if value is not None)
