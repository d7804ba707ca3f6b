"""Fact snapshots: the data model, the builder and the JSON codec."""

from cuda_doctor.snapshot.model import (
    CudaInfo,
    FactSnapshot,
    FrameworkInfo,
    GpuInfo,
    SystemInfo,
)

__all__ = [
    "CudaInfo",
    "FactSnapshot",
    "FrameworkInfo",
    "GpuInfo",
    "SystemInfo",
]
