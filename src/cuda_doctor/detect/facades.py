"""Detection facades: one entry point per capability.

Each facade runs its capability's strategy tuple through a
:class:`~cuda_doctor.probe.chain.StrategyChain` and returns the normalized
token, or ``None`` when every strategy came up empty.  No facade raises:
strategies that crash, hang past the probe timeout, or print garbage are
just failed strategies.

Usage::

    from cuda_doctor.detect import Detector

    detector = Detector()
    detector.cuda_toolkit_version()   # "12.2" or None
    detector.gpu_devices()            # (GpuInfo(...), ...) or ()
"""

from __future__ import annotations

import os
from typing import Mapping, Optional, Tuple

from cuda_doctor._config import DoctorConfig
from cuda_doctor._logging import get_logger
from cuda_doctor.detect.strategies import (
    StrategyTable,
    build_strategy_table,
    current_platform,
)
from cuda_doctor.probe.chain import StrategyChain
from cuda_doctor.probe.executor import ProbeExecutor
from cuda_doctor.snapshot.model import GpuInfo, GpuStatus

logger = get_logger(__name__)


def torch_device_rows() -> Optional[str]:
    """Describe CUDA devices via an importable ``torch``, in nvidia-smi CSV shape.

    ``torch`` is imported lazily so cuda-doctor works on machines without it.
    Returns ``None`` when torch is missing or sees no CUDA device.
    """
    try:
        import torch  # type: ignore[import-untyped]
    except ImportError:
        logger.debug("torch not importable, skipping in-process device listing")
        return None

    if not torch.cuda.is_available():
        return None
    rows = []
    for index in range(torch.cuda.device_count()):
        props = torch.cuda.get_device_properties(index)
        memory_mib = props.total_memory / (1024 ** 2)
        rows.append(f"{props.name}, {memory_mib:.0f}, {props.major}.{props.minor}")
    return "\n".join(rows) or None


class Detector:
    """Detection facades bound to one platform's strategy table.

    Args:
        platform_name: Platform to build strategies for; defaults to the
            running one.
        executor: Probe executor; tests pass a fake one.
        config: Timeouts and interpreter lists; defaults to
            :meth:`DoctorConfig.from_env`.
        environ: Environment for CUDA roots and library paths.
    """

    def __init__(self, platform_name: Optional[str] = None,
                 executor: Optional[ProbeExecutor] = None,
                 config: Optional[DoctorConfig] = None,
                 environ: Optional[Mapping[str, str]] = None) -> None:
        self.config = config or DoctorConfig.from_env()
        self.platform = current_platform(platform_name)
        self.chain = StrategyChain(executor or ProbeExecutor(timeout=self.config.probe_timeout))
        self.strategies: StrategyTable = build_strategy_table(
            self.platform,
            os.environ if environ is None else environ,
            self.config,
            torch_devices=torch_device_rows,
        )

    def gpu_presence(self) -> Optional[str]:
        """Names of the NVIDIA adapters the OS can see, comma-joined."""
        return self.chain.run(self.strategies.gpu_presence)

    def driver_version(self) -> Optional[str]:
        return self.chain.run(self.strategies.driver)

    def cuda_toolkit_version(self) -> Optional[str]:
        return self.chain.run(self.strategies.cuda_toolkit)

    def cudnn_version(self) -> Optional[str]:
        """cuDNN version, in the spelling of whichever source answered first.

        Runtime introspection reports the packed integer (``8902``), a header
        scan reports ``8.9.2``.  The same install can therefore read differently
        on a machine where torch imports and one where it does not, and snapshot
        comparison (exact string equality) shows that as a mismatch.
        """
        return self.chain.run(self.strategies.cudnn)

    def tensorflow_version(self) -> Optional[str]:
        return self.chain.run(self.strategies.tensorflow)

    def pytorch_version(self) -> Optional[str]:
        return self.chain.run(self.strategies.pytorch)

    def gpu_devices(self) -> Tuple[GpuInfo, ...]:
        """Per-device records.  An empty tuple is a normal CPU-only outcome."""
        return self.chain.run(self.strategies.gpu_devices) or ()

    def gpu_status(self) -> Tuple[GpuStatus, ...]:
        """Live per-GPU readings from nvidia-smi; ``()`` when it is unavailable."""
        return self.chain.run(self.strategies.gpu_status) or ()

    def gpu_topology(self) -> Optional[str]:
        """Interconnect matrix from ``nvidia-smi topo -m`` (NVLink / PCIe paths)."""
        return self.chain.run(self.strategies.gpu_topology)
