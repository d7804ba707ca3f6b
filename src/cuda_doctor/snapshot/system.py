"""System facts: OS, architecture, CPU, memory, Python, hostname.

These are read directly from the running OS and interpreter, so there is no
strategy chain here; every field is always available.  The reader is a plain
object handed to :class:`~cuda_doctor.snapshot.builder.SnapshotBuilder` so
tests can pass a fake one instead.
"""

from __future__ import annotations

import platform
import socket
from typing import Dict, Optional

import cpuinfo
import psutil

from cuda_doctor._logging import get_logger
from cuda_doctor.snapshot.model import SystemInfo

logger = get_logger(__name__)

_BYTES_PER_GB = 1024.0 ** 3


class SystemInfoReader:
    """Reads host facts via :mod:`platform`, ``psutil`` and ``py-cpuinfo``."""

    def read(self) -> SystemInfo:
        return SystemInfo(
            os=self.os_name(),
            arch=platform.machine(),
            cpu=self.cpu_model(),
            total_memory_gb=psutil.virtual_memory().total / _BYTES_PER_GB,
            python_version=platform.python_version(),
        )

    def hostname(self) -> str:
        return socket.gethostname()

    def details(self) -> Dict[str, str]:
        """Extra display-only facts for ``--sysinfo`` (not part of snapshots)."""
        memory = psutil.virtual_memory()
        physical = psutil.cpu_count(logical=False) or 0
        logical = psutil.cpu_count(logical=True) or 0
        details = {
            "Kernel": platform.release(),
            "Cores": f"{physical} physical, {logical} logical",
            "Available RAM": f"{memory.available / _BYTES_PER_GB:.1f} GB",
            "Used RAM": f"{memory.used / _BYTES_PER_GB:.1f} GB ({memory.percent:.1f}%)",
        }
        freq = psutil.cpu_freq()
        if freq and freq.current:
            details["Frequency"] = f"{freq.current / 1000.0:.2f} GHz"
        return details

    def os_name(self) -> str:
        """Human-readable OS name, e.g. ``Ubuntu 22.04.3 LTS`` or ``Windows 10``."""
        system = platform.system()
        if system == "Linux":
            distro = _get_linux_distro()
            if distro:
                return distro
        elif system == "Darwin":
            release = platform.mac_ver()[0]
            if release:
                return f"macOS {release}"
        return f"{system} {platform.release()}".strip()

    def cpu_model(self) -> str:
        try:
            brand = cpuinfo.get_cpu_info().get("brand_raw", "")
        except Exception as exc:  # noqa: BLE001
            logger.debug("py-cpuinfo failed: %s", exc)
            brand = ""
        return brand or platform.processor() or "unknown"


def _get_linux_distro() -> Optional[str]:
    """PRETTY_NAME from ``/etc/os-release``, if present."""
    try:
        with open("/etc/os-release") as f:
            for line in f:
                if line.startswith("PRETTY_NAME="):
                    return line.split("=", 1)[1].strip().strip('"')
    except OSError:
        pass
    return None
