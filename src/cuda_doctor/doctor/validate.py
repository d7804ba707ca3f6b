"""Configuration validation: environment variables, library linking, device files.

A CUDA install that ``nvcc`` can see may still be unusable at runtime: the
loader can't find ``libcudart``, ``LD_LIBRARY_PATH`` points at an old
toolkit, or the user lacks access to ``/dev/nvidia0``.  This module checks
those things and reports them as :class:`~cuda_doctor.doctor.report.CheckResult`
rows.  It only reads; nothing is changed.

Usage::

    from cuda_doctor.doctor.validate import validate_configuration

    for item in validate_configuration():
        print(f"[{item.status}] {item.name}: {item.message}")
"""

from __future__ import annotations

import os
from typing import List, Mapping, Optional

from cuda_doctor._logging import get_logger
from cuda_doctor.detect.strategies import LINUX, current_platform
from cuda_doctor.doctor.report import CheckResult
from cuda_doctor.probe.executor import ProbeExecutor

logger = get_logger(__name__)

_CUDA_VARS = {
    "CUDA_PATH": (
        "CUDA installation path",
        "export CUDA_PATH=/usr/local/cuda",
    ),
    "CUDA_HOME": (
        "CUDA home directory (used by PyTorch extensions and many build scripts)",
        "export CUDA_HOME=/usr/local/cuda",
    ),
}

_LINKED_LIBRARIES = (
    ("libcuda.so.1", "NVIDIA driver library"),
    ("libcudart.so", "CUDA runtime library"),
    ("libcublas.so", "CUDA BLAS library"),
    ("libcudnn.so", "cuDNN library"),
)

_DEVICE_FILE = "/dev/nvidia0"


def validate_configuration(platform_name: Optional[str] = None,
                           environ: Optional[Mapping[str, str]] = None,
                           executor: Optional[ProbeExecutor] = None) -> List[CheckResult]:
    """Run every configuration check.

    Returns:
        List of :class:`CheckResult` items, environment variables first.
    """
    platform_name = current_platform(platform_name)
    env = os.environ if environ is None else environ
    executor = executor or ProbeExecutor()

    results: List[CheckResult] = []
    results.extend(_check_env_vars(env, platform_name))
    results.extend(_check_library_linking(platform_name, executor))
    results.append(_check_device_permissions(platform_name))
    return results


def _check_env_vars(environ: Mapping[str, str], platform_name: str) -> List[CheckResult]:
    """Check CUDA-related environment variables."""
    results: List[CheckResult] = []

    for var, (desc, fix) in _CUDA_VARS.items():
        val = environ.get(var, "")
        if val:
            results.append(CheckResult(f"env:{var}", "ok", f"{var}={val}"))
        else:
            results.append(CheckResult(f"env:{var}", "warning",
                                       f"{var} not set ({desc})", fix=fix))

    path = environ.get("PATH", "")
    if "cuda" in path.lower():
        results.append(CheckResult("env:PATH", "ok", "PATH includes a CUDA directory"))
    else:
        results.append(CheckResult("env:PATH", "warning",
                                   "PATH does not include a CUDA bin directory",
                                   fix="export PATH=/usr/local/cuda/bin:$PATH"))

    if platform_name == LINUX:
        ld_path = environ.get("LD_LIBRARY_PATH", "")
        if not ld_path:
            results.append(CheckResult("env:LD_LIBRARY_PATH", "info",
                                       "LD_LIBRARY_PATH not set (system loader paths only)",
                                       fix="export LD_LIBRARY_PATH=/usr/local/cuda/lib64:$LD_LIBRARY_PATH"))
        elif "cuda" in ld_path.lower():
            results.append(CheckResult("env:LD_LIBRARY_PATH", "ok",
                                       "LD_LIBRARY_PATH includes a CUDA directory"))
        else:
            results.append(CheckResult("env:LD_LIBRARY_PATH", "info",
                                       "LD_LIBRARY_PATH set but may not include CUDA lib64",
                                       fix="export LD_LIBRARY_PATH=/usr/local/cuda/lib64:$LD_LIBRARY_PATH"))

    # Both set but pointing at different toolkits
    cuda_home, cuda_path = environ.get("CUDA_HOME", ""), environ.get("CUDA_PATH", "")
    if cuda_home and cuda_path and os.path.normpath(cuda_home) != os.path.normpath(cuda_path):
        results.append(CheckResult("env:CUDA_HOME/CUDA_PATH", "warning",
                                   "CUDA_HOME and CUDA_PATH point to different locations",
                                   detail=f"CUDA_HOME={cuda_home}, CUDA_PATH={cuda_path}"))

    return results


def _check_library_linking(platform_name: str, executor: ProbeExecutor) -> List[CheckResult]:
    """Check the dynamic loader cache for the CUDA libraries (Linux only)."""
    if platform_name != LINUX:
        return [CheckResult("libraries", "info",
                            "Library checking not implemented for this OS")]

    result = executor.run_command(("ldconfig", "-p"))
    if not result.ok:
        return [CheckResult(lib, "warning", f"Cannot check ({desc})",
                            detail=result.reason)
                for lib, desc in _LINKED_LIBRARIES]

    results = []
    for lib, desc in _LINKED_LIBRARIES:
        if lib in result.output:
            results.append(CheckResult(lib, "ok", "Found in loader cache"))
        else:
            results.append(CheckResult(lib, "error", f"Not found ({desc})",
                                       fix="Add its directory to /etc/ld.so.conf.d/ and run sudo ldconfig"))
    return results


def _check_device_permissions(platform_name: str) -> CheckResult:
    """Check that the first NVIDIA device node exists and is accessible."""
    if platform_name != LINUX:
        return CheckResult("device files", "info",
                           "Permission checking not implemented for this OS")
    if not os.path.exists(_DEVICE_FILE):
        return CheckResult("device files", "error", "NVIDIA device files not found",
                           fix="Load the driver: sudo modprobe nvidia (or reboot after installing it)")
    if not os.access(_DEVICE_FILE, os.R_OK | os.W_OK):
        return CheckResult("device files", "error",
                           f"{_DEVICE_FILE} not accessible by this user",
                           fix="Add the user to the group owning the device (often 'video')")
    return CheckResult("device files", "ok", f"{_DEVICE_FILE} accessible")
