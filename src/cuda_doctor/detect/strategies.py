"""Per-capability strategy sequences, computed once from the platform.

Which probes make sense depends on the operating system: ``lspci`` and
``/proc/driver/nvidia/version`` only exist on Linux, ``wmic`` only on
Windows, and the CUDA/cuDNN install roots differ everywhere.  Rather than
branching inside the detection code, each capability's strategy tuple is
assembled here from the per-platform tables below.  A strategy that does not
apply to the running platform is simply absent from its tuple.

Order within a tuple is a trust ranking: asking a language runtime or the
tool itself comes first, package-manager metadata next, scraping files off
disk last.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from cuda_doctor._config import DoctorConfig
from cuda_doctor.probe import parsers
from cuda_doctor.probe.executor import Strategy, command, derived, scan

LINUX = "linux"
WINDOWS = "windows"
MACOS = "darwin"


# ---------------------------------------------------------------------------
# Platform tables
# ---------------------------------------------------------------------------

_CUDA_ROOTS: Dict[str, Tuple[str, ...]] = {
    LINUX: ("/usr/local/cuda", "/opt/cuda"),
    WINDOWS: (r"C:\Program Files\NVIDIA GPU Computing Toolkit\CUDA",),
}

_CUDNN_ROOTS: Dict[str, Tuple[str, ...]] = {
    LINUX: ("/usr/local/cuda", "/opt/cuda", "/usr/include", "/usr/local/include"),
    WINDOWS: (
        r"C:\Program Files\NVIDIA GPU Computing Toolkit\CUDA",
        r"C:\Program Files\NVIDIA\CUDNN",
        r"C:\Program Files\NVIDIA Corporation\NVSMI",
        r"C:\Windows\System32",
    ),
}

# Directories listed in this variable are checked directly for cuDNN headers.
_LIBRARY_PATH_VAR: Dict[str, str] = {
    LINUX: "LD_LIBRARY_PATH",
    WINDOWS: "PATH",
}

_NVIDIA_SMI: Dict[str, Tuple[str, ...]] = {
    WINDOWS: (
        "nvidia-smi",
        r"C:\Windows\System32\nvidia-smi.exe",
        r"C:\Program Files\NVIDIA Corporation\NVSMI\nvidia-smi.exe",
    ),
}

_NVCC_NAME: Dict[str, str] = {WINDOWS: "nvcc.exe"}

_ADAPTER_LISTINGS: Dict[str, Tuple[Tuple[str, ...], ...]] = {
    LINUX: (("lspci",),),
    WINDOWS: (
        ("wmic", "path", "win32_videocontroller", "get", "name"),
        ("powershell", "-NoProfile", "-Command",
         "Get-CimInstance Win32_VideoController | Select-Object -ExpandProperty Name"),
    ),
    MACOS: (("system_profiler", "SPDisplaysDataType"),),
}

_CUDNN_HEADERS = ("cudnn_version.h", "cudnn.h")

_CUDA_ENV_VARS = ("CUDA_HOME", "CUDA_PATH")


# ---------------------------------------------------------------------------
# Runtime introspection one-liners
# ---------------------------------------------------------------------------

TF_VERSION = "import tensorflow as tf; print(tf.__version__)"
TORCH_VERSION = "import torch; print(torch.__version__)"
TORCH_CUDA = "import torch; print(torch.version.cuda)"
TF_CUDA = "import tensorflow as tf; print(tf.sysconfig.get_build_info()['cuda_version'])"
TORCH_CUDNN = "import torch; print(torch.backends.cudnn.version())"
TF_CUDNN = "import tensorflow as tf; print(tf.sysconfig.get_build_info()['cudnn_version'])"


def current_platform(value: Optional[str] = None) -> str:
    """Normalize ``sys.platform`` style names to ``linux``/``windows``/``darwin``."""
    value = (value or sys.platform).lower()
    if value.startswith("win"):
        return WINDOWS
    if value.startswith("linux"):
        return LINUX
    if value.startswith("darwin") or value.startswith("mac"):
        return MACOS
    return value


@dataclass(frozen=True)
class StrategyTable:
    """The ordered strategies for every capability on one platform."""
    platform: str
    gpu_presence: Tuple[Strategy, ...]
    driver: Tuple[Strategy, ...]
    cuda_toolkit: Tuple[Strategy, ...]
    cudnn: Tuple[Strategy, ...]
    tensorflow: Tuple[Strategy, ...]
    pytorch: Tuple[Strategy, ...]
    gpu_devices: Tuple[Strategy, ...]
    gpu_status: Tuple[Strategy, ...] = ()
    gpu_topology: Tuple[Strategy, ...] = ()


def build_strategy_table(platform_name: str,
                         environ: Mapping[str, str],
                         config: DoctorConfig,
                         torch_devices: Optional[Callable[[], Optional[str]]] = None,
                         ) -> StrategyTable:
    """Assemble every capability's strategy tuple for ``platform_name``.

    Args:
        platform_name: One of :data:`LINUX`, :data:`WINDOWS`, :data:`MACOS`
            (anything else gets the portable strategies only).
        environ: Environment used for ``CUDA_HOME``/``CUDA_PATH`` and library
            search paths.
        config: Interpreter and pip command lists.
        torch_devices: In-process device lister used as the last GPU listing
            strategy.
    """
    return StrategyTable(
        platform=platform_name,
        gpu_presence=_gpu_presence(platform_name),
        driver=_driver(platform_name),
        cuda_toolkit=_cuda_toolkit(platform_name, environ, config),
        cudnn=_cudnn(platform_name, environ, config),
        tensorflow=_framework("tensorflow", TF_VERSION, ("tensorflow",), config),
        pytorch=_framework("torch", TORCH_VERSION, ("pytorch", "torch"), config),
        gpu_devices=_gpu_devices(platform_name, torch_devices),
        gpu_status=_gpu_status(platform_name),
        gpu_topology=tuple(command(smi, "topo", "-m", parser=parsers.parse_topology)
                           for smi in _smi_binaries(platform_name)),
    )


# ---------------------------------------------------------------------------
# Per-capability builders
# ---------------------------------------------------------------------------


def _smi_binaries(platform_name: str) -> Tuple[str, ...]:
    return _NVIDIA_SMI.get(platform_name, ("nvidia-smi",))


def _python_probes(code: str, config: DoctorConfig) -> List[Strategy]:
    return [command(python, "-c", code, parser=parsers.parse_plain_version,
                    label=f'{python} -c "{code}"')
            for python in config.python_commands]


def _gpu_presence(platform_name: str) -> Tuple[Strategy, ...]:
    strategies = [command(*argv, parser=parsers.nvidia_device_lines)
                  for argv in _ADAPTER_LISTINGS.get(platform_name, ())]
    if platform_name != MACOS:
        strategies += [command(smi, "-L", parser=parsers.parse_smi_list)
                       for smi in _smi_binaries(platform_name)]
    return tuple(strategies)


def _driver(platform_name: str) -> Tuple[Strategy, ...]:
    strategies = [
        command(smi, "--query-gpu=driver_version", "--format=csv,noheader",
                parser=parsers.parse_csv_first_field)
        for smi in _smi_binaries(platform_name)
    ]
    if platform_name == LINUX:
        strategies.append(scan(("/proc/driver/nvidia",), "version", recursive=False,
                               parser=parsers.parse_driver_proc_file))
    return tuple(strategies)


def _cuda_env_roots(environ: Mapping[str, str]) -> List[str]:
    roots = []
    for var in _CUDA_ENV_VARS:
        value = environ.get(var, "")
        if value and value not in roots:
            roots.append(value)
    return roots


def _cuda_toolkit(platform_name: str, environ: Mapping[str, str],
                  config: DoctorConfig) -> Tuple[Strategy, ...]:
    nvcc = _NVCC_NAME.get(platform_name, "nvcc")
    roots = _cuda_env_roots(environ)
    if platform_name == LINUX:
        roots += [root for root in _CUDA_ROOTS[LINUX] if root not in roots]

    strategies = [command("nvcc", "--version", parser=parsers.parse_nvcc_version)]
    strategies += [command(os.path.join(root, "bin", nvcc), "--version",
                           parser=parsers.parse_nvcc_version)
                   for root in roots]
    if platform_name == LINUX:
        cuda_root = _CUDA_ROOTS[LINUX][0]
        strategies += [
            scan((cuda_root,), "version.json", recursive=False,
                 parser=parsers.parse_cuda_version_json),
            scan((cuda_root,), "version.txt", recursive=False,
                 parser=parsers.parse_cuda_version_file),
        ]
    strategies += _python_probes(TORCH_CUDA, config)
    strategies += _python_probes(TF_CUDA, config)
    scan_roots = _CUDA_ROOTS.get(platform_name, ())
    if scan_roots:
        strategies.append(scan(scan_roots, nvcc, run_args=("--version",),
                               parser=parsers.parse_nvcc_version))
    return tuple(strategies)


def _cudnn(platform_name: str, environ: Mapping[str, str],
           config: DoctorConfig) -> Tuple[Strategy, ...]:
    strategies = _python_probes(TORCH_CUDNN, config)
    strategies += _python_probes(TF_CUDNN, config)

    search_dirs: List[str] = []
    path_var = _LIBRARY_PATH_VAR.get(platform_name)
    if path_var:
        search_dirs += [d for d in environ.get(path_var, "").split(os.pathsep) if d]
    search_dirs += [os.path.join(root, "include") for root in _cuda_env_roots(environ)]

    for header in _CUDNN_HEADERS:
        if search_dirs:
            strategies.append(scan(tuple(search_dirs), header, recursive=False,
                                   parser=parsers.parse_cudnn_header))
        roots = _CUDNN_ROOTS.get(platform_name, ())
        if roots:
            strategies.append(scan(roots, header, parser=parsers.parse_cudnn_header))
    return tuple(strategies)


def _framework(pip_name: str, code: str, conda_names: Tuple[str, ...],
               config: DoctorConfig) -> Tuple[Strategy, ...]:
    strategies = _python_probes(code, config)
    strategies += [command(pip, "show", pip_name, parser=parsers.parse_pip_show)
                   for pip in config.pip_commands]
    strategies += [command("conda", "list", name, parser=parsers.conda_list_parser(name))
                   for name in conda_names]
    return tuple(strategies)


def _gpu_devices(platform_name: str,
                 torch_devices: Optional[Callable[[], Optional[str]]]) -> Tuple[Strategy, ...]:
    strategies = []
    for smi in _smi_binaries(platform_name):
        strategies += [
            command(smi, "--query-gpu=name,memory.total,compute_cap",
                    "--format=csv,noheader,nounits", parser=parsers.parse_gpu_csv),
            # compute_cap is unknown to drivers older than 510
            command(smi, "--query-gpu=name,memory.total",
                    "--format=csv,noheader,nounits", parser=parsers.parse_gpu_csv),
        ]
    if torch_devices is not None:
        strategies.append(derived("torch.cuda device properties", torch_devices,
                                  parser=parsers.parse_gpu_csv))
    return tuple(strategies)


_STATUS_QUERY = ("index,name,memory.total,memory.used,memory.free,utilization.gpu,"
                 "utilization.memory,temperature.gpu,power.draw,power.limit")


def _gpu_status(platform_name: str) -> Tuple[Strategy, ...]:
    return tuple(
        command(smi, f"--query-gpu={_STATUS_QUERY}", "--format=csv,noheader,nounits",
                parser=parsers.parse_gpu_status)
        for smi in _smi_binaries(platform_name)
    )
