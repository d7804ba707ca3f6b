"""Diagnostic sweep and human-readable reports.

The sweep asks each detection facade once and turns the answers into
:class:`CheckResult` rows; the ``format_*`` functions render rows, system
facts and reconciliation entries as plain text for the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from cuda_doctor.detect.facades import Detector
from cuda_doctor.doctor.fixes import suggest_fix
from cuda_doctor.reconcile import ReconcileStatus, ReconciliationEntry, summarize
from cuda_doctor.snapshot.codec import format_timestamp
from cuda_doctor.snapshot.model import FactSnapshot, GpuInfo, GpuStatus, SystemInfo


@dataclass
class CheckResult:
    """Result of a single check."""
    name: str
    status: str  # "ok", "warning", "error", "info"
    message: str
    detail: str = ""
    fix: str = ""


_ICONS = {"ok": "[OK]", "warning": "[!!]", "error": "[XX]", "info": "[ii]"}

# (display name, fix key, facade)
_SWEEP: Tuple[Tuple[str, str, Callable[[Detector], Optional[str]]], ...] = (
    ("NVIDIA GPU", "gpu", Detector.gpu_presence),
    ("NVIDIA Driver", "driver", Detector.driver_version),
    ("CUDA Toolkit", "cuda", Detector.cuda_toolkit_version),
    ("cuDNN", "cudnn", Detector.cudnn_version),
    ("TensorFlow", "tensorflow", Detector.tensorflow_version),
    ("PyTorch", "pytorch", Detector.pytorch_version),
)


def describe_gpus(gpus: Sequence[GpuInfo]) -> str:
    """One line per device: ``GPU 0: name, 24.0 GB, CC 8.6``."""
    lines = []
    for index, gpu in enumerate(gpus):
        parts = [gpu.name]
        if gpu.memory_gb is not None:
            parts.append(f"{gpu.memory_gb:.1f} GB")
        if gpu.compute_capability is not None:
            parts.append(f"CC {gpu.compute_capability}")
        lines.append(f"GPU {index}: {', '.join(parts)}")
    return "\n".join(lines)


def _reading(value: Optional[str]) -> str:
    return "N/A" if value is None else value


def describe_gpu_status(statuses: Sequence[GpuStatus]) -> str:
    """Memory, utilization, temperature and power, a small block per GPU."""
    lines = []
    for gpu in statuses:
        lines.append(f"GPU {gpu.index}: {gpu.name}")
        lines.append(f"  Memory: {_reading(gpu.memory_used_mib)} MiB used / "
                     f"{_reading(gpu.memory_total_mib)} MiB total "
                     f"({_reading(gpu.memory_free_mib)} MiB free)")
        lines.append(f"  Utilization: {_reading(gpu.utilization_gpu)}% GPU, "
                     f"{_reading(gpu.utilization_memory)}% memory")
        lines.append(f"  Temperature: {_reading(gpu.temperature_c)} C")
        lines.append(f"  Power: {_reading(gpu.power_draw_w)} W / {_reading(gpu.power_limit_w)} W")
    return "\n".join(lines)


def describe_multi_gpu(detector: Detector) -> Optional[str]:
    """Best available per-GPU description, or ``None`` if no NVIDIA GPU is visible.

    Live status plus the topology matrix when nvidia-smi works, else the
    static device listing, else the adapter presence check.  The last case
    is the typical broken-driver machine: the card is on the bus but
    nvidia-smi cannot talk to it.
    """
    statuses = detector.gpu_status()
    if statuses:
        text = describe_gpu_status(statuses)
        topology = detector.gpu_topology()
        if topology:
            text += "\nTopology:\n" + "\n".join(f"  {line}" for line in topology.splitlines())
        return text

    gpus = detector.gpu_devices()
    if gpus:
        return describe_gpus(gpus)

    presence = detector.gpu_presence()
    if presence:
        return f"{presence}\nInstall nvidia-smi (part of the NVIDIA driver) for detailed multi-GPU analysis"
    return None


def run_sweep(detector: Detector, multi_gpu: bool = False) -> List[CheckResult]:
    """Run the default diagnostic sweep.

    Args:
        detector: Detection facades to query.
        multi_gpu: Report every device with its live status (see
            :func:`describe_multi_gpu`) instead of the plain presence check.
    """
    results = []
    for name, key, facade in _SWEEP:
        if key == "gpu" and multi_gpu:
            value = describe_multi_gpu(detector)
            name = "NVIDIA GPUs"
        else:
            value = facade(detector)
        if value is None:
            results.append(CheckResult(name, "error", "Not found",
                                       fix=suggest_fix(key, detector.platform)))
        else:
            results.append(CheckResult(name, "ok", "Found", detail=value))
    return results


def format_report(results: List[CheckResult], verbose: bool = False,
                  showfix: bool = False) -> str:
    """Format sweep results; ``verbose`` adds versions, ``showfix`` adds fix hints."""
    lines = ["cuda-doctor: GPU and AI framework diagnostics", "=" * 50]
    for r in results:
        icon = _ICONS.get(r.status, "[??]")
        lines.append(f"  {icon} {r.name}: {r.message}")
        if verbose and r.detail:
            for detail_line in r.detail.splitlines():
                lines.append(f"       {detail_line}")
        if showfix and r.fix and r.status != "ok":
            lines.append("")
            lines.extend(f"       {fix_line}" if fix_line else "" for fix_line in r.fix.splitlines())
            lines.append("")
    lines.append("=" * 50)

    found = sum(1 for r in results if r.status == "ok")
    lines.append(f"  {found}/{len(results)} components found")
    if not verbose:
        lines.append("  Use --verbose to see detected versions.")
    if not showfix and found < len(results):
        lines.append("  Use --showfix to see installation guides for missing components.")
    return "\n".join(lines)


def format_env_report(results: List[CheckResult], title: str) -> str:
    """Format configuration-validation results with pass/warn/error counts."""
    lines = [title, "=" * 60]
    for r in results:
        icon = _ICONS.get(r.status, "[??]")
        lines.append(f"  {icon} {r.name}: {r.message}")
        if r.detail:
            lines.append(f"       Detail: {r.detail}")
        if r.fix:
            lines.append(f"       Fix: {r.fix}")
    lines.append("=" * 60)

    errors = sum(1 for r in results if r.status == "error")
    warnings = sum(1 for r in results if r.status == "warning")
    oks = sum(1 for r in results if r.status == "ok")
    lines.append(f"  {oks} passed, {warnings} warning(s), {errors} error(s)")
    return "\n".join(lines)


_STATUS_TEXT = {
    ReconcileStatus.MATCH: ("[OK]", "matches"),
    ReconcileStatus.MISMATCH: ("[!!]", "different"),
    ReconcileStatus.LOCAL_ONLY: ("[++]", "not in import"),
    ReconcileStatus.REMOTE_ONLY: ("[--]", "missing locally"),
    ReconcileStatus.BOTH_ABSENT: ("[XX]", "not available in either"),
}


def format_reconciliation(entries: List[ReconciliationEntry],
                          remote: FactSnapshot) -> str:
    """Render a reconciliation as a comparison table with a summary."""
    lines = ["cuda-doctor: environment comparison (current vs imported)", "=" * 60]
    for entry in entries:
        icon, text = _STATUS_TEXT[entry.status]
        if entry.status is ReconcileStatus.MATCH:
            values = entry.local
        elif entry.status is ReconcileStatus.MISMATCH:
            values = f"{entry.local} vs {entry.remote}"
        else:
            values = entry.local or entry.remote or "-"
        lines.append(f"  {icon} {entry.label}: {values} ({text})")
    lines.append("=" * 60)

    counts = summarize(entries)
    lines.append(
        f"  {counts[ReconcileStatus.MATCH]} match, "
        f"{counts[ReconcileStatus.MISMATCH]} different, "
        f"{counts[ReconcileStatus.LOCAL_ONLY]} local only, "
        f"{counts[ReconcileStatus.REMOTE_ONLY]} missing locally"
    )
    lines.append(f"  Imported snapshot: {remote.hostname} at {format_timestamp(remote.timestamp)}")
    return "\n".join(lines)


# Shown by --sysinfo, long values truncated.
IMPORTANT_ENV_VARS = (
    "CUDA_PATH", "CUDA_HOME", "PATH", "LD_LIBRARY_PATH",
    "PYTHONPATH", "VIRTUAL_ENV", "CONDA_DEFAULT_ENV",
)


def format_system_info(system: SystemInfo, hostname: str, gpus: Sequence[GpuInfo],
                       environ: Mapping[str, str],
                       extra: Optional[Mapping[str, str]] = None) -> str:
    """Render ``--sysinfo``: host, CPU/memory, GPUs, Python and key env vars."""
    lines = ["cuda-doctor: system information", "=" * 50]
    lines.append(f"  OS:            {system.os}")
    lines.append(f"  Architecture:  {system.arch}")
    lines.append(f"  Hostname:      {hostname}")
    lines.append(f"  CPU:           {system.cpu}")
    lines.append(f"  Total RAM:     {system.total_memory_gb:.1f} GB")
    for key, value in (extra or {}).items():
        lines.append(f"  {key + ':':<15}{value}")

    lines.append("")
    lines.append("  GPUs:")
    if gpus:
        lines.extend(f"    {line}" for line in describe_gpus(gpus).splitlines())
    else:
        lines.append("    none detected (nvidia-smi unavailable or CPU-only machine)")

    lines.append("")
    lines.append(f"  Python:        {system.python_version or 'unknown'}")
    lines.append(f"  Virtual env:   {environ.get('VIRTUAL_ENV') or 'None'}")

    lines.append("")
    lines.append("  Environment variables:")
    for var in IMPORTANT_ENV_VARS:
        value = environ.get(var)
        if value is None:
            shown = "Not set"
        elif len(value) > 60:
            shown = value[:57] + "..."
        else:
            shown = value
        lines.append(f"    {var}: {shown}")
    return "\n".join(lines)
