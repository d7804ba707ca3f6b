"""Version compatibility reference for the NVIDIA software stack.

This is advisory reference text shown by ``cuda-doctor --compatibility``.
It is not evaluated against detected versions.

Compatibility Matrix (sourced from NVIDIA, TensorFlow and PyTorch release notes)
-------------------------------------------------------------------------------

+--------------+----------------+
| CUDA         | Minimum driver |
+==============+================+
| 12.3+        | 545.23         |
| 12.2         | 535.86         |
| 12.1         | 530.30         |
| 12.0         | 525.60         |
| 11.8         | 520.61         |
| 11.7         | 515.43         |
| 11.6         | 510.47         |
+--------------+----------------+

Note: This matrix should be updated as new versions are released.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class DriverRow:
    """Minimum Linux driver for a CUDA release."""
    cuda: str
    min_driver: str


@dataclass(frozen=True)
class FrameworkRow:
    """A framework release and the CUDA/cuDNN/Python it was built and tested with."""
    framework: str
    version: str
    cuda: str
    cudnn: str = ""
    python: str = ""


DRIVER_MATRIX: List[DriverRow] = [
    DriverRow("12.3+", "545.23"),
    DriverRow("12.2",  "535.86"),
    DriverRow("12.1",  "530.30"),
    DriverRow("12.0",  "525.60"),
    DriverRow("11.8",  "520.61"),
    DriverRow("11.7",  "515.43"),
    DriverRow("11.6",  "510.47"),
]

FRAMEWORK_MATRIX: List[FrameworkRow] = [
    FrameworkRow("TensorFlow", "2.15+", "12.3",        "8.9", "3.9-3.12"),
    FrameworkRow("TensorFlow", "2.14",  "12.2",        "8.9", "3.9-3.11"),
    FrameworkRow("TensorFlow", "2.13",  "11.8",        "8.6", "3.8-3.11"),
    FrameworkRow("TensorFlow", "2.12",  "11.8",        "8.6", "3.8-3.11"),
    FrameworkRow("TensorFlow", "2.11",  "11.2",        "8.1", "3.7-3.10"),
    FrameworkRow("TensorFlow", "2.10",  "11.2",        "8.1", "3.7-3.10"),
    FrameworkRow("PyTorch",    "2.1+",  "11.8, 12.1",  "",    "3.8-3.11"),
    FrameworkRow("PyTorch",    "2.0",   "11.7, 11.8",  "",    "3.8-3.11"),
    FrameworkRow("PyTorch",    "1.13",  "11.6, 11.7",  "",    "3.7-3.10"),
    FrameworkRow("PyTorch",    "1.12",  "11.3, 11.6",  "",    "3.7-3.10"),
    FrameworkRow("PyTorch",    "1.11",  "11.1, 11.3",  "",    "3.7-3.10"),
]

RECOMMENDED = [
    ("Latest stable", "CUDA 12.2 + cuDNN 8.9 + TensorFlow 2.14 + PyTorch 2.1"),
    ("High performance", "CUDA 11.8 + cuDNN 8.6 + TensorFlow 2.13 + PyTorch 2.0"),
    ("Long term support", "CUDA 11.2 + cuDNN 8.1 + TensorFlow 2.10 + PyTorch 1.13"),
]


def format_compatibility_matrix() -> str:
    lines = ["cuda-doctor: version compatibility matrix", "=" * 60, "", "  CUDA -> minimum driver:"]
    for row in DRIVER_MATRIX:
        lines.append(f"    CUDA {row.cuda:<7} -> driver {row.min_driver}+")

    for framework in ("TensorFlow", "PyTorch"):
        lines.append("")
        lines.append(f"  {framework} -> CUDA:")
        for row in FRAMEWORK_MATRIX:
            if row.framework != framework:
                continue
            entry = f"    {framework} {row.version:<6} -> CUDA {row.cuda}"
            if row.cudnn:
                entry += f", cuDNN {row.cudnn}"
            if row.python:
                entry += f" (Python {row.python})"
            lines.append(entry)

    lines.append("")
    lines.append("  Compute capability:")
    lines.append("    TensorFlow 2.11+ -> CC 3.5+")
    lines.append("    PyTorch 1.13+    -> CC 3.7+")
    lines.append("    CUDA 12.0+       -> CC 5.0+")

    lines.append("")
    lines.append("  Recommended combinations:")
    for name, combo in RECOMMENDED:
        lines.append(f"    {name}: {combo}")
    return "\n".join(lines)
