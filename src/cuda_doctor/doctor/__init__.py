"""Human-facing diagnostics built on the detection engine.

Provides:
- ``report``: the diagnostic sweep and text reports
- ``fixes``: installation hints for missing components (``--showfix``)
- ``compat``: the advisory CUDA / driver / framework compatibility matrix
- ``validate``: environment variable, library linking and device checks
"""

from cuda_doctor.doctor.report import CheckResult, format_report, run_sweep
from cuda_doctor.doctor.validate import validate_configuration

__all__ = [
    "CheckResult",
    "format_report",
    "run_sweep",
    "validate_configuration",
]
