"""Public exception hierarchy for cuda-doctor.

All cuda-doctor exceptions inherit from :class:`CudaDoctorError`, so users can
``except CudaDoctorError`` to catch any library error, or be specific with a
subclass.

Example::

    from cuda_doctor.exceptions import SnapshotDecodeError, SnapshotWriteError

    try:
        save_snapshot("env.json", snapshot)
    except SnapshotWriteError as e:
        print(f"export failed: {e}")
"""

from cuda_doctor._exceptions import (  # noqa: F401
    CudaDoctorError,
    SnapshotDecodeError,
    SnapshotError,
    SnapshotWriteError,
    StrategyFailure,
)

__all__ = [
    "CudaDoctorError",
    "SnapshotDecodeError",
    "SnapshotError",
    "SnapshotWriteError",
    "StrategyFailure",
]
