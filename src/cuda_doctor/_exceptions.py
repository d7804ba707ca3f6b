"""Custom exception hierarchy for cuda-doctor.

Detection itself never raises: a probing strategy that fails is a
:class:`~cuda_doctor.probe.executor.ProbeResult` failure, and a capability
whose strategies are all exhausted is simply ``None`` (not detected).  The
only hard failures live at the snapshot file boundary (``--export`` and
``--import``).

Usage::

    from cuda_doctor._exceptions import SnapshotDecodeError

    try:
        baseline = load_snapshot("baseline.json")
    except SnapshotDecodeError as e:
        print(f"Cannot import baseline: {e}")
"""

from __future__ import annotations


class CudaDoctorError(Exception):
    """Base exception for all cuda-doctor errors.

    Catch this to handle any error raised by the library without
    catching unrelated exceptions.
    """


class StrategyFailure(CudaDoctorError):
    """Raised inside a probing strategy when it cannot yield data.

    The probe executor converts it into a failed probe result; it never
    propagates out of a strategy chain.
    """


class SnapshotError(CudaDoctorError):
    """Base class for errors at the snapshot persistence boundary."""


class SnapshotDecodeError(SnapshotError):
    """Raised when a persisted snapshot is unreadable or malformed.

    Examples:
    - the file does not exist or cannot be read
    - the content is not valid JSON
    - a required field (``timestamp``, ``hostname``, ...) is missing
    - an unknown field appears anywhere in the document
    """


class SnapshotWriteError(SnapshotError):
    """Raised when a snapshot cannot be written to its destination.

    The destination file is left untouched: snapshots are written to a
    temporary file first and renamed into place only on success.
    """
