"""Tests for the reconciler."""

from __future__ import annotations

import dataclasses

import pytest

from cuda_doctor.reconcile import (
    TRACKED_FIELDS,
    ReconcileStatus,
    classify,
    reconcile,
    summarize,
)
from cuda_doctor.snapshot.model import FrameworkInfo


class TestClassify:

    @pytest.mark.parametrize("local, remote, expected", [
        ("12.2", "12.2", ReconcileStatus.MATCH),
        ("12.2", "12.1", ReconcileStatus.MISMATCH),
        ("12.2", None, ReconcileStatus.LOCAL_ONLY),
        (None, "12.1", ReconcileStatus.REMOTE_ONLY),
        (None, None, ReconcileStatus.BOTH_ABSENT),
    ])
    def test_five_statuses(self, local, remote, expected) -> None:
        assert classify(local, remote) is expected

    def test_equal_meaning_different_spelling_is_mismatch(self) -> None:
        assert classify("12.2", "12.2.140") is ReconcileStatus.MISMATCH

    def test_symmetry(self) -> None:
        swapped = {
            ReconcileStatus.LOCAL_ONLY: ReconcileStatus.REMOTE_ONLY,
            ReconcileStatus.REMOTE_ONLY: ReconcileStatus.LOCAL_ONLY,
        }
        values = ["8.9.2", "8.6.0", None]
        for a in values:
            for b in values:
                forward = classify(a, b)
                assert classify(b, a) is swapped.get(forward, forward)


class TestReconcile:

    def test_identical_snapshots_all_match(self, full_snapshot) -> None:
        entries = reconcile(full_snapshot, full_snapshot)
        assert all(e.status is ReconcileStatus.MATCH for e in entries)

    def test_checklist_order(self, full_snapshot) -> None:
        entries = reconcile(full_snapshot, full_snapshot)
        assert [e.field for e in entries] == [name for name, _, _ in TRACKED_FIELDS]

    def test_cuda_mismatch_and_missing_pytorch(self, full_snapshot) -> None:
        remote = dataclasses.replace(
            full_snapshot,
            cuda_info=dataclasses.replace(full_snapshot.cuda_info, cuda_version="12.1"),
            hostname="training-node",
        )
        local = dataclasses.replace(
            full_snapshot, frameworks=FrameworkInfo(tensorflow="2.14.0", pytorch=None))

        by_field = {e.field: e for e in reconcile(local, remote)}
        cuda = by_field["cuda_version"]
        assert cuda.status is ReconcileStatus.MISMATCH
        assert (cuda.local, cuda.remote) == ("12.2", "12.1")
        assert by_field["pytorch"].status is ReconcileStatus.REMOTE_ONLY
        assert by_field["pytorch"].remote == "2.1.0+cu121"
        assert by_field["tensorflow"].status is ReconcileStatus.MATCH

    def test_against_empty_snapshot(self, full_snapshot, empty_snapshot) -> None:
        by_field = {e.field: e.status for e in reconcile(empty_snapshot, full_snapshot)}
        assert by_field["driver_version"] is ReconcileStatus.REMOTE_ONLY
        assert by_field["gpus"] is ReconcileStatus.REMOTE_ONLY
        assert by_field["os"] is ReconcileStatus.MISMATCH
        assert by_field["python_version"] is ReconcileStatus.REMOTE_ONLY

    def test_both_empty(self, empty_snapshot) -> None:
        by_field = {e.field: e.status for e in reconcile(empty_snapshot, empty_snapshot)}
        assert by_field["cudnn_version"] is ReconcileStatus.BOTH_ABSENT

    def test_summarize(self, full_snapshot, empty_snapshot) -> None:
        counts = summarize(reconcile(full_snapshot, empty_snapshot))
        assert set(counts) == set(ReconcileStatus)
        assert sum(counts.values()) == len(TRACKED_FIELDS)
        assert counts[ReconcileStatus.LOCAL_ONLY] == 7
