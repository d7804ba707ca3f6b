"""``--export`` / ``--import``: snapshot persistence and comparison."""

from __future__ import annotations

import click

from cuda_doctor._exceptions import SnapshotError
from cuda_doctor.doctor.report import format_reconciliation
from cuda_doctor.reconcile import reconcile
from cuda_doctor.snapshot.builder import SnapshotBuilder
from cuda_doctor.snapshot.codec import load_snapshot, save_snapshot


def export_environment(path: str) -> int:
    """Build a snapshot of this machine and save it to ``path``."""
    click.echo(f"Exporting environment to {path}...")
    snapshot = SnapshotBuilder().build()
    try:
        save_snapshot(path, snapshot)
    except SnapshotError as exc:
        click.echo(f"Export failed: {exc}", err=True)
        return 1
    detected = snapshot.detected_capabilities()
    click.echo(f"Environment exported ({len(detected)} component(s) detected).")
    return 0


def import_environment(path: str) -> int:
    """Compare this machine against the snapshot stored at ``path``."""
    click.echo(f"Importing environment from {path}...")
    try:
        remote = load_snapshot(path)
    except SnapshotError as exc:
        click.echo(f"Import failed: {exc}", err=True)
        return 1
    local = SnapshotBuilder().build()
    click.echo(format_reconciliation(reconcile(local, remote), remote))
    return 0
