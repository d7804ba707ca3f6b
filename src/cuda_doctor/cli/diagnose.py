"""Default mode: the diagnostic sweep."""

from __future__ import annotations

import click

from cuda_doctor.detect.facades import Detector
from cuda_doctor.doctor.report import format_report, run_sweep


def run_diagnostics(verbose: bool = False, showfix: bool = False,
                    multi_gpu: bool = False, strict: bool = False) -> int:
    """Print the sweep report; return 1 only if ``strict`` and nothing was found."""
    results = run_sweep(Detector(), multi_gpu=multi_gpu)
    # --multi-gpu always prints the per-GPU block
    click.echo(format_report(results, verbose=verbose or multi_gpu, showfix=showfix))
    if strict and not any(r.status == "ok" for r in results):
        return 1
    return 0
