"""``--sysinfo`` and ``--compatibility``."""

from __future__ import annotations

import os

import click

from cuda_doctor.detect.facades import Detector
from cuda_doctor.doctor.compat import format_compatibility_matrix
from cuda_doctor.doctor.report import format_system_info
from cuda_doctor.snapshot.system import SystemInfoReader


def show_system_info() -> int:
    reader = SystemInfoReader()
    click.echo(format_system_info(
        reader.read(),
        reader.hostname(),
        Detector().gpu_devices(),
        os.environ,
        extra=reader.details(),
    ))
    return 0


def show_compatibility() -> int:
    click.echo(format_compatibility_matrix())
    return 0
