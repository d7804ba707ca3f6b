"""``--validate-config``."""

from __future__ import annotations

import click

from cuda_doctor.doctor.report import format_env_report
from cuda_doctor.doctor.validate import validate_configuration


def show_validation() -> int:
    results = validate_configuration()
    click.echo(format_env_report(results, "cuda-doctor: configuration validation"))
    return 0
