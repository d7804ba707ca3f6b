"""CLI for cuda-doctor.

One report mode per invocation; each mode lives in its own module so it can
be tested on its own.

Usage::

    cuda-doctor                      # diagnostic sweep
    cuda-doctor -v --showfix         # with versions and installation hints
    cuda-doctor --export env.json    # save a snapshot of this machine
    cuda-doctor --import env.json    # compare this machine against a snapshot
    cuda-doctor --sysinfo
    cuda-doctor --compatibility
    cuda-doctor --validate-config
"""

from __future__ import annotations

from typing import Optional

import click

from cuda_doctor._logging import get_logger, set_log_level

logger = get_logger(__name__)


@click.command()
@click.version_option(package_name="cuda-doctor")
@click.option("-v", "--verbose", is_flag=True,
              help="Show detected versions and log every probe attempt.")
@click.option("--showfix", is_flag=True,
              help="Show installation and fix suggestions for missing components.")
@click.option("--strict", is_flag=True,
              help="Exit with status 1 when no component at all is detected.")
@click.option("--multi-gpu", is_flag=True,
              help="Show per-GPU memory, utilization, temperature, power and topology.")
@click.option("--sysinfo", is_flag=True,
              help="Show system information and GPU specifications.")
@click.option("--compatibility", is_flag=True,
              help="Show the CUDA / driver / framework compatibility matrix.")
@click.option("--validate-config", is_flag=True,
              help="Validate environment variables, library linking and device permissions.")
@click.option("--export", "export_file", metavar="FILE", type=click.Path(dir_okay=False),
              help="Export the current environment snapshot to a JSON file.")
@click.option("--import", "import_file", metavar="FILE", type=click.Path(dir_okay=False),
              help="Compare the current environment against an exported JSON file.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, showfix: bool, strict: bool, multi_gpu: bool,
         sysinfo: bool, compatibility: bool, validate_config: bool,
         export_file: Optional[str], import_file: Optional[str]) -> None:
    """cuda-doctor: diagnose NVIDIA GPU, CUDA, cuDNN and AI framework installations."""
    modes = {
        "--export": export_file is not None,
        "--import": import_file is not None,
        "--sysinfo": sysinfo,
        "--compatibility": compatibility,
        "--validate-config": validate_config,
    }
    selected = [name for name, on in modes.items() if on]
    if len(selected) > 1:
        raise click.UsageError(f"choose one mode at a time, got {' and '.join(selected)}")

    if verbose:
        set_log_level("DEBUG")

    if export_file is not None:
        from cuda_doctor.cli.transfer import export_environment
        code = export_environment(export_file)
    elif import_file is not None:
        from cuda_doctor.cli.transfer import import_environment
        code = import_environment(import_file)
    elif sysinfo:
        from cuda_doctor.cli.info import show_system_info
        code = show_system_info()
    elif compatibility:
        from cuda_doctor.cli.info import show_compatibility
        code = show_compatibility()
    elif validate_config:
        from cuda_doctor.cli.validate import show_validation
        code = show_validation()
    else:
        from cuda_doctor.cli.diagnose import run_diagnostics
        code = run_diagnostics(verbose=verbose, showfix=showfix,
                               multi_gpu=multi_gpu, strict=strict)
    ctx.exit(code)
