"""Tests for the probe executor (commands, filesystem scans, derived probes)."""

from __future__ import annotations

import subprocess
from typing import Any, Dict, List

import pytest

from cuda_doctor.probe.executor import (
    ProbeExecutor,
    StrategyKind,
    command,
    derived,
    scan,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingRunner:
    """Stand-in for :func:`subprocess.run` that records each invocation."""

    def __init__(self, stdout: str = "", stderr: str = "", returncode: int = 0,
                 raises: Any = None) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        self.raises = raises
        self.calls: List[List[str]] = []
        self.kwargs: List[Dict[str, Any]] = []

    def __call__(self, argv, **kwargs):
        self.calls.append(argv)
        self.kwargs.append(kwargs)
        if self.raises is not None:
            raise self.raises
        return subprocess.CompletedProcess(argv, self.returncode, self.stdout, self.stderr)


# ---------------------------------------------------------------------------
# Strategy shorthands
# ---------------------------------------------------------------------------


class TestStrategyShorthands:

    def test_command_label_defaults_to_argv(self) -> None:
        strategy = command("nvidia-smi", "-L")
        assert strategy.kind is StrategyKind.EXTERNAL_COMMAND
        assert strategy.command == ("nvidia-smi", "-L")
        assert strategy.label == "nvidia-smi -L"

    def test_scan_label(self) -> None:
        strategy = scan(("/usr/local/cuda",), "version.json", recursive=False)
        assert strategy.kind is StrategyKind.FILESYSTEM_SCAN
        assert strategy.label == "scan version.json in /usr/local/cuda"
        assert strategy.recursive is False


# ---------------------------------------------------------------------------
# External commands
# ---------------------------------------------------------------------------


class TestExternalCommand:

    def test_success_returns_stdout(self) -> None:
        runner = RecordingRunner(stdout="535.104.05\n")
        result = ProbeExecutor(timeout=5, runner=runner).execute(
            command("nvidia-smi", "--query-gpu=driver_version"))
        assert result.ok
        assert result.output == "535.104.05\n"
        assert runner.calls == [["nvidia-smi", "--query-gpu=driver_version"]]

    def test_timeout_and_capture_are_passed(self) -> None:
        runner = RecordingRunner(stdout="x")
        ProbeExecutor(timeout=7.5, runner=runner).execute(command("nvcc", "--version"))
        kwargs = runner.kwargs[0]
        assert kwargs["timeout"] == 7.5
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True

    def test_nonzero_exit_is_failure(self) -> None:
        runner = RecordingRunner(stdout="", stderr="No devices were found", returncode=6)
        result = ProbeExecutor(runner=runner).execute(command("nvidia-smi", "-L"))
        assert not result.ok
        assert "exit code 6" in result.reason

    def test_timeout_is_failure(self) -> None:
        runner = RecordingRunner(raises=subprocess.TimeoutExpired(["nvidia-smi"], 3))
        result = ProbeExecutor(timeout=3, runner=runner).execute(command("nvidia-smi"))
        assert not result.ok
        assert "timed out" in result.reason

    def test_missing_program_is_failure(self) -> None:
        runner = RecordingRunner(raises=FileNotFoundError(2, "No such file", "nvcc"))
        result = ProbeExecutor(runner=runner).execute(command("nvcc", "--version"))
        assert not result.ok

    def test_unexpected_exception_is_failure(self) -> None:
        runner = RecordingRunner(raises=RuntimeError("boom"))
        result = ProbeExecutor(runner=runner).execute(command("nvcc", "--version"))
        assert not result.ok
        assert "RuntimeError" in result.reason

    def test_empty_command(self) -> None:
        result = ProbeExecutor(runner=RecordingRunner()).run_command(())
        assert not result.ok


# ---------------------------------------------------------------------------
# Filesystem scans
# ---------------------------------------------------------------------------


class TestFilesystemScan:

    def test_recursive_scan_reads_file(self, tmp_path) -> None:
        nested = tmp_path / "cuda" / "include"
        nested.mkdir(parents=True)
        (nested / "cudnn_version.h").write_text("#define CUDNN_MAJOR 8\n")
        result = ProbeExecutor().execute(scan((str(tmp_path),), "cudnn_version.h"))
        assert result.ok
        assert "CUDNN_MAJOR" in result.output

    def test_non_recursive_scan_ignores_subdirectories(self, tmp_path) -> None:
        nested = tmp_path / "include"
        nested.mkdir()
        (nested / "cudnn.h").write_text("x")
        result = ProbeExecutor().execute(
            scan((str(tmp_path),), "cudnn.h", recursive=False))
        assert not result.ok

    def test_roots_tried_in_order(self, tmp_path) -> None:
        first, second = tmp_path / "first", tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (first / "version.txt").write_text("CUDA Version 11.8.89")
        (second / "version.txt").write_text("CUDA Version 12.2.140")
        result = ProbeExecutor().execute(
            scan((str(first), str(second)), "version.txt", recursive=False))
        assert result.output == "CUDA Version 11.8.89"

    def test_missing_root_is_skipped(self, tmp_path) -> None:
        (tmp_path / "version.txt").write_text("CUDA Version 12.2.140")
        result = ProbeExecutor().execute(
            scan((str(tmp_path / "absent"), str(tmp_path)), "version.txt"))
        assert result.ok

    def test_nothing_found(self, tmp_path) -> None:
        result = ProbeExecutor().execute(scan((str(tmp_path),), "version.json"))
        assert not result.ok
        assert "not found" in result.reason

    def test_located_file_is_run(self, tmp_path) -> None:
        bin_dir = tmp_path / "v12.2" / "bin"
        bin_dir.mkdir(parents=True)
        nvcc = bin_dir / "nvcc"
        nvcc.write_text("")
        runner = RecordingRunner(stdout="Cuda compilation tools, release 12.2, V12.2.140")
        result = ProbeExecutor(runner=runner).execute(
            scan((str(tmp_path),), "nvcc", run_args=("--version",)))
        assert result.ok
        assert runner.calls == [[str(nvcc), "--version"]]


# ---------------------------------------------------------------------------
# Environment-derived probes
# ---------------------------------------------------------------------------


class TestDerived:

    def test_value_is_output(self) -> None:
        result = ProbeExecutor().execute(derived("torch", lambda: "RTX 3090, 24576, 8.6"))
        assert result.ok
        assert result.output == "RTX 3090, 24576, 8.6"

    def test_none_is_failure(self) -> None:
        assert not ProbeExecutor().execute(derived("torch", lambda: None)).ok

    def test_raising_getter_is_failure(self) -> None:
        def getter():
            raise ValueError("driver mismatch")

        result = ProbeExecutor().execute(derived("torch", getter))
        assert not result.ok
        assert "driver mismatch" in result.reason


@pytest.mark.parametrize("returncode", [1, 127])
def test_failed_command_output_is_discarded(returncode) -> None:
    runner = RecordingRunner(stdout="12.2", returncode=returncode)
    result = ProbeExecutor(runner=runner).execute(command("nvcc", "--version"))
    assert not result.ok
    assert result.output == ""
