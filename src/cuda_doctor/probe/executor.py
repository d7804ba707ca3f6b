"""Probe executor: run one probing strategy and return its raw text.

A *strategy* is one concrete way of asking the machine about a capability:

- ``EXTERNAL_COMMAND``: run a program (``nvidia-smi``, ``nvcc --version``,
  ``python -c "import torch; ..."``) and take its stdout.
- ``FILESYSTEM_SCAN``: walk one or more directory trees for a named file
  (``cudnn_version.h``, ``version.json``) and take its contents, or run the
  located file (``nvcc`` found under a CUDA root).
- ``ENVIRONMENT_DERIVED``: call a small in-process function (e.g. ask an
  already-importable ``torch`` for its devices).

The executor knows nothing about capabilities or parsing.  It turns every
outcome, including exceptions and timeouts, into a :class:`ProbeResult`, so a
misbehaving strategy can never abort detection.
"""

from __future__ import annotations

import enum
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Tuple

from cuda_doctor._config import DEFAULT_PROBE_TIMEOUT
from cuda_doctor._exceptions import StrategyFailure
from cuda_doctor._logging import get_logger

logger = get_logger(__name__)


class StrategyKind(enum.Enum):
    """How a strategy obtains its raw text."""

    EXTERNAL_COMMAND = "external-command"
    FILESYSTEM_SCAN = "filesystem-scan"
    ENVIRONMENT_DERIVED = "environment-derived"


@dataclass(frozen=True)
class Strategy:
    """Description of one probing method.

    Only the fields relevant to ``kind`` are used.  ``parser`` turns the raw
    text into a normalized value; the chain runner falls back to its own
    parser when a strategy carries none.
    """
    kind: StrategyKind
    label: str
    command: Tuple[str, ...] = ()
    roots: Tuple[str, ...] = ()
    filename: str = ""
    recursive: bool = True
    run_args: Optional[Tuple[str, ...]] = None
    getter: Optional[Callable[[], Optional[str]]] = None
    parser: Optional[Callable[[str], Any]] = None


def command(*argv: str, parser: Optional[Callable[[str], Any]] = None,
            label: str = "") -> Strategy:
    """Shorthand for an ``EXTERNAL_COMMAND`` strategy."""
    return Strategy(StrategyKind.EXTERNAL_COMMAND, label or " ".join(argv),
                    command=tuple(argv), parser=parser)


def scan(roots: Tuple[str, ...], filename: str, *,
         recursive: bool = True,
         run_args: Optional[Tuple[str, ...]] = None,
         parser: Optional[Callable[[str], Any]] = None,
         label: str = "") -> Strategy:
    """Shorthand for a ``FILESYSTEM_SCAN`` strategy."""
    return Strategy(StrategyKind.FILESYSTEM_SCAN,
                    label or f"scan {filename} in {', '.join(roots)}",
                    roots=tuple(roots), filename=filename, recursive=recursive,
                    run_args=run_args, parser=parser)


def derived(label: str, getter: Callable[[], Optional[str]],
            parser: Optional[Callable[[str], Any]] = None) -> Strategy:
    """Shorthand for an ``ENVIRONMENT_DERIVED`` strategy."""
    return Strategy(StrategyKind.ENVIRONMENT_DERIVED, label, getter=getter,
                    parser=parser)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one strategy attempt: raw text on success, a reason otherwise."""
    ok: bool
    output: str = ""
    reason: str = ""

    @classmethod
    def success(cls, output: str) -> "ProbeResult":
        return cls(True, output=output)

    @classmethod
    def failure(cls, reason: str) -> "ProbeResult":
        return cls(False, reason=reason)


Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class ProbeExecutor:
    """Executes strategies sequentially, one process or scan at a time.

    Args:
        timeout: Upper bound in seconds for each external command.  A command
            that exceeds it is killed and reported as a failure.
        runner: The process runner, :func:`subprocess.run` by default.  Tests
            substitute a fake with the same signature.
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT,
                 runner: Optional[Runner] = None) -> None:
        self.timeout = timeout
        self._runner = runner or subprocess.run

    def execute(self, strategy: Strategy) -> ProbeResult:
        """Run ``strategy`` and return its raw output.  Never raises."""
        try:
            if strategy.kind is StrategyKind.EXTERNAL_COMMAND:
                return self.run_command(strategy.command)
            if strategy.kind is StrategyKind.FILESYSTEM_SCAN:
                return self._scan(strategy)
            return self._derive(strategy)
        except StrategyFailure as exc:
            return ProbeResult.failure(str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.debug("Strategy %r raised %s: %s", strategy.label,
                         type(exc).__name__, exc)
            return ProbeResult.failure(f"{type(exc).__name__}: {exc}")

    # -- external commands ----------------------------------------------------

    def run_command(self, argv: Tuple[str, ...]) -> ProbeResult:
        """Run ``argv`` and succeed iff it exits with status 0."""
        if not argv:
            return ProbeResult.failure("empty command")
        logger.debug("Running command: %s", " ".join(argv))
        try:
            proc = self._runner(
                list(argv),
                capture_output=True, text=True, errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.debug("Command timed out after %ss: %s", self.timeout, argv[0])
            return ProbeResult.failure(f"timed out after {self.timeout}s")
        except OSError as exc:
            logger.debug("Command could not start: %s", exc)
            return ProbeResult.failure(str(exc))

        stdout = proc.stdout or ""
        stderr = proc.stderr or ""
        logger.debug("Command stdout: %s", stdout.strip())
        logger.debug("Command stderr: %s", stderr.strip())
        if proc.returncode != 0:
            return ProbeResult.failure(
                f"exit code {proc.returncode}: {stderr.strip()[:200]}")
        return ProbeResult.success(stdout)

    # -- filesystem scans -----------------------------------------------------

    def _scan(self, strategy: Strategy) -> ProbeResult:
        for root in strategy.roots:
            logger.debug("Searching for %s in: %s", strategy.filename, root)
            for path in _find_files(root, strategy.filename, strategy.recursive):
                logger.debug("Found %s at: %s", strategy.filename, path)
                if strategy.run_args is not None:
                    result = self.run_command((path,) + tuple(strategy.run_args))
                else:
                    result = _read_text(path)
                if result.ok:
                    return result
        return ProbeResult.failure(f"{strategy.filename} not found")

    # -- in-process probes ----------------------------------------------------

    def _derive(self, strategy: Strategy) -> ProbeResult:
        if strategy.getter is None:
            raise StrategyFailure("no getter")
        value = strategy.getter()
        if not value:
            raise StrategyFailure(f"{strategy.label} returned no value")
        return ProbeResult.success(value)


def _find_files(root: str, filename: str, recursive: bool) -> Iterator[str]:
    """Yield paths named ``filename`` under ``root``, shallowest directories first."""
    if not root or not os.path.isdir(root):
        return
    if not recursive:
        candidate = os.path.join(root, filename)
        if os.path.isfile(candidate):
            yield candidate
        return
    # os.walk silently skips unreadable directories
    for dirpath, _dirnames, filenames in os.walk(root):
        if filename in filenames:
            yield os.path.join(dirpath, filename)


def _read_text(path: str) -> ProbeResult:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return ProbeResult.success(f.read())
    except OSError as exc:
        return ProbeResult.failure(str(exc))
