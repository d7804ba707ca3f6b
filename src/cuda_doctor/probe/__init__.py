"""Probing primitives: strategies, the executor, the fallback chain and parsers."""

from cuda_doctor.probe.chain import StrategyChain
from cuda_doctor.probe.executor import (
    ProbeExecutor,
    ProbeResult,
    Strategy,
    StrategyKind,
    command,
    derived,
    scan,
)

__all__ = [
    "ProbeExecutor",
    "ProbeResult",
    "Strategy",
    "StrategyChain",
    "StrategyKind",
    "command",
    "derived",
    "scan",
]
