"""Strategy chain runner: ordered fallback across probing strategies.

For one capability the strategies are tried strictly in order.  The first
strategy whose output parses to a value wins and nothing after it runs.
Failed or unparseable attempts are discarded; the caller only learns
"found" (the value) or "not found" (``None``).  Results are never merged or
voted on across strategies.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, TypeVar

from cuda_doctor._logging import get_logger
from cuda_doctor.probe.executor import ProbeExecutor, Strategy

logger = get_logger(__name__)

T = TypeVar("T")


class StrategyChain:
    """Runs strategy sequences through a :class:`ProbeExecutor`."""

    def __init__(self, executor: Optional[ProbeExecutor] = None) -> None:
        self.executor = executor or ProbeExecutor()

    def run(self, strategies: Iterable[Strategy],
            parse: Optional[Callable[[str], Optional[T]]] = None) -> Optional[T]:
        """Return the first successfully parsed value, or ``None``.

        Args:
            strategies: Ordered strategies, most trusted first.
            parse: Parser applied to strategies that don't carry their own.

        Returns:
            The parsed value of the first strategy that yields one.
        """
        for strategy in strategies:
            result = self.executor.execute(strategy)
            if not result.ok:
                logger.debug("Strategy %r failed: %s", strategy.label, result.reason)
                continue

            parser = strategy.parser or parse
            if parser is None:
                logger.debug("Strategy %r has no parser, skipping", strategy.label)
                continue
            value = _safe_parse(parser, result.output, strategy.label)
            if value is None or value == "":
                logger.debug("Strategy %r produced no usable value", strategy.label)
                continue

            logger.debug("Strategy %r -> %r", strategy.label, value)
            return value

        return None


def _safe_parse(parser: Callable[[str], Any], text: str, label: str) -> Any:
    try:
        return parser(text)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Parser for %r raised %s: %s", label, type(exc).__name__, exc)
        return None
