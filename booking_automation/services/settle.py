"""
Run independent steps without letting one failure stop the rest
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

Task = tuple[str, Callable[[], Any]]


@dataclass(frozen=True)
class Settled:
    label: str
    ok: bool
    value: Any = None
    error: Exception | None = None


def settle_all(tasks: Iterable[Task]) -> list[Settled]:
    """
    Run each (label, callable) in order and collect every outcome.

    Exceptions are logged and recorded, never raised.
    """
    results: list[Settled] = []
    for label, task in tasks:
        try:
            results.append(Settled(label=label, ok=True, value=task()))
        except Exception as e:
            logger.warning("Step %r failed: %s", label, e)
            results.append(Settled(label=label, ok=False, error=e))
    return results
