"""Generic fallback and fan-out helpers used by the resolver and the aggregator."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Mapping, Optional, Sequence, TypeVar

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="combinators")

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one task: either a value or the exception it raised."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or_none(self) -> Optional[T]:
        return self.value if self.error is None else None


def _provider_name(provider: Callable) -> str:
    return getattr(provider, "name", None) or getattr(provider, "__name__", None) or repr(provider)


def first_success(providers: Sequence[Callable[[], Optional[T]]]) -> Optional[T]:
    """Call ``providers`` in order and return the first non-None result.

    A provider that raises or returns None is logged and skipped. Returns None
    when every provider is exhausted.
    """
    for provider in providers:
        name = _provider_name(provider)
        try:
            result = provider()
        except Exception as exc:
            logger.warning("Provider failed; trying next", extra={"provider": name, "error": repr(exc)})
            continue
        if result is not None:
            logger.debug("Provider succeeded", extra={"provider": name})
            return result
        logger.info("Provider returned no result; trying next", extra={"provider": name})
    return None


def settle_all(tasks: Mapping[str, Callable[[], T]]) -> Dict[str, Outcome[T]]:
    """Run every task concurrently and collect each one's outcome.

    Never raises for a task failure; a failed task's ``Outcome`` carries the
    exception instead. Keys of the result match the keys of ``tasks``.
    """
    if not tasks:
        return {}

    outcomes: Dict[str, Outcome[T]] = {}
    with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="settle") as pool:
        futures = {key: pool.submit(fn) for key, fn in tasks.items()}
        for key, future in futures.items():
            try:
                outcomes[key] = Outcome(value=future.result())
            except Exception as exc:
                outcomes[key] = Outcome(error=exc)
    return outcomes
