"""Explicit error recovery for pipeline steps"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Tuple, Type, TypeVar

from premium_analyzer.domain.exceptions import DomainException

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a recoverable step: the value, or the fallback plus the error"""

    ok: bool
    value: Optional[T] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class RecoveryPolicy:
    """Which failures a step may absorb and what it yields instead"""

    name: str
    recover_from: Tuple[Type[Exception], ...] = (DomainException,)
    fallback: Any = None
    log_level: int = logging.WARNING


def with_recovery(operation: Callable[..., T], policy: RecoveryPolicy) -> Callable[..., Outcome[T]]:
    """
    Wrap an operation so that the failures named by the policy become Outcomes.

    Exceptions outside `policy.recover_from` propagate unchanged.

    Example:
        safe_parse = with_recovery(parse_quote, RecoveryPolicy(name="parse_quote"))
        outcome = safe_parse({"rate": "n/a"})
        outcome.ok  # False, outcome.error holds the InvalidRecordError
    """

    @functools.wraps(operation)
    def run(*args: Any, **kwargs: Any) -> Outcome[T]:
        try:
            return Outcome(ok=True, value=operation(*args, **kwargs))
        except policy.recover_from as e:
            logger.log(
                policy.log_level,
                f"{policy.name} failed: {e}",
                extra={"step": policy.name, "error_type": type(e).__name__},
            )
            return Outcome(ok=False, value=policy.fallback, error=e)

    return run
