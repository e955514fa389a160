"""Concurrent fan-out with per-branch outcomes"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar
import asyncio

T = TypeVar("T")


@dataclass
class BranchOutcome(Generic[T]):
    """Result of one branch: a value on success, the exception on failure"""
    index: int
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(branches: Sequence[Callable[[], Awaitable[T]]]) -> List[BranchOutcome[T]]:
    """
    Start every branch at once and wait for all of them to settle.

    Never short-circuits: a failing branch is recorded as an outcome, its
    siblings keep running. A branch that was cancelled on its own counts as
    a failed branch; cancelling the caller still raises out of ``gather``.
    Outcomes are returned in input order.
    """
    if not branches:
        return []
    results: List[Any] = await asyncio.gather(
        *(branch() for branch in branches),
        return_exceptions=True,
    )
    outcomes: List[BranchOutcome[T]] = []
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            outcomes.append(BranchOutcome(index=index, error=result))
        else:
            outcomes.append(BranchOutcome(index=index, value=result))
    return outcomes


async def wait_all(branches: Sequence[Callable[[], Awaitable[T]]]) -> List[T]:
    """Plain join: wait for every branch, re-raise the first failure"""
    outcomes = await settle_all(branches)
    for outcome in outcomes:
        if not outcome.ok:
            raise outcome.error
    return [outcome.value for outcome in outcomes]
