"""Per-provider call outcome.

Every provider invocation made by the manager is normalised into either a
``Success`` carrying the value or a ``Failure`` carrying the reason, so
that aggregation never has to inspect raw exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    provider_id: str
    value: T
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    provider_id: str
    reason: str
    error_type: str = ""
    timed_out: bool = False
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Success[T], Failure]
