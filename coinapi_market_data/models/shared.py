"""Shared domain models used across the CoinAPI data source."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum


class PeriodUnit(StrEnum):
    """Granularity units understood by the exchange rate history endpoint.

    The values double as the suffix of the wire identifier (``5SEC``,
    ``1HRS``...), so the set is closed.
    """

    SECOND = "SEC"
    MINUTE = "MIN"
    HOUR = "HRS"
    DAY = "DAY"

    @property
    def seconds(self) -> int:
        """Length of a single unit in seconds."""

        return _UNIT_SECONDS[self]


_UNIT_SECONDS: dict[PeriodUnit, int] = {
    PeriodUnit.SECOND: 1,
    PeriodUnit.MINUTE: 60,
    PeriodUnit.HOUR: 60 * 60,
    PeriodUnit.DAY: 60 * 60 * 24,
}


@dataclass(frozen=True, slots=True)
class Period:
    """A sampling period such as ``2SEC`` or ``12HRS``.

    Equality is structural (unit and count) while ordering follows the
    equivalent duration, so ``Period(MINUTE, 1)`` sorts before ``Period(HOUR, 1)``.
    """

    unit: PeriodUnit
    count: int

    def __post_init__(self) -> None:
        if not isinstance(self.unit, PeriodUnit):
            raise TypeError(f"unit must be a PeriodUnit, got {type(self.unit).__name__}")
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise TypeError("count must be an integer")
        if self.count <= 0:
            raise ValueError("count must be a positive integer")

    @property
    def seconds(self) -> int:
        return self.count * self.unit.seconds

    @property
    def duration(self) -> timedelta:
        """Return the span of this period."""

        return timedelta(seconds=self.seconds)

    @property
    def identifier(self) -> str:
        """Return the ``period_id`` token expected by the API (e.g. ``10MIN``)."""

        return f"{self.count}{self.unit.value}"

    @property
    def is_supported(self) -> bool:
        """Whether the API serves history at this period."""

        from ..core.periods import SUPPORTED_PERIODS

        return self in SUPPORTED_PERIODS

    def __str__(self) -> str:
        return self.identifier

    # Ordering compares durations only; equality stays structural.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.seconds < other.seconds

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.seconds <= other.seconds

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.seconds > other.seconds

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.seconds >= other.seconds


@dataclass(frozen=True, slots=True)
class AssetPair:
    """A base/quote asset pair such as ``BTC/USD``."""

    base: str
    quote: str

    def __post_init__(self) -> None:
        if not self.base or not self.quote:
            raise ValueError("AssetPair base and quote must be non-empty strings.")

    @property
    def path(self) -> str:
        """Return the URL path segment (e.g., ``BTC/USD``)."""

        return f"{self.base}/{self.quote}"

    def __str__(self) -> str:
        return self.path
