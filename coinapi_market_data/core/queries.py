"""Query helper objects for the exchange rate history endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from ..models.shared import AssetPair, Period
from .errors import PeriodNotSupportedError
from .periods import NearestMismatch, resolve_exact, resolve_nearest, resolve_strict

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 100_000


@dataclass(frozen=True, slots=True)
class ExchangeRateWindow:
    """Represents an exchange rate history query window.

    ``period`` may be given as a :class:`Period` or as a ``timedelta``. A
    ``timedelta`` is mapped onto the nearest supported period unless
    ``strict_period`` is set, in which case only exact matches are accepted.
    """

    pair: AssetPair
    period: Period | timedelta
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int = DEFAULT_LIMIT
    strict_period: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError("limit must be a positive integer")
        if self.limit > MAX_LIMIT:
            raise ValueError(f"limit cannot exceed {MAX_LIMIT} entries")
        # Naive bounds are UTC; store both as aware UTC so they compare.
        object.__setattr__(self, "start_time", _as_utc(self.start_time))
        object.__setattr__(self, "end_time", _as_utc(self.end_time))
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        object.__setattr__(self, "period", self._resolve_period(self.period))

    def _resolve_period(self, value: Period | timedelta) -> Period:
        if isinstance(value, Period):
            if not value.is_supported:
                raise PeriodNotSupportedError(
                    f"Period {value} is not served by the history endpoint",
                    requested=value.duration,
                    closest=resolve_nearest(value.duration),
                )
            return value
        if self.strict_period:
            return resolve_strict(value)
        resolution = resolve_exact(value)
        if isinstance(resolution, NearestMismatch):
            logger.info("Approximating requested period %s with %s", value, resolution.closest)
        return resolution.period


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
