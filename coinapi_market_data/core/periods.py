"""Supported history periods and nearest-period resolution.

CoinAPI only serves exchange rate history at a fixed set of periods. Callers
usually think in arbitrary durations ("40 minutes"), so this module maps a
duration onto the closest supported :class:`Period`:

* an exact hit yields :class:`ExactMatch`;
* anything else yields :class:`NearestMismatch`, which carries the requested
  duration next to the period that will be used instead.

Below the smallest period the result clamps to ``1SEC``, above the largest to
``10DAY``. A duration exactly halfway between two periods resolves to the
longer one.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from ..models.shared import Period, PeriodUnit
from .errors import PeriodNotSupportedError

logger = logging.getLogger(__name__)


def _periods(unit: PeriodUnit, *counts: int) -> tuple[Period, ...]:
    return tuple(Period(unit, count) for count in counts)


# Declaration order must be ascending by duration; PeriodResolver enforces it.
SUPPORTED_PERIODS: tuple[Period, ...] = (
    *_periods(PeriodUnit.SECOND, 1, 2, 3, 4, 5, 6, 10, 15, 20, 30),
    *_periods(PeriodUnit.MINUTE, 1, 2, 3, 4, 5, 6, 10, 15, 20, 30),
    *_periods(PeriodUnit.HOUR, 1, 2, 3, 4, 6, 8, 12),
    *_periods(PeriodUnit.DAY, 1, 2, 3, 5, 7, 10),
)

_IDENTIFIER_RE = re.compile(r"^([1-9][0-9]*)(SEC|MIN|HRS|DAY)$")


@dataclass(frozen=True, slots=True)
class ExactMatch:
    """The requested duration is served natively."""

    period: Period


@dataclass(frozen=True, slots=True)
class NearestMismatch:
    """The requested duration is not supported; ``closest`` is used instead."""

    requested: timedelta
    closest: Period

    @property
    def period(self) -> Period:
        return self.closest


Resolution = ExactMatch | NearestMismatch


class PeriodResolver:
    """Binary-search lookup over an ascending catalog of periods."""

    def __init__(self, catalog: Sequence[Period]) -> None:
        if not catalog:
            raise ValueError("period catalog must not be empty")
        durations = tuple(period.duration for period in catalog)
        for previous, current in zip(durations, durations[1:]):
            if not previous < current:
                raise ValueError(
                    f"period catalog must be strictly ascending, got {previous} before {current}"
                )
        self._periods: tuple[Period, ...] = tuple(catalog)
        self._durations: tuple[timedelta, ...] = durations

    @property
    def periods(self) -> tuple[Period, ...]:
        return self._periods

    def resolve_exact(self, duration: timedelta) -> Resolution:
        """Return the catalog period for ``duration``.

        Yields :class:`ExactMatch` when ``duration`` equals a catalog entry and
        :class:`NearestMismatch` otherwise. Negative durations raise ``ValueError``.
        """

        _check_duration(duration)
        durations = self._durations
        index = bisect_left(durations, duration)
        if index < len(durations) and durations[index] == duration:
            return ExactMatch(self._periods[index])

        if index == 0:
            closest = self._periods[0]
        elif index == len(durations):
            closest = self._periods[-1]
        else:
            lower_distance = duration - durations[index - 1]
            higher_distance = durations[index] - duration
            # Ties go to the longer period.
            if lower_distance < higher_distance:
                closest = self._periods[index - 1]
            else:
                closest = self._periods[index]
        logger.debug("No exact period for %s, nearest is %s", duration, closest)
        return NearestMismatch(requested=duration, closest=closest)

    def resolve_nearest(self, duration: timedelta) -> Period:
        """Return the closest catalog period, discarding whether it was exact."""

        return self.resolve_exact(duration).period

    def resolve_strict(self, duration: timedelta) -> Period:
        """Return the exact catalog period or raise :class:`PeriodNotSupportedError`."""

        resolution = self.resolve_exact(duration)
        if isinstance(resolution, NearestMismatch):
            raise PeriodNotSupportedError(
                f"No supported period matches {duration}; nearest is {resolution.closest}",
                requested=resolution.requested,
                closest=resolution.closest,
            )
        return resolution.period


def _check_duration(duration: timedelta) -> None:
    if not isinstance(duration, timedelta):
        raise TypeError(f"duration must be a timedelta, got {type(duration).__name__}")
    if duration < timedelta(0):
        raise ValueError(f"duration must not be negative, got {duration}")


def parse_period(identifier: str) -> Period:
    """Parse a ``period_id`` token such as ``5SEC`` or ``12HRS``.

    Well-formed tokens parse even when the API does not serve them; check
    :attr:`Period.is_supported` when that matters.
    """

    match = _IDENTIFIER_RE.match(identifier.strip()) if isinstance(identifier, str) else None
    if match is None:
        raise PeriodNotSupportedError(f"Malformed period identifier: {identifier!r}")
    count, suffix = match.groups()
    return Period(PeriodUnit(suffix), int(count))


_resolver = PeriodResolver(SUPPORTED_PERIODS)


def resolve_exact(duration: timedelta) -> Resolution:
    """Resolve ``duration`` against the supported catalog."""

    return _resolver.resolve_exact(duration)


def resolve_nearest(duration: timedelta) -> Period:
    """Return the supported period closest to ``duration``."""

    return _resolver.resolve_nearest(duration)


def resolve_strict(duration: timedelta) -> Period:
    """Return the supported period equal to ``duration`` or raise."""

    return _resolver.resolve_strict(duration)
