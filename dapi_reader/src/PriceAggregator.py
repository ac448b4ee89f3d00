"""PriceAggregator: Median and mean over decoded Beacon prices.

Algorithm:
    1. Collect the prices decoded from every Beacon that answered
    2. Return the empty result if none did
    3. Otherwise compute median, mean and sample count

.. code-block:: python

    >>> result = aggregate([3000.0, 3010.0, 2990.0])
    >>> result.median
    3000.0
    >>> result.sample_count
    3
    >>> aggregate([]).success
    False
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from statistics import fmean as _fmean
from statistics import median as _median


def median(values: Iterable[float]) -> float | None:
    """Median of the values, averaging the two middle values for even counts.

    :param values: Prices to aggregate.
    :returns: Median, or None if values is empty.

    .. code-block:: python

        >>> median([1.0, 2.0, 3.0, 4.0])
        2.5
        >>> median([]) is None
        True
    """
    ordered = sorted(float(v) for v in values)
    if not ordered:
        return None
    return _median(ordered)


def mean(values: Iterable[float]) -> float | None:
    """Arithmetic mean of the values.

    :param values: Prices to aggregate.
    :returns: Mean, or None if values is empty.
    """
    items = [float(v) for v in values]
    if not items:
        return None
    return _fmean(items)


@dataclass(frozen=True)
class AggregateResult:
    """Result of aggregating Beacon prices.

    :ivar median: Median price, or None when no Beacon produced a price.
    :ivar mean: Mean price, or None when no Beacon produced a price.
    :ivar sample_count: Number of prices aggregated.
    """

    median: float | None
    mean: float | None
    sample_count: int

    @classmethod
    def empty(cls) -> AggregateResult:
        """Return the no-data result."""
        return cls(median=None, mean=None, sample_count=0)

    @property
    def success(self) -> bool:
        """Check if at least one price was aggregated."""
        return self.sample_count > 0


def aggregate(prices: Iterable[float]) -> AggregateResult:
    """Aggregate prices into median, mean and sample count.

    :param prices: Decoded prices from the Beacons that answered.
    :returns: AggregateResult, empty if prices is empty.
    """
    values = [float(p) for p in prices]
    if not values:
        return AggregateResult.empty()

    return AggregateResult(
        median=median(values),
        mean=mean(values),
        sample_count=len(values),
    )
