"""Temporal grouping of rows into replay buckets.

Replay mode groups every row by its normalized integer timestamp. Each
distinct timestamp becomes one bucket, and the sorted timestamps form the
:class:`Timeline` that the replay scheduler walks through one bucket per
frame.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from trailmap.rows import Row, row_timestamp

logger = logging.getLogger("trailmap.replay")


@dataclass
class Timeline:
    """Sorted bucket timestamps with a forward-only playback index.

    Parameters
    ----------
    timestamps : list of int
        Distinct bucket timestamps in ascending order.
    buckets : dict of int to list of Mapping
        Rows for each timestamp, in input order.

    Attributes
    ----------
    index : int
        Current playback position. Starts at 0 and only moves forward.

    Examples
    --------
    >>> timeline = group_rows(
    ...     [{"lat": 1, "lng": 2, "time": 1000}, {"lat": 5, "lng": 6, "time": 2000}]
    ... )
    >>> timeline.timestamps
    [1000, 2000]
    >>> timeline.advance()
    [{'lat': 5, 'lng': 6, 'time': 2000}]
    >>> timeline.is_last
    True
    """

    timestamps: list[int]
    buckets: dict[int, list[Row]]
    index: int = field(default=0)

    def __len__(self) -> int:
        return len(self.timestamps)

    def bucket(self, position: int) -> list[Row]:
        """Rows of the bucket at ``position`` in the timeline."""
        return self.buckets[self.timestamps[position]]

    @property
    def current(self) -> list[Row]:
        """Rows of the bucket at the playback index (empty if no buckets)."""
        if not self.timestamps:
            return []
        return self.bucket(self.index)

    @property
    def current_timestamp(self) -> int | None:
        if not self.timestamps:
            return None
        return self.timestamps[self.index]

    @property
    def is_last(self) -> bool:
        """Whether the playback index is on the final bucket."""
        return self.index >= len(self.timestamps) - 1

    def advance(self) -> list[Row]:
        """Move forward one bucket and return its rows.

        Raises
        ------
        IndexError
            If the index is already on the final bucket.
        """
        if self.is_last:
            raise IndexError(
                f"Timeline exhausted: index {self.index} is the final bucket "
                f"of {len(self.timestamps)}."
            )
        self.index += 1
        return self.current

    def rows(self) -> list[Row]:
        """All grouped rows, in timeline order."""
        return [row for ts in self.timestamps for row in self.buckets[ts]]


def group_rows(rows: Iterable[Row]) -> Timeline:
    """Group rows into buckets keyed by normalized timestamp.

    Parameters
    ----------
    rows : iterable of Mapping
        Observations with a ``time`` field. Rows whose time is missing, falsy
        or unparsable are dropped.

    Returns
    -------
    Timeline
        Timeline positioned at its first bucket.
    """
    buckets: dict[int, list[Row]] = {}
    dropped = 0
    for row in rows:
        ts = row_timestamp(row)
        if ts is None:
            dropped += 1
            continue
        buckets.setdefault(ts, []).append(row)

    timestamps = sorted(buckets)
    logger.debug(
        "Grouped rows into %d buckets (%d rows without a usable time dropped)",
        len(timestamps),
        dropped,
    )
    return Timeline(timestamps=timestamps, buckets=buckets)


__all__ = ["Timeline", "group_rows"]
