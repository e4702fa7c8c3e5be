"""Bounded per-entity trail history."""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable, Iterable, Iterator

from trailmap.rows import Coordinate, Row, row_identity, try_row_coordinates


class TrailBuffer:
    """Recent coordinate history for each entity identity.

    Each identity maps to a sequence of coordinates, oldest first. When a
    cap is given to :meth:`record`, the oldest coordinates are dropped until
    the sequence fits. The buffer lives as long as its map and is never
    cleared.

    Examples
    --------
    >>> buffer = TrailBuffer()
    >>> for xy in [(0, 0), (1, 1), (2, 2)]:
    ...     buffer.record([{"id": "a", "lng": xy[0], "lat": xy[1]}], cap=2)
    >>> buffer.trail("a")
    [(1.0, 1.0), (2.0, 2.0)]
    """

    def __init__(self) -> None:
        self._trails: dict[Hashable, deque[Coordinate]] = {}

    def record(self, rows: Iterable[Row], cap: int | None = None) -> None:
        """Append each row's coordinate to its identity's trail.

        Parameters
        ----------
        rows : iterable of Mapping
            Observations to record. Rows without an identity or without
            usable geometry are skipped.
        cap : int | None, optional
            Maximum trail length. None allows unbounded growth.
        """
        for row in rows:
            identity = row_identity(row)
            coordinate = try_row_coordinates(row)
            if identity is None or coordinate is None:
                continue

            trail = self._trails.setdefault(identity, deque())
            trail.append(coordinate)
            if cap is not None:
                while len(trail) > cap:
                    trail.popleft()

    def trail(self, identity: Hashable) -> list[Coordinate]:
        """Buffered coordinates for ``identity``, oldest first."""
        return list(self._trails.get(identity, ()))

    def identities(self) -> list[Hashable]:
        """Identities in order of first appearance."""
        return list(self._trails)

    def __contains__(self, identity: object) -> bool:
        return identity in self._trails

    def __len__(self) -> int:
        return len(self._trails)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._trails)


__all__ = ["TrailBuffer"]
