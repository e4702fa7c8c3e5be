"""Renderer-agnostic feature collections.

This module converts normalized rows and buffered trails into point and line
geometry the renderer can draw, and accumulates the geographic bounds used to
pick the initial camera.

The module contains:
- Data containers: Feature, FeatureCollection
- Builders: build_point_features, build_trail_features
- Bounds: accumulating longitude/latitude box

Notes
-----
Collections serialize to GeoJSON with :meth:`FeatureCollection.to_geojson`.
Point properties use the renderer-facing keys ``icon`` and ``iconSize``.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

from trailmap.rows import Coordinate, Row, row_identity, try_row_coordinates
from trailmap.trails import TrailBuffer

DEFAULT_ICON: str = "trailmap"
DEFAULT_ICON_SIZE: float = 0.5
CUSTOM_ICON_SIZE: float = 1.0


@dataclass(frozen=True)
class Feature:
    """Single geometric feature.

    Parameters
    ----------
    geometry_type : {"Point", "LineString"}
        GeoJSON geometry type.
    coordinates : tuple or list of tuple
        A ``(lng, lat)`` pair for points, a list of pairs for lines.
    properties : dict
        Display properties.
    id : int | None
        Feature id used by the renderer for interaction bookkeeping.
    """

    geometry_type: Literal["Point", "LineString"]
    coordinates: Any
    properties: dict[str, Any] = field(default_factory=dict)
    id: int | None = None

    def to_geojson(self) -> dict[str, Any]:
        if self.geometry_type == "Point":
            coordinates: Any = list(self.coordinates)
        else:
            coordinates = [list(c) for c in self.coordinates]
        out: dict[str, Any] = {
            "type": "Feature",
            "geometry": {"type": self.geometry_type, "coordinates": coordinates},
            "properties": dict(self.properties),
        }
        if self.id is not None:
            out["id"] = self.id
        return out


@dataclass(frozen=True)
class FeatureCollection:
    """Snapshot of features handed to the renderer for one source."""

    features: tuple[Feature, ...] = ()

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def coordinates(self) -> Iterator[Coordinate]:
        """Every coordinate pair in the collection."""
        for feature in self.features:
            if feature.geometry_type == "Point":
                yield feature.coordinates
            else:
                yield from feature.coordinates

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self.features],
        }


def icon_defaults(default_icon: str | None = None) -> dict[str, Any]:
    """Display defaults merged under every point's own properties.

    A custom icon is drawn at full size. The built-in marker image is
    rasterized at twice its display size and drawn at half scale.
    """
    if default_icon:
        return {"icon": default_icon, "iconSize": CUSTOM_ICON_SIZE}
    return {"icon": DEFAULT_ICON, "iconSize": DEFAULT_ICON_SIZE}


def build_point_features(
    rows: Sequence[Row],
    default_icon: str | None = None,
) -> FeatureCollection:
    """Build one point feature per row with usable geometry.

    Parameters
    ----------
    rows : sequence of Mapping
        Current batch of observations.
    default_icon : str | None, optional
        Icon name overriding the built-in marker.

    Returns
    -------
    FeatureCollection
        Points in input order. Each feature id is the row's position in
        ``rows``; rows without geometry are skipped without renumbering.

    Examples
    --------
    >>> collection = build_point_features([{"lat": 1, "lng": 2, "label": "A"}, {"x": 0}])
    >>> len(collection)
    1
    >>> collection.features[0].properties
    {'icon': 'trailmap', 'iconSize': 0.5, 'lat': 1, 'lng': 2, 'label': 'A'}
    """
    defaults = icon_defaults(default_icon)
    features = []
    for i, row in enumerate(rows):
        coordinate = try_row_coordinates(row)
        if coordinate is None:
            continue
        features.append(
            Feature(
                geometry_type="Point",
                coordinates=coordinate,
                properties={**defaults, **row},
                id=i,
            )
        )
    return FeatureCollection(tuple(features))


def build_trail_features(rows: Iterable[Row], buffer: TrailBuffer) -> FeatureCollection:
    """Build one line per entity in ``rows`` from its buffered trail.

    The coordinates come from ``buffer``, not from the batch, so each line
    spans the entity's recent history. Identities are emitted once each, in
    order of first appearance in ``rows``. A single buffered point yields a
    degenerate line that the renderer may skip.

    Parameters
    ----------
    rows : iterable of Mapping
        Current batch of observations.
    buffer : TrailBuffer
        Trail history, already updated with ``rows``.

    Returns
    -------
    FeatureCollection
        LineString features with an ``id`` property naming the entity.
    """
    seen: set[Hashable] = set()
    features = []
    for row in rows:
        identity = row_identity(row)
        if identity is None or identity in seen:
            continue
        seen.add(identity)
        trail = buffer.trail(identity)
        if not trail:
            continue
        features.append(
            Feature(
                geometry_type="LineString",
                coordinates=trail,
                properties={"id": identity},
            )
        )
    return FeatureCollection(tuple(features))


class Bounds:
    """Accumulating longitude/latitude bounding box.

    Examples
    --------
    >>> bounds = Bounds()
    >>> bounds.is_empty
    True
    >>> bounds.extend([(0.0, 0.0), (2.0, 4.0)])
    >>> bounds.center
    (1.0, 2.0)
    """

    def __init__(self) -> None:
        self._sw: NDArray[np.float64] = np.full(2, np.inf)
        self._ne: NDArray[np.float64] = np.full(2, -np.inf)

    def extend(self, coordinates: Iterable[Coordinate]) -> None:
        """Grow the box to include every coordinate pair."""
        points = np.asarray(list(coordinates), dtype=np.float64).reshape(-1, 2)
        if points.size == 0:
            return
        self._sw = np.minimum(self._sw, points.min(axis=0))
        self._ne = np.maximum(self._ne, points.max(axis=0))

    @property
    def is_empty(self) -> bool:
        return not bool(np.all(np.isfinite(self._sw)))

    @property
    def center(self) -> Coordinate | None:
        """Midpoint of the box, or None when nothing has been added."""
        if self.is_empty:
            return None
        mid = (self._sw + self._ne) / 2.0
        return (float(mid[0]), float(mid[1]))

    def as_tuple(self) -> tuple[Coordinate, Coordinate] | None:
        """``((west, south), (east, north))``, or None when empty."""
        if self.is_empty:
            return None
        return (
            (float(self._sw[0]), float(self._sw[1])),
            (float(self._ne[0]), float(self._ne[1])),
        )


__all__ = [
    "CUSTOM_ICON_SIZE",
    "DEFAULT_ICON",
    "DEFAULT_ICON_SIZE",
    "Bounds",
    "Feature",
    "FeatureCollection",
    "build_point_features",
    "build_trail_features",
    "icon_defaults",
]
