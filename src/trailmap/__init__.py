"""Temporal data pipeline for maps of moving entities.

**trailmap** turns rows of geolocated observations into renderer-ready
feature collections. It can replay recorded history one timestamp at a time,
poll a live source at an interval, and draw bounded per-entity trails. The
map rendering engine itself is external and plugged in through the
:class:`~trailmap.renderer.Renderer` protocol.

Core Classes (Top-Level Exports)
--------------------------------
Map : Map lifecycle and update pipeline
    ``Map(target, data, options, renderer_factory=...)``; ``destroy()``,
    ``stop_refresh()``, ``update(rows)``.
MapOptions : Validated map options
Surface : Hosting surface the map is drawn on
get_map : Look up the live map drawn on a surface id
RowsLoaded, PullFailed : Results delivered by pull functions

Submodule Organization
----------------------
rows : Coordinate, timestamp and identity normalization
timeline : Temporal grouping for replay
trails : Trail buffer
features : Point/line feature collections and bounds
scheduling : Timers, replay scheduler, refresh poller
sources : Data source resolution (rows, URL, pull function)
gate : Readiness gate
errors : Error kinds and the error sink

    >>> from trailmap.timeline import group_rows
    >>> from trailmap.features import build_point_features
"""

from trailmap.config import MapOptions, TooltipOptions, TrailOptions
from trailmap.errors import (
    FetchError,
    HandlerError,
    NormalizationError,
    ResolutionError,
    TrailmapError,
)
from trailmap.map import Map
from trailmap.registry import get_map
from trailmap.sources import PullFailed, RowsLoaded
from trailmap.surface import Surface

__all__ = [
    "FetchError",
    "HandlerError",
    "Map",
    "MapOptions",
    "NormalizationError",
    "PullFailed",
    "ResolutionError",
    "RowsLoaded",
    "Surface",
    "TooltipOptions",
    "TrailOptions",
    "TrailmapError",
    "get_map",
]
