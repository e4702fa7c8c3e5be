"""The Map: lifecycle and update pipeline for one hosting surface.

A :class:`Map` resolves its data input, builds the first frame, creates the
renderer with a camera fitted to that frame, and then keeps the renderer fed:

- **live mode**: the first batch is shown as-is; with ``refresh`` the data
  input is re-resolved on a timer and each batch replaces the previous one
- **replay mode**: the data is grouped by timestamp once and played back one
  bucket per frame, halting on the last bucket

Every update passes through a readiness gate so that nothing reaches the
renderer before its data sources exist. With trails enabled, each update
first records the batch into the trail buffer and then draws one line per
entity from that buffer.

Examples
--------
>>> loop = asyncio.new_event_loop()
>>> m = Map(
...     Surface(id="fleet"),
...     "https://example.com/vehicles.json",
...     {"refresh": 5, "trail": {"len": 20}},
...     renderer_factory=make_renderer,
...     loop=loop,
... )
>>> m.stop_refresh()
>>> m.destroy()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx

from trailmap._timing import timing
from trailmap.camera import build_camera
from trailmap.config import MapOptions
from trailmap.errors import ErrorSink
from trailmap.features import (
    Bounds,
    FeatureCollection,
    build_point_features,
    build_trail_features,
)
from trailmap.gate import ReadinessGate
from trailmap.registry import default_registry
from trailmap.renderer import OBJECTS_SOURCE, TRAILS_SOURCE, Renderer, RendererFactory
from trailmap.rows import Row, try_row_coordinates
from trailmap.scheduling import RefreshPoller, ReplayScheduler, Timer
from trailmap.sources import DataInput, DataSourceAdapter, as_rows
from trailmap.surface import Surface, resolve_surface
from trailmap.timeline import Timeline, group_rows
from trailmap.trails import TrailBuffer

logger = logging.getLogger("trailmap.map")


class Map:
    """Map of moving entities drawn on a hosting surface.

    Parameters
    ----------
    target : Surface or str
        Surface to draw on, or its id in ``surfaces``.
    data : str, callable, sequence of Mapping, or DataFrame
        Rows, a URL returning a JSON array of rows, or a pull function (see
        :mod:`trailmap.sources`).
    options : Mapping or MapOptions, optional
        Map options (see :class:`~trailmap.config.MapOptions`).
    renderer_factory : Callable[[Surface, CameraSetup], Renderer]
        Creates the renderer once the first frame is built.
    surfaces : Mapping[str, Surface] | None, optional
        Known surfaces, used when ``target`` is an id.
    loop : asyncio.AbstractEventLoop | None, optional
        Loop for timers and fetches. Defaults to the running loop.
    http_client : httpx.AsyncClient | None, optional
        Client for URL inputs.

    Attributes
    ----------
    surface : Surface
        Hosting surface.
    options : MapOptions
        Validated options.
    renderer : Renderer | None
        The renderer, None before the first frame and after :meth:`destroy`.
    trails : TrailBuffer
        Per-entity trail history.
    bounds : Bounds
        Coordinates used to fit the initial camera.
    timeline : Timeline | None
        Replay timeline, None in live mode or before the data arrives.

    Raises
    ------
    ResolutionError
        If ``target`` is an id with no matching surface.
    """

    def __init__(
        self,
        target: Surface | str,
        data: DataInput,
        options: Mapping[str, Any] | MapOptions | None = None,
        *,
        renderer_factory: RendererFactory,
        surfaces: Mapping[str, Surface] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.surface = resolve_surface(target, surfaces)
        self.options = MapOptions.from_mapping(options)
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._renderer_factory = renderer_factory
        self._data = data

        self.renderer: Renderer | None = None
        self.trails = TrailBuffer()
        self.bounds = Bounds()
        self.timeline: Timeline | None = None

        self._gate = ReadinessGate()
        self._sink = ErrorSink(self.surface, self._loop)
        self._sources = DataSourceAdapter(self._loop, self._sink, http_client)
        self._replay_timer = Timer(self._loop)
        self._refresh_timer = Timer(self._loop)
        self._scheduler: ReplayScheduler | None = None
        self._poller: RefreshPoller | None = None
        self._closing: asyncio.Task | None = None
        self._destroyed = False

        if self.surface.id:
            default_registry().register(self.surface.id, self)

        if self.options.replay:
            self._sources.resolve(data, self._start_replay)
        else:
            self._sources.resolve(data, self._receive_live)
            if self.options.refresh:
                # Pull functions have no timeout of their own; a call that never
                # delivers is given up on after one interval.
                stale_after = None if isinstance(data, str) else self.options.refresh
                self._poller = RefreshPoller(
                    self.options.refresh,
                    self._poll,
                    self._refresh_timer,
                    stale_after=stale_after,
                )
                self._poller.start()

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def is_ready(self) -> bool:
        """Whether updates reach the renderer immediately."""
        return self._gate.is_ready

    @property
    def scheduler(self) -> ReplayScheduler | None:
        return self._scheduler

    @property
    def poller(self) -> RefreshPoller | None:
        return self._poller

    def update(self, rows: Sequence[Row] | Any) -> None:
        """Show a new batch of rows.

        The batch is recorded into the trail buffer and drawn once the
        renderer is ready; before that it is queued behind earlier updates.
        """
        rows = as_rows(rows)
        self._gate.submit(lambda: self._apply(rows))

    def stop_refresh(self) -> None:
        """Stop refresh polling. Safe to call repeatedly."""
        if self._poller is not None:
            self._poller.stop()

    def destroy(self) -> None:
        """Stop all timers and fetches and release the renderer.

        After this returns no callback of this map touches the renderer.
        Calling it again does nothing.

        An HTTP client created by the map is closed in a background task when
        the loop is running. Otherwise it stays open; await :meth:`aclose`
        instead to close it.
        """
        if self._destroyed:
            return
        self._destroyed = True

        self.stop_refresh()
        if self._scheduler is not None:
            self._scheduler.cancel()
        self._replay_timer.cancel()
        self._sources.cancel_pending()

        if self.renderer is not None:
            self.renderer.remove()
            self.renderer = None

        if self.surface.id:
            default_registry().unregister(self.surface.id, self)
        if self._loop.is_running():
            self._closing = self._loop.create_task(self._sources.aclose())
        else:
            logger.debug("Loop not running, HTTP client left open until aclose()")
        logger.info("Destroyed map on surface %r", self.surface.id)

    async def aclose(self) -> None:
        """Destroy the map and close any HTTP client it created."""
        self.destroy()
        if self._closing is not None:
            await self._closing
        else:
            await self._sources.aclose()

    # -- pipeline -----------------------------------------------------------

    def _receive_live(self, rows: list[Row]) -> None:
        if self._destroyed:
            return
        # A refresh tick may deliver data before the initial load does.
        if self.renderer is None:
            self._generate(rows)
        else:
            self.update(rows)

    def _poll(self) -> asyncio.Future | None:
        return self._sources.resolve(self._data, self._receive_live)

    def _start_replay(self, rows: list[Row]) -> None:
        if self._destroyed:
            return
        self.timeline = group_rows(rows)
        self.bounds.extend(
            xy for xy in map(try_row_coordinates, self.timeline.rows()) if xy is not None
        )
        self._generate(self.timeline.current)

        self._scheduler = ReplayScheduler(
            self.timeline, self.update, self._replay_timer, self.options.frame_delay
        )
        self._when_ready(self._scheduler.start)

    def _generate(self, rows: list[Row]) -> None:
        with timing("initial_frame", n_rows=len(rows)):
            points, trails = self._build_frame(rows)

        self.bounds.extend(points.coordinates())
        if trails is not None:
            self.bounds.extend(trails.coordinates())

        self.surface.clear()
        camera = build_camera(self.options, self.bounds)
        self.renderer = self._renderer_factory(self.surface, camera)
        logger.info(
            "Created renderer for surface %r with %d points", self.surface.id, len(points)
        )

        self._gate.submit(lambda: self._push(points, trails))
        self._when_ready(self._add_sources)

    def _add_sources(self) -> None:
        if self.renderer is None:
            return
        if self.options.trail is not None:
            self.renderer.add_source(TRAILS_SOURCE, FeatureCollection(), "line")
        self.renderer.add_source(OBJECTS_SOURCE, FeatureCollection(), "symbol")
        self._gate.open()

    def _apply(self, rows: list[Row]) -> None:
        if self._destroyed:
            return
        with timing("build_frame", n_rows=len(rows)):
            points, trails = self._build_frame(rows)
        self._push(points, trails)

    def _build_frame(self, rows: list[Row]) -> tuple[FeatureCollection, FeatureCollection | None]:
        trails = None
        if self.options.trail is not None:
            self.trails.record(rows, self.options.trail_cap)
            trails = build_trail_features(rows, self.trails)
        points = build_point_features(rows, self.options.default_icon)
        return points, trails

    def _push(self, points: FeatureCollection, trails: FeatureCollection | None) -> None:
        if self.renderer is None:
            return
        if trails is not None:
            self.renderer.set_feature_data(TRAILS_SOURCE, trails)
        self.renderer.set_feature_data(OBJECTS_SOURCE, points)

    def _when_ready(self, callback: Callable[[], None]) -> None:
        renderer = self.renderer
        if renderer is None:
            return

        def guarded() -> None:
            if not self._destroyed:
                callback()

        if renderer.is_ready():
            guarded()
        else:
            renderer.on_ready(guarded)


__all__ = ["Map"]
