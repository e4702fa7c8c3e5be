"""Shared test fixtures for the trailmap test suite.

Fixture Naming Convention
=========================

- ``loop``: a fresh asyncio event loop, closed after the test
- ``renderer_factory``: factory building :class:`FakeRenderer` instances that
  are *not* ready until ``fire_ready()`` is called
- ``ready_renderer_factory``: same, but renderers report ready immediately
- Row fixtures are named after what they contain (``replay_rows``, ...)

Asyncio Usage
=============
Tests drive the loop explicitly with :func:`run_for`; no asyncio pytest
plugin is required. Replay tests use a tiny ``frame_delay`` so that whole
timelines play within a few milliseconds.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable

import pytest
from hypothesis import Phase, Verbosity, settings

from trailmap.camera import CameraSetup
from trailmap.features import FeatureCollection
from trailmap.surface import Surface

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=10,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
    verbosity=Verbosity.quiet,
)

settings.register_profile(
    "dev",
    max_examples=25,
    deadline=5000,
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "thorough",
    max_examples=100,
    deadline=None,
    verbosity=Verbosity.verbose,
)

_profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(_profile)

# =============================================================================
# Test Configuration Constants
# =============================================================================

# Replay frame delay used by tests (seconds)
FAST_FRAME_DELAY = 0.001
# Enough wall time for a short timeline to finish at FAST_FRAME_DELAY
SETTLE_TIME = 0.1


def run_for(loop: asyncio.AbstractEventLoop, seconds: float = 0.0) -> None:
    """Run ``loop`` for ``seconds`` of wall time (one iteration for 0)."""
    loop.run_until_complete(asyncio.sleep(seconds))


class FakeRenderer:
    """In-memory renderer recording every call it receives."""

    def __init__(self, surface: Surface, camera: CameraSetup, ready: bool = False) -> None:
        self.surface = surface
        self.camera = camera
        self.calls: list[tuple] = []
        self.sources: dict[str, list[FeatureCollection]] = {}
        self.removed = False
        self._ready = ready
        self._callbacks: list[Callable[[], None]] = []

    def is_ready(self) -> bool:
        return self._ready

    def on_ready(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def fire_ready(self) -> None:
        self._ready = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_source(self, name: str, collection: FeatureCollection, kind: str) -> None:
        if self.removed:
            raise AssertionError("add_source on a removed renderer")
        self.calls.append(("add", name, kind))
        self.sources[name] = []

    def set_feature_data(self, name: str, collection: FeatureCollection) -> None:
        if self.removed:
            raise AssertionError("set_feature_data on a removed renderer")
        if name not in self.sources:
            raise AssertionError(f"set_feature_data before add_source({name!r})")
        self.calls.append(("set", name, len(collection)))
        self.sources[name].append(collection)

    def remove(self) -> None:
        self.removed = True

    def frames(self, name: str = "objects") -> list[FeatureCollection]:
        return self.sources.get(name, [])


class RendererFactory:
    """Renderer factory remembering every renderer it created."""

    def __init__(self, ready: bool = False) -> None:
        self.ready = ready
        self.created: list[FakeRenderer] = []

    def __call__(self, surface: Surface, camera: CameraSetup) -> FakeRenderer:
        renderer = FakeRenderer(surface, camera, ready=self.ready)
        self.created.append(renderer)
        return renderer

    @property
    def renderer(self) -> FakeRenderer:
        assert len(self.created) == 1, f"expected one renderer, got {len(self.created)}"
        return self.created[0]


# =============================================================================
# --- Fixtures ---
# =============================================================================


@pytest.fixture
def loop():
    """Fresh event loop for a single test."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def run(loop) -> Callable[..., None]:
    """``run(seconds)`` drives the test loop for that much wall time."""

    def _run(seconds: float = 0.0) -> None:
        run_for(loop, seconds)

    return _run


@pytest.fixture
def frame_delay() -> float:
    return FAST_FRAME_DELAY


@pytest.fixture
def settle_time() -> float:
    return SETTLE_TIME


@pytest.fixture
def renderer_factory() -> RendererFactory:
    return RendererFactory(ready=False)


@pytest.fixture
def ready_renderer_factory() -> RendererFactory:
    return RendererFactory(ready=True)


@pytest.fixture
def replay_rows() -> list[dict]:
    """Three rows in two buckets: two at t=1000, one at t=2000."""
    return [
        {"lat": 1, "lng": 2, "time": 1000},
        {"lat": 3, "lng": 4, "time": 1000},
        {"lat": 5, "lng": 6, "time": 2000},
    ]


@pytest.fixture
def live_rows() -> list[dict]:
    return [
        {"id": "a", "latitude": 52.52, "longitude": 13.40, "label": "A"},
        {"id": "b", "lat": 48.85, "lon": 2.35, "label": "B"},
    ]
