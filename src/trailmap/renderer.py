"""Interface to the external rendering engine.

trailmap does not draw anything itself. A renderer is created once per map
by a factory receiving the hosting surface and the initial
:class:`~trailmap.camera.CameraSetup`, and is then fed feature collections.

Source Names
------------
objects : symbol layer
    Point features for the current frame.
trails : line layer
    Trail lines, only when trails are enabled.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal, Protocol, runtime_checkable

from trailmap.camera import CameraSetup
from trailmap.features import FeatureCollection
from trailmap.surface import Surface

OBJECTS_SOURCE: str = "objects"
TRAILS_SOURCE: str = "trails"

LayerKind = Literal["symbol", "line"]


@runtime_checkable
class Renderer(Protocol):
    """Minimal rendering-engine contract.

    Examples
    --------
    Any object with these methods can be used::

        class LoggingRenderer:
            def is_ready(self):
                return True

            def on_ready(self, callback):
                callback()

            def add_source(self, name, collection, kind):
                print("add", name, kind)

            def set_feature_data(self, name, collection):
                print(name, len(collection))

            def remove(self):
                pass
    """

    def is_ready(self) -> bool:
        """Whether the first paint has finished."""
        ...

    def on_ready(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` once the first paint has finished."""
        ...

    def add_source(self, name: str, collection: FeatureCollection, kind: LayerKind) -> None:
        """Create a data source and the layer drawing it."""
        ...

    def set_feature_data(self, name: str, collection: FeatureCollection) -> None:
        """Replace the features of an existing source."""
        ...

    def remove(self) -> None:
        """Tear the renderer down."""
        ...


RendererFactory = Callable[[Surface, CameraSetup], Renderer]


__all__ = [
    "OBJECTS_SOURCE",
    "TRAILS_SOURCE",
    "LayerKind",
    "Renderer",
    "RendererFactory",
]
