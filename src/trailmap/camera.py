"""Initial camera and viewport setup.

The camera is chosen once, when the renderer is created. Explicit ``center``
and ``zoom`` options win; otherwise the view is fitted to the bounds of every
coordinate emitted while the map was built.
"""

from __future__ import annotations

from dataclasses import dataclass

from trailmap.config import DEFAULT_STYLE, DEFAULT_ZOOM, MapOptions
from trailmap.features import Bounds
from trailmap.rows import Coordinate

FIT_PADDING: int = 40
MAX_FIT_ZOOM: float = 15.0


@dataclass(frozen=True)
class CameraSetup:
    """One-time viewport configuration handed to the renderer factory.

    Attributes
    ----------
    style : str
        Map style URL.
    projection : str | None
        ``"mercator"`` for the default style, None to keep the style's own.
    center : tuple of (float, float)
        Initial ``(lng, lat)`` center.
    zoom : float
        Initial zoom.
    fit_bounds : tuple | None
        ``((west, south), (east, north))`` to fit the view to, or None when
        an explicit zoom was given or there is no geometry.
    fit_padding : int
        Pixel padding around ``fit_bounds``.
    max_zoom : float
        Upper zoom limit when fitting.
    controls : bool
        Show navigation controls (without compass).
    rotate : bool
        Allow rotation gestures. Always False.
    """

    style: str
    projection: str | None
    center: Coordinate
    zoom: float
    fit_bounds: tuple[Coordinate, Coordinate] | None = None
    fit_padding: int = FIT_PADDING
    max_zoom: float = MAX_FIT_ZOOM
    controls: bool = False
    rotate: bool = False


def build_camera(options: MapOptions, bounds: Bounds) -> CameraSetup:
    """Pick the initial camera from options and accumulated bounds.

    Parameters
    ----------
    options : MapOptions
        Map options.
    bounds : Bounds
        Coordinates emitted while building the first frame.

    Returns
    -------
    CameraSetup
    """
    center = options.center or bounds.center or (0.0, 0.0)
    return CameraSetup(
        style=options.style or DEFAULT_STYLE,
        projection=None if options.style else "mercator",
        center=(float(center[0]), float(center[1])),
        zoom=options.zoom or DEFAULT_ZOOM,
        fit_bounds=None if options.zoom else bounds.as_tuple(),
        controls=options.controls,
    )


__all__ = ["FIT_PADDING", "MAX_FIT_ZOOM", "CameraSetup", "build_camera"]
