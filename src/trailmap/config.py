"""Map configuration.

Options arrive as a mapping using camelCase keys as sent by browser front ends
(``defaultIcon``, ``tooltips``, ...) or their snake_case spelling, and are
validated into frozen dataclasses by :meth:`MapOptions.from_mapping`.

Invalid values raise ``ValueError`` with a WHAT/WHY/HOW message.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from trailmap.scheduling import FRAME_DELAY

DEFAULT_STYLE: str = "mapbox://styles/mapbox/streets-v12"
DEFAULT_ZOOM: float = 15.0

_ALIASES: dict[str, str] = {
    "defaultIcon": "default_icon",
    "frameDelay": "frame_delay",
}


@dataclass(frozen=True)
class TrailOptions:
    """Trail recording settings.

    Parameters
    ----------
    len : int | None, optional
        Maximum number of buffered coordinates per entity. None keeps the
        full history.
    """

    len: int | None = None

    def __post_init__(self) -> None:
        if self.len is not None and (
            isinstance(self.len, bool) or not isinstance(self.len, int) or self.len < 1
        ):
            raise ValueError(
                f"WHAT: Invalid trail length {self.len!r}.\n"
                f"WHY: The trail cap is the number of coordinates kept per entity "
                f"and must be a positive integer.\n"
                f"HOW: Pass trail={{'len': 10}}, or trail=True for unbounded trails."
            )

    @classmethod
    def parse(cls, value: Any) -> TrailOptions | None:
        """Parse the ``trail`` option (``bool``, mapping or TrailOptions)."""
        if value is None or value is False:
            return None
        if value is True:
            return cls()
        if isinstance(value, TrailOptions):
            return value
        if isinstance(value, Mapping):
            return cls(len=value.get("len"))
        raise ValueError(
            f"WHAT: Invalid trail option {value!r}.\n"
            f"WHY: trail enables per-entity trail lines.\n"
            f"HOW: Use trail=True or trail={{'len': <positive int>}}."
        )


@dataclass(frozen=True)
class TooltipOptions:
    """Tooltip behaviour, consumed by the interaction layer only."""

    html: bool = False
    hover: bool = True

    @classmethod
    def parse(cls, value: Any) -> TooltipOptions:
        if value is None:
            return cls()
        if isinstance(value, TooltipOptions):
            return value
        if not isinstance(value, Mapping):
            raise ValueError(
                f"WHAT: Invalid tooltips option {value!r}.\n"
                f"HOW: Use tooltips={{'html': bool, 'hover': bool}}."
            )
        return cls(html=bool(value.get("html", False)), hover=bool(value.get("hover", True)))


@dataclass(frozen=True)
class MapOptions:
    """Validated options for a :class:`~trailmap.map.Map`.

    Parameters
    ----------
    replay : bool, default=False
        Play the data back bucket by bucket instead of showing it live.
    refresh : float | None, optional
        Seconds between refresh polls (live mode only).
    trail : TrailOptions | None, optional
        Trail settings. None disables trails.
    default_icon : str | None, optional
        Icon drawn for points without an ``icon`` property.
    tooltips : TooltipOptions
        Tooltip behaviour.
    style : str | None, optional
        Map style URL. None uses the default style.
    center : tuple of (float, float) | None, optional
        Initial ``(lng, lat)`` center. None centers on the data.
    zoom : float | None, optional
        Initial zoom. None fits the camera to the data.
    controls : bool, default=False
        Show navigation controls.
    frame_delay : float, default=FRAME_DELAY
        Seconds between replay frames.

    Examples
    --------
    >>> options = MapOptions.from_mapping({"trail": {"len": 2}, "defaultIcon": "bus"})
    >>> options.trail
    TrailOptions(len=2)
    >>> options.default_icon
    'bus'
    """

    replay: bool = False
    refresh: float | None = None
    trail: TrailOptions | None = None
    default_icon: str | None = None
    tooltips: TooltipOptions = field(default_factory=TooltipOptions)
    style: str | None = None
    center: tuple[float, float] | None = None
    zoom: float | None = None
    controls: bool = False
    frame_delay: float = FRAME_DELAY

    def __post_init__(self) -> None:
        if self.refresh is not None and (
            isinstance(self.refresh, bool)
            or not isinstance(self.refresh, (int, float))
            or not self.refresh > 0
        ):
            raise ValueError(
                f"WHAT: Invalid refresh interval {self.refresh!r}.\n"
                f"WHY: refresh is the number of seconds between polls of the data "
                f"source and must be positive.\n"
                f"HOW: Pass refresh=5 to poll every five seconds, or omit it."
            )
        if (
            isinstance(self.frame_delay, bool)
            or not isinstance(self.frame_delay, (int, float))
            or not self.frame_delay > 0
        ):
            raise ValueError(
                f"WHAT: Invalid frame_delay {self.frame_delay!r}.\n"
                f"HOW: Use a positive number of seconds (default {FRAME_DELAY})."
            )
        if self.center is not None and len(self.center) != 2:
            raise ValueError(
                f"WHAT: Invalid center {self.center!r}.\n"
                f"HOW: Pass center=(longitude, latitude)."
            )
        if self.replay and self.refresh is not None:
            warnings.warn(
                "refresh is ignored in replay mode; replay fetches its data once.",
                UserWarning,
                stacklevel=3,
            )

    @property
    def trail_cap(self) -> int | None:
        return self.trail.len if self.trail is not None else None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | MapOptions | None) -> MapOptions:
        """Build options from a mapping of named options.

        Unknown keys raise ``ValueError``. Zero or empty values for
        ``refresh`` and ``zoom`` are treated as absent.
        """
        if options is None:
            return cls()
        if isinstance(options, MapOptions):
            return options

        known = set(cls.__dataclass_fields__)
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(
                    f"WHAT: Unknown map option {key!r}.\n"
                    f"HOW: Valid options are {sorted(known)}."
                )
            kwargs[name] = value

        if "trail" in kwargs:
            kwargs["trail"] = TrailOptions.parse(kwargs["trail"])
        if "tooltips" in kwargs:
            kwargs["tooltips"] = TooltipOptions.parse(kwargs["tooltips"])
        for name in ("refresh", "zoom"):
            if name in kwargs and not kwargs[name]:
                kwargs[name] = None
        if kwargs.get("center") is not None:
            kwargs["center"] = tuple(kwargs["center"])
        if "replay" in kwargs:
            kwargs["replay"] = bool(kwargs["replay"])
        if "controls" in kwargs:
            kwargs["controls"] = bool(kwargs["controls"])
        return cls(**kwargs)


__all__ = [
    "DEFAULT_STYLE",
    "DEFAULT_ZOOM",
    "MapOptions",
    "TooltipOptions",
    "TrailOptions",
]
