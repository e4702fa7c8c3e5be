"""Hosting surfaces and target resolution."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from trailmap.errors import ResolutionError


@dataclass
class Surface:
    """Container a map is drawn into.

    When the map cannot be drawn, a human-readable message is written in its
    place and exposed as :attr:`text`.

    Parameters
    ----------
    id : str | None, optional
        Identifier used for registry lookups.
    text : str, default=""
        Text currently shown in place of the map.
    """

    id: str | None = None
    text: str = ""

    def show_error(self, message: str) -> None:
        self.text = message

    def clear(self) -> None:
        self.text = ""


def resolve_surface(
    target: Surface | str,
    surfaces: Mapping[str, Surface] | None = None,
) -> Surface:
    """Resolve a map target to a surface.

    Parameters
    ----------
    target : Surface or str
        A surface, or the id of one in ``surfaces``.
    surfaces : Mapping[str, Surface] | None, optional
        Known surfaces by id.

    Returns
    -------
    Surface

    Raises
    ------
    ResolutionError
        If ``target`` is an id with no matching surface.
    """
    if isinstance(target, Surface):
        return target
    surface = (surfaces or {}).get(target)
    if surface is None:
        raise ResolutionError(target)
    return surface


__all__ = ["Surface", "resolve_surface"]
