"""Process-wide lookup of maps by surface id.

The registry exists for external lookup only; maps never consult it for
their own control flow. It is created when the first map registers, and a
map's entry is removed by :meth:`~trailmap.map.Map.destroy`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trailmap.map import Map

logger = logging.getLogger("trailmap.registry")


class MapRegistry:
    """Mapping from surface id to the map drawn on it."""

    def __init__(self) -> None:
        self._maps: dict[str, Map] = {}

    def register(self, surface_id: str, map_: Map) -> None:
        if surface_id in self._maps and self._maps[surface_id] is not map_:
            logger.info("Replacing map registered for surface %r", surface_id)
        self._maps[surface_id] = map_

    def unregister(self, surface_id: str, map_: Map) -> None:
        """Remove ``map_`` if it is still the map registered for the id."""
        if self._maps.get(surface_id) is map_:
            del self._maps[surface_id]

    def get(self, surface_id: str) -> Map | None:
        return self._maps.get(surface_id)

    def __len__(self) -> int:
        return len(self._maps)


_registry: MapRegistry | None = None


def default_registry() -> MapRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    if _registry is None:
        _registry = MapRegistry()
    return _registry


def get_map(surface_id: str) -> Map | None:
    """Look up the live map drawn on the surface with ``surface_id``.

    Examples
    --------
    >>> m = Map(Surface(id="fleet"), rows, renderer_factory=factory, loop=loop)
    >>> get_map("fleet") is m
    True
    """
    if _registry is None:
        return None
    return _registry.get(surface_id)


__all__ = ["MapRegistry", "default_registry", "get_map"]
