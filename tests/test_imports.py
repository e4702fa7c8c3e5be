"""Import tests for the trailmap package layout.

Verifies that every submodule imports on its own (no circular imports) and
that the top-level package exports only the public entry points.
"""

import importlib

import pytest

SUBMODULES = [
    "trailmap.camera",
    "trailmap.config",
    "trailmap.errors",
    "trailmap.features",
    "trailmap.gate",
    "trailmap.map",
    "trailmap.registry",
    "trailmap.renderer",
    "trailmap.rows",
    "trailmap.scheduling",
    "trailmap.sources",
    "trailmap.surface",
    "trailmap.timeline",
    "trailmap.trails",
]


class TestSubmoduleImports:
    @pytest.mark.parametrize("name", SUBMODULES)
    def test_submodule_importable(self, name):
        module = importlib.import_module(name)
        assert module is not None

    @pytest.mark.parametrize("name", SUBMODULES)
    def test_all_exports_exist(self, name):
        module = importlib.import_module(name)
        for export in getattr(module, "__all__", []):
            assert hasattr(module, export), f"{name}.{export} is listed in __all__"


class TestTopLevelExports:
    def test_public_entry_points(self):
        import trailmap

        assert set(trailmap.__all__) == {
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
        }

    def test_error_hierarchy(self):
        import trailmap

        for name in ("FetchError", "HandlerError", "NormalizationError", "ResolutionError"):
            assert issubclass(getattr(trailmap, name), trailmap.TrailmapError)
