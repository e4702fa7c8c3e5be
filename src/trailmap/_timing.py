"""Frame build timing for the map update pipeline.

Each frame handed to the renderer is built from a batch of rows: the trail
buffer is recorded, trail lines are drawn from it and point features are
built. Setting ``TRAILMAP_TIMING`` reports how long each of those builds
took, so slow batches show up while a replay or refresh is running::

    TRAILMAP_TIMING=1 python serve_map.py

Stages
------
initial_frame
    The first frame, built before the renderer exists.
build_frame
    Every later frame (updates, refresh batches, replay buckets).

One line per build is printed to stderr, numbered per stage.
"""

from __future__ import annotations

import contextlib
import os
import sys
import time
from collections import Counter
from collections.abc import Generator

_TIMING_ENABLED = bool(os.environ.get("TRAILMAP_TIMING"))

# Builds reported so far, per stage.
_builds: Counter[str] = Counter()


@contextlib.contextmanager
def timing(stage: str, n_rows: int | None = None) -> Generator[None, None, None]:
    """Report how long one frame build took.

    Does nothing unless ``TRAILMAP_TIMING`` is set.

    Parameters
    ----------
    stage : str
        Pipeline stage, ``"initial_frame"`` or ``"build_frame"``.
    n_rows : int | None, optional
        Size of the batch being built, included in the report.

    Examples
    --------
    >>> with timing("build_frame", n_rows=len(rows)):
    ...     points = build_point_features(rows)
    # Output (when TRAILMAP_TIMING=1):
    # [TIMING] build_frame #4: 0.12 ms (250 rows)
    """
    if not _TIMING_ENABLED:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        _builds[stage] += 1
        size = f" ({n_rows} rows)" if n_rows is not None else ""
        print(
            f"[TIMING] {stage} #{_builds[stage]}: {elapsed_ms:.2f} ms{size}",
            file=sys.stderr,
        )


def is_timing_enabled() -> bool:
    """Whether frame build times are being reported."""
    return _TIMING_ENABLED
