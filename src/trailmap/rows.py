"""Row normalization: coordinates, timestamps and entity identity.

A row is an open-ended mapping describing one observation of an entity. This
module extracts the pieces of a row that the pipeline relies on:

- a ``(longitude, latitude)`` pair, accepting several field spellings
- an integer epoch-seconds timestamp, for replay grouping
- the entity identity used to associate successive observations

Rows are never modified.

Notes
-----
Coordinates are passed through as given. No reprojection or wrapping is
performed, and ``0`` is a valid coordinate value.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Hashable, Mapping
from numbers import Real
from typing import Any

import numpy as np
import pandas as pd

from trailmap.errors import NormalizationError

Row = Mapping[str, Any]
Coordinate = tuple[float, float]

LONGITUDE_FIELDS: tuple[str, ...] = ("longitude", "lng", "lon")
LATITUDE_FIELDS: tuple[str, ...] = ("latitude", "lat")
TIME_FIELD: str = "time"
IDENTITY_FIELD: str = "id"


def _as_degrees(value: Any) -> float | None:
    """Coerce a field value to a finite float, or None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(number):
        return None
    return number


def _first_usable(row: Row, fields: tuple[str, ...]) -> float | None:
    for name in fields:
        if name in row:
            number = _as_degrees(row[name])
            if number is not None:
                return number
    return None


def row_coordinates(row: Row) -> Coordinate:
    """Extract the ``(longitude, latitude)`` pair of a row.

    Fields are read in priority order: ``longitude``, ``lng``, ``lon`` for
    the longitude and ``latitude``, ``lat`` for the latitude. The first field
    that is present and holds a finite number wins.

    Parameters
    ----------
    row : Mapping[str, Any]
        Observation record.

    Returns
    -------
    tuple of (float, float)
        Longitude and latitude, in that order.

    Raises
    ------
    NormalizationError
        If no usable longitude or latitude field is present.

    Examples
    --------
    >>> row_coordinates({"lat": 1, "lng": 2})
    (2.0, 1.0)
    >>> row_coordinates({"latitude": 0, "lon": 0})
    (0.0, 0.0)
    """
    lng = _first_usable(row, LONGITUDE_FIELDS)
    lat = _first_usable(row, LATITUDE_FIELDS)
    if lng is None or lat is None:
        raise NormalizationError(
            f"Row has no usable coordinate pair (longitude={lng!r}, latitude={lat!r}). "
            f"Expected one of {LONGITUDE_FIELDS} and one of {LATITUDE_FIELDS}."
        )
    return (lng, lat)


def try_row_coordinates(row: Row) -> Coordinate | None:
    """Like :func:`row_coordinates` but return None for unusable rows."""
    try:
        return row_coordinates(row)
    except NormalizationError:
        return None


def to_timestamp(value: Any) -> int | None:
    """Normalize a time value to integer epoch seconds.

    Parameters
    ----------
    value : int, float, str, datetime.datetime, pandas.Timestamp or None
        Numeric values are taken as epoch seconds. Strings are parsed with
        :class:`pandas.Timestamp`; values without a timezone are read as UTC.

    Returns
    -------
    int | None
        Epoch seconds, truncated to an integer. None if the value is falsy
        (``0``, ``""``, ``None``) or cannot be parsed.

    Examples
    --------
    >>> to_timestamp(1000)
    1000
    >>> to_timestamp("1970-01-01T00:16:40Z")
    1000
    >>> to_timestamp("not a date") is None
    True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Real):
        number = float(value)
        if not np.isfinite(number):
            return None
        seconds = int(number)
        return seconds or None

    if isinstance(value, str):
        if not value.strip():
            return None
    elif not isinstance(value, (dt.datetime, dt.date, np.datetime64)):
        return None

    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(stamp):
        return None
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")

    seconds = int(stamp.timestamp())
    return seconds or None


def row_timestamp(row: Row) -> int | None:
    """Normalized timestamp of a row's ``time`` field."""
    return to_timestamp(row.get(TIME_FIELD))


def row_identity(row: Row) -> Hashable | None:
    """Entity identity of a row, or None if it has none."""
    identity = row.get(IDENTITY_FIELD)
    if identity is None or not isinstance(identity, Hashable):
        return None
    return identity


__all__ = [
    "IDENTITY_FIELD",
    "LATITUDE_FIELDS",
    "LONGITUDE_FIELDS",
    "TIME_FIELD",
    "Coordinate",
    "Row",
    "row_coordinates",
    "row_identity",
    "row_timestamp",
    "to_timestamp",
    "try_row_coordinates",
]
