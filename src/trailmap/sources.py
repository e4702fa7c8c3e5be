"""Data source resolution.

A map's data input can take three shapes, resolved uniformly for the initial
load, every refresh tick and the replay history fetch:

- **literal rows**: a sequence of mappings or a :class:`pandas.DataFrame`,
  passed through synchronously
- **URL string**: fetched with an HTTP GET that must return a JSON array
- **pull function**: called with a single ``deliver`` callback that accepts
  exactly one :data:`PullResult`

Failures never reach the continuation. They are reported to the map's
:class:`~trailmap.errors.ErrorSink` and the cycle ends there.

Examples
--------
A pull function reading from some client library:

>>> def pull(deliver):
...     try:
...         deliver(RowsLoaded(client.positions()))
...     except ConnectionError as e:
...         deliver(PullFailed(str(e)))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

import httpx
import pandas as pd

from trailmap.errors import ErrorSink, FetchError, HandlerError
from trailmap.rows import Row

logger = logging.getLogger("trailmap.sources")

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


@dataclass(frozen=True)
class RowsLoaded:
    """Successful pull: the rows to render."""

    rows: Any


@dataclass(frozen=True)
class PullFailed:
    """Failed pull: a message shown on the hosting surface."""

    message: str


PullResult = Union[RowsLoaded, PullFailed]
PullFunction = Callable[[Callable[[PullResult], None]], None]
DataInput = Union[str, PullFunction, Iterable[Row], pd.DataFrame]
RowsCallback = Callable[[list[Row]], None]


def as_rows(data: Any, strict: bool = True) -> list[Row]:
    """Materialize row data as a list of mappings.

    Parameters
    ----------
    data : sequence of Mapping or DataFrame
        Row data.
    strict : bool, default=True
        If False, elements that are not mappings are dropped instead of
        rejected. Used for fetched and pulled data, where one bad element
        must not cost the whole batch.

    Raises
    ------
    TypeError
        If ``data`` is not a DataFrame or an iterable, or, when ``strict``,
        if an element is not a mapping.
    """
    if isinstance(data, pd.DataFrame):
        return data.to_dict("records")
    if isinstance(data, (str, bytes, Mapping)) or not isinstance(data, Iterable):
        raise TypeError(
            f"Row data must be a sequence of mappings or a DataFrame, "
            f"got {type(data).__name__}."
        )
    rows = list(data)
    if not strict:
        kept = [row for row in rows if isinstance(row, Mapping)]
        if len(kept) < len(rows):
            logger.debug("Dropped %d non-object rows", len(rows) - len(kept))
        return kept
    for row in rows:
        if not isinstance(row, Mapping):
            raise TypeError(f"Each row must be a mapping, got {type(row).__name__}.")
    return rows


class _Delivery:
    """Single-use ``deliver`` callback handed to pull functions."""

    def __init__(self, future: asyncio.Future) -> None:
        self._future = future

    def __call__(self, result: PullResult) -> None:
        if not isinstance(result, (RowsLoaded, PullFailed)):
            raise TypeError(
                f"Pull functions must deliver RowsLoaded or PullFailed, "
                f"got {type(result).__name__}."
            )
        if self._future.cancelled():
            logger.debug("Pull result delivered after cancellation, ignoring")
            return
        if self._future.done():
            raise RuntimeError("Pull result already delivered; deliver() is single-use.")
        self._future.set_result(result)


class DataSourceAdapter:
    """Resolve a data input into rows for one map.

    Parameters
    ----------
    loop : asyncio.AbstractEventLoop
        Loop running fetches and pull deliveries.
    sink : ErrorSink
        Receives fetch and handler failures.
    http_client : httpx.AsyncClient | None, optional
        Client used for URL inputs. If None, one is created on first use and
        closed by :meth:`aclose`.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        sink: ErrorSink,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.loop = loop
        self.sink = sink
        self._client = http_client
        self._owns_client = http_client is None
        self._pending: set[asyncio.Future] = set()

    def resolve(self, data: DataInput, on_rows: RowsCallback) -> asyncio.Future | None:
        """Resolve ``data`` and pass its rows to ``on_rows``.

        Parameters
        ----------
        data : str, callable, sequence of Mapping, or DataFrame
            Data input.
        on_rows : Callable[[list of Mapping], None]
            Continuation receiving the rows on success.

        Returns
        -------
        asyncio.Future | None
            Future completing with the fetch or pull, or None when literal
            rows were passed through synchronously.

        Raises
        ------
        TypeError
            If ``data`` has none of the supported shapes.
        """
        if isinstance(data, str):
            return self._track(self.loop.create_task(self._get_rows(data)), on_rows)
        if callable(data) and not isinstance(data, pd.DataFrame):
            return self._pull(data, on_rows)
        on_rows(as_rows(data))
        return None

    def cancel_pending(self) -> None:
        """Cancel every fetch and pull still in flight."""
        for future in list(self._pending):
            future.cancel()
        self._pending.clear()

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client and self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True)
        return self._client

    async def _get_rows(self, url: str) -> list[Row]:
        logger.debug("Fetching rows from %s", url)
        try:
            response = await self._http().get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise FetchError(str(e) or type(e).__name__, url) from e

        if response.status_code != 200:
            raise FetchError(
                response.reason_phrase or f"HTTP {response.status_code}",
                url,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise FetchError("Invalid JSON", url, status_code=response.status_code) from e

        if not isinstance(body, list):
            raise FetchError(
                f"Expected a JSON array of rows, got {type(body).__name__}",
                url,
                status_code=response.status_code,
            )
        logger.debug("Fetched %d rows from %s", len(body), url)
        return as_rows(body, strict=False)

    def _pull(self, pull: PullFunction, on_rows: RowsCallback) -> asyncio.Future:
        future: asyncio.Future = self.loop.create_future()
        self._track(future, on_rows)
        try:
            pull(_Delivery(future))
        except Exception as exc:
            # A delivery made before the raise still stands.
            if not future.done():
                future.cancel()
            self.sink.report_exception(exc)
        return future

    def _track(self, future: asyncio.Future, on_rows: RowsCallback) -> asyncio.Future:
        self._pending.add(future)
        future.add_done_callback(lambda f: self._settle(f, on_rows))
        return future

    def _settle(self, future: asyncio.Future, on_rows: RowsCallback) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return

        exc = future.exception()
        if isinstance(exc, FetchError):
            self.sink.report(exc)
            return
        if exc is not None:
            raise exc

        result = future.result()
        if isinstance(result, PullFailed):
            self.sink.report(HandlerError(result.message))
        elif isinstance(result, RowsLoaded):
            on_rows(as_rows(result.rows, strict=False))
        else:
            on_rows(result)


__all__ = [
    "DataInput",
    "DataSourceAdapter",
    "PullFailed",
    "PullFunction",
    "PullResult",
    "RowsLoaded",
    "as_rows",
]
