"""Error kinds and the error sink.

Errors are localized to the single update or fetch cycle that produced them.
Only :class:`ResolutionError` escapes a :class:`~trailmap.map.Map`, and only
from its constructor.

Error Kinds
-----------
ResolutionError
    Target surface not found. Fatal, raised at construction.
FetchError
    Remote retrieval failed. Reported to the sink; that cycle halts.
HandlerError
    A pull function reported failure or raised. Reported to the sink.
NormalizationError
    A row has no usable coordinate or time. The row is dropped silently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trailmap.surface import Surface

logger = logging.getLogger("trailmap.errors")


class TrailmapError(Exception):
    """Base class for all trailmap errors."""


class ResolutionError(TrailmapError, LookupError):
    """Raised when a map target cannot be resolved to a surface.

    Parameters
    ----------
    target : str
        Identifier that was looked up.
    """

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"No element with id {target}")


class FetchError(TrailmapError):
    """Remote row retrieval failed.

    Parameters
    ----------
    message : str
        Human-readable reason, shown on the hosting surface.
    url : str
        Resource that was requested.
    status_code : int | None, optional
        HTTP status, if a response was received.
    """

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message, f"GET {self.url}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return " | ".join(parts)


class HandlerError(TrailmapError):
    """A pull function reported or raised a failure."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NormalizationError(TrailmapError, ValueError):
    """A row has no usable coordinate pair or timestamp."""


class ErrorSink:
    """Surface recoverable errors to the user and the ambient error channel.

    The sink writes a short message onto the hosting surface in place of the
    map. Exceptions raised by user pull functions are additionally forwarded
    to the event loop's exception handler so that process-wide monitoring
    still observes them.

    Parameters
    ----------
    surface : Surface
        Hosting surface that displays the message.
    loop : asyncio.AbstractEventLoop
        Loop whose exception handler receives raised handler failures.
    """

    def __init__(self, surface: Surface, loop: asyncio.AbstractEventLoop) -> None:
        self.surface = surface
        self.loop = loop

    def report(self, error: FetchError | HandlerError) -> None:
        """Show a fetch or handler failure on the surface."""
        logger.error("Data source failed for surface %r: %s", self.surface.id, error)
        self.surface.show_error(error.message)

    def report_exception(self, exc: BaseException) -> None:
        """Show a generic message and hand ``exc`` to the loop's handler."""
        logger.error(
            "Pull function raised %s on surface %r", type(exc).__name__, self.surface.id
        )
        self.surface.show_error("Error")
        self.loop.call_exception_handler(
            {
                "message": "Unhandled exception in trailmap pull function",
                "exception": exc,
            }
        )


__all__ = [
    "ErrorSink",
    "FetchError",
    "HandlerError",
    "NormalizationError",
    "ResolutionError",
    "TrailmapError",
]
