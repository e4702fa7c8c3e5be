"""Timer-driven replay playback and refresh polling.

Both concerns own exactly one cancellable :class:`Timer`, so stopping either
is a single deterministic cancel rather than a liveness check inside the
callback.

Classes
-------
Timer
    Single-shot, re-armable wrapper around ``loop.call_later``.
ReplayScheduler
    Advances a :class:`~trailmap.timeline.Timeline` one bucket per tick at a
    fixed delay and halts on the final bucket.
RefreshPoller
    Re-resolves a data source at a fixed interval until stopped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from trailmap.rows import Row
from trailmap.timeline import Timeline

logger = logging.getLogger("trailmap.scheduling")

# Wall-clock delay between replay frames, in seconds.
FRAME_DELAY: float = 0.1


class Timer:
    """Cancellable single-shot timer bound to an event loop.

    Arming an armed timer replaces the pending callback, so at most one
    callback is ever scheduled per timer.

    Parameters
    ----------
    loop : asyncio.AbstractEventLoop
        Loop that runs the callbacks.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        """Whether a callback is currently scheduled."""
        return self._handle is not None

    def now(self) -> float:
        """Current time on the loop clock, in seconds."""
        return self._loop.time()

    def start(self, delay: float, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` after ``delay`` seconds."""
        self.cancel()
        self._handle = self._loop.call_later(delay, self._fire, callback)

    def cancel(self) -> None:
        """Cancel the scheduled callback, if any. Safe to call repeatedly."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()


class ReplayScheduler:
    """Frame-by-frame playback through a timeline.

    The bucket at index 0 is rendered by the map itself. Once the renderer is
    ready, :meth:`start` arms the first tick; each tick advances exactly one
    bucket and hands its rows to ``on_frame``. Playback halts on the final
    bucket.

    Parameters
    ----------
    timeline : Timeline
        Timeline to play, positioned at index 0.
    on_frame : Callable[[list of Mapping], None]
        Receives the rows of each new bucket.
    timer : Timer
        Timer owned by this scheduler.
    delay : float, default=FRAME_DELAY
        Seconds between frames.

    Attributes
    ----------
    frames_advanced : int
        Number of ticks that produced a frame.

    Examples
    --------
    >>> scheduler = ReplayScheduler(timeline, map_update, Timer(loop))
    >>> scheduler.start()  # called once the renderer is ready
    >>> scheduler.cancel()  # on destroy
    """

    def __init__(
        self,
        timeline: Timeline,
        on_frame: Callable[[list[Row]], None],
        timer: Timer,
        delay: float = FRAME_DELAY,
    ) -> None:
        self.timeline = timeline
        self.on_frame = on_frame
        self.delay = delay
        self._timer = timer
        self._started = False
        self._cancelled = False
        self.frames_advanced = 0

    @property
    def is_running(self) -> bool:
        return self._timer.active

    @property
    def is_finished(self) -> bool:
        """Whether playback reached the final bucket."""
        return self.timeline.is_last

    def start(self) -> None:
        """Arm the first tick. Later calls do nothing."""
        if self._started or self._cancelled:
            return
        self._started = True
        if len(self.timeline) < 2:
            logger.debug("Timeline has %d bucket(s), nothing to play", len(self.timeline))
            return
        logger.debug(
            "Starting replay of %d frames at %.3fs per frame", len(self.timeline), self.delay
        )
        self._timer.start(self.delay, self._tick)

    def cancel(self) -> None:
        """Stop playback. Safe to call repeatedly."""
        self._cancelled = True
        self._timer.cancel()

    def _tick(self) -> None:
        rows = self.timeline.advance()
        self.frames_advanced += 1
        self.on_frame(rows)

        if self._cancelled:
            return
        if self.timeline.is_last:
            logger.debug("Replay finished after %d frames", len(self.timeline))
        else:
            self._timer.start(self.delay, self._tick)


class RefreshPoller:
    """Repeating poll of a data source.

    Each tick calls ``poll``, which starts resolving the map's data input
    and may return a future for a fetch still in flight. A tick arriving while
    the previous fetch is pending is skipped, so updates apply in order.

    Parameters
    ----------
    interval : float
        Seconds between ticks. Must be positive.
    poll : Callable[[], asyncio.Future | None]
        Starts one refresh cycle.
    timer : Timer
        Timer owned by this poller.
    stale_after : float | None, optional
        Seconds after which a pending poll is abandoned: it is cancelled and
        the tick polls again. None waits indefinitely, for sources that
        bound their own wait (HTTP fetches time out).

    Attributes
    ----------
    ticks : int
        Ticks that started a poll.
    skipped : int
        Ticks skipped because a poll was still pending.
    abandoned : int
        Pending polls cancelled for exceeding ``stale_after``.
    """

    def __init__(
        self,
        interval: float,
        poll: Callable[[], asyncio.Future | None],
        timer: Timer,
        stale_after: float | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}.")
        self.interval = interval
        self.poll = poll
        self.stale_after = stale_after
        self._timer = timer
        self._in_flight: asyncio.Future | None = None
        self._polled_at = 0.0
        self.ticks = 0
        self.skipped = 0
        self.abandoned = 0

    @property
    def is_running(self) -> bool:
        return self._timer.active

    def start(self) -> None:
        self._timer.start(self.interval, self._tick)

    def stop(self) -> None:
        """Cancel future ticks. Stopping a stopped poller is a no-op."""
        if self._timer.active:
            logger.info("Stopping refresh poller")
        self._timer.cancel()

    def _tick(self) -> None:
        self._timer.start(self.interval, self._tick)

        if self._in_flight is not None and not self._in_flight.done():
            waited = self._timer.now() - self._polled_at
            if self.stale_after is None or waited < self.stale_after:
                self.skipped += 1
                logger.debug("Previous refresh still in flight, skipping tick")
                return
            logger.warning(
                "Abandoning refresh still pending after %.3fs; polling again", waited
            )
            self._in_flight.cancel()
            self.abandoned += 1

        self.ticks += 1
        self._polled_at = self._timer.now()
        self._in_flight = self.poll()


__all__ = ["FRAME_DELAY", "RefreshPoller", "ReplayScheduler", "Timer"]
