"""Playback clock — the virtual timeline shared by map, timeline, and table views.

One PlaybackClock is created per screen and passed to its consumers. Consumers
read ``snapshot()`` (or subscribe to receive one on every change) and write
only through the actions: play, pause, reset, seek, set_speed,
set_sync_enabled, set_sync_active.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from enum import Enum

from heritagetimeline.config import ADVANCE_ELAPSED, PlaybackConfig
from heritagetimeline.daterange import derive_date_range
from heritagetimeline.dates import to_utc
from heritagetimeline.models import ClockState, DateRange, Site
from heritagetimeline.scheduling import Handle, Scheduler

logger = logging.getLogger(__name__)

Listener = Callable[[ClockState], None]

_THROTTLE_TOLERANCE_MS = 1e-6


class PlaybackPhase(str, Enum):
    STOPPED = "stopped"
    PREROLLING = "prerolling"  # Showing the baseline before playback starts
    PLAYING = "playing"


class SyncController:
    """Imagery-sync flags: a persistent preference and a transient effective flag.

    ``sync_enabled`` is the user's preference. ``sync_active`` is what views
    follow; it can be switched off by hand (e.g. picking an imagery period
    manually) without losing the preference, and ``reset`` re-asserts it.
    ``sync_active`` is never true while ``sync_enabled`` is false.
    """

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled
        self._active = False

    @property
    def sync_enabled(self) -> bool:
        return self._enabled

    @property
    def sync_active(self) -> bool:
        return self._active

    def set_sync_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        if not enabled:
            self._active = False

    def set_sync_active(self, active: bool) -> None:
        if active and not self._enabled:
            logger.debug("Ignoring sync activation while sync is disabled")
            return
        self._active = active

    def activate(self) -> None:
        """Called when playback starts; no-op unless sync is enabled."""
        if self._enabled:
            self._active = True

    def reset(self) -> None:
        self._active = self._enabled


class PlaybackClock:
    """Virtual timestamp driven across a site-derived date range.

    Args:
        sites: Site collection the range is derived from.
        scheduler: Frame/timer source (AsyncioScheduler, ManualScheduler, ...).
        config: Playback constants.
        sync_enabled: Initial imagery-sync preference.
        speed: Initial speed; defaults to ``config.default_speed``.
    """

    def __init__(
        self,
        sites: Iterable[Site] = (),
        *,
        scheduler: Scheduler,
        config: PlaybackConfig | None = None,
        sync_enabled: bool = False,
        speed: float | None = None,
    ) -> None:
        self.config = config or PlaybackConfig()
        self._scheduler = scheduler
        self._sync = SyncController(sync_enabled)
        self._sites: tuple[Site, ...] = tuple(sites)
        self._range = self._derive_range(self._sites)
        self._current = self._range.start
        self._is_playing = False
        self._frame_handle: Handle | None = None
        self._preroll_handle: Handle | None = None
        self._last_frame_ms: float | None = None
        self._listeners: list[Listener] = []
        self._notify_generation = 0

        self._speed = self.config.default_speed
        if speed is not None:
            self.set_speed(speed)

    # ---------------------------------------------------------------- state

    @property
    def current_timestamp(self) -> datetime:
        return self._current

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def start_date(self) -> datetime:
        return self._range.start

    @property
    def end_date(self) -> datetime:
        return self._range.end

    @property
    def date_range(self) -> DateRange:
        return self._range

    @property
    def sync_enabled(self) -> bool:
        return self._sync.sync_enabled

    @property
    def sync_active(self) -> bool:
        return self._sync.sync_active

    @property
    def phase(self) -> PlaybackPhase:
        if self._preroll_handle is not None:
            return PlaybackPhase.PREROLLING
        return PlaybackPhase.PLAYING if self._is_playing else PlaybackPhase.STOPPED

    def snapshot(self) -> ClockState:
        return ClockState(
            current_timestamp=self._current,
            is_playing=self._is_playing,
            speed=self._speed,
            start_date=self._range.start,
            end_date=self._range.end,
            sync_enabled=self._sync.sync_enabled,
            sync_active=self._sync.sync_active,
        )

    # ------------------------------------------------------------ observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        self._notify_generation += 1
        generation = self._notify_generation
        state = self.snapshot()
        for listener in list(self._listeners):
            # A listener that acted on the clock has already delivered a newer state
            if generation != self._notify_generation:
                break
            try:
                listener(state)
            except Exception:
                logger.exception("Clock listener %r failed", listener)

    # ----------------------------------------------------------------- range

    def _derive_range(self, sites: tuple[Site, ...]) -> DateRange:
        return derive_date_range(
            sites,
            fallback_start=self.config.fallback_start,
            fallback_end=self.config.fallback_end,
            buffer_days=self.config.range_buffer_days,
        )

    def set_sites(self, sites: Iterable[Site]) -> None:
        """Replace the site collection; the range is recomputed only if it changed."""
        sites = tuple(sites)
        if sites == self._sites:
            return
        self._sites = sites
        self._range = self._derive_range(sites)
        if self._preroll_handle is None:
            self._current = self._range.clamp(self._current)
        self._notify()

    # --------------------------------------------------------------- actions

    def play(self) -> None:
        """Start playback.

        With sync enabled and the clock at its start, the clock first shows
        the baseline date, then after ``preroll_delay_ms`` returns to the
        start and begins playing. Repeated calls while prerolling are ignored.
        """
        if self._preroll_handle is not None or self._is_playing:
            return

        if (
            self.config.pause_at_start
            and self._sync.sync_enabled
            and self._current == self._range.start
        ):
            self._current = to_utc(self.config.baseline_date)
            self._preroll_handle = self._scheduler.call_later(
                self.config.preroll_delay_ms, self._finish_preroll
            )
            logger.debug("Prerolling at baseline %s", self._current.date())
            self._notify()
            return

        self._start_playing()

    def _finish_preroll(self) -> None:
        self._preroll_handle = None
        self._current = self._range.start
        self._start_playing()

    def _start_playing(self) -> None:
        self._is_playing = True
        self._sync.activate()
        self._last_frame_ms = None
        self._schedule_frame()
        logger.debug("Playing from %s at %sx", self._current.date(), self._speed)
        self._notify()

    def pause(self) -> None:
        was_prerolling = self._preroll_handle is not None
        self._cancel_pending()
        if was_prerolling:
            # The baseline lies outside the range; a seek made during the preroll is kept
            self._current = self._range.clamp(self._current)
        self._is_playing = False
        logger.debug("Paused at %s", self._current.date())
        self._notify()

    def reset(self) -> None:
        self._cancel_pending()
        self._is_playing = False
        self._current = self._range.start
        self._sync.reset()
        logger.debug("Reset to %s", self._current.date())
        self._notify()

    def seek(self, timestamp: datetime) -> None:
        """Move to ``timestamp``, clamped into the range. Playing state is unchanged."""
        self._current = self._range.clamp(timestamp)
        self._notify()

    # Alias used by UI code that mirrors the scrubber's naming
    set_timestamp = seek

    def set_speed(self, speed: float) -> None:
        """Set the tick multiplier.

        Raises:
            ValueError: If ``speed`` is not one of ``config.speeds``.
        """
        if speed not in self.config.speeds:
            raise ValueError(
                f"speed {speed} not supported. Must be one of: {list(self.config.speeds)}"
            )
        self._speed = speed
        self._notify()

    def set_sync_enabled(self, enabled: bool) -> None:
        self._sync.set_sync_enabled(enabled)
        self._notify()

    def set_sync_active(self, active: bool) -> None:
        self._sync.set_sync_active(active)
        self._notify()

    # ----------------------------------------------------------- tick loop

    def _schedule_frame(self) -> None:
        self._frame_handle = self._scheduler.request_frame(self._on_frame)

    def _on_frame(self, frame_ms: float) -> None:
        self._frame_handle = None
        if not self._is_playing:
            return

        interval = self.config.frame_interval_ms
        if self._last_frame_ms is not None:
            elapsed = frame_ms - self._last_frame_ms
            if elapsed + _THROTTLE_TOLERANCE_MS < interval:
                self._schedule_frame()
                return
        else:
            elapsed = interval

        self._last_frame_ms = frame_ms
        advance_ms = self.config.time_increment_ms * self._speed
        if self.config.advance_mode == ADVANCE_ELAPSED:
            advance_ms *= elapsed / interval

        next_timestamp = self._current + timedelta(milliseconds=advance_ms)
        if next_timestamp >= self._range.end:
            self._current = self._range.end
            self._is_playing = False
            logger.debug("Reached end of range %s", self._current.date())
            self._notify()
            return

        self._current = next_timestamp
        self._schedule_frame()
        self._notify()

    # ------------------------------------------------------------ disposal

    def _cancel_pending(self) -> None:
        if self._frame_handle is not None:
            self._frame_handle.cancel()
            self._frame_handle = None
        if self._preroll_handle is not None:
            self._preroll_handle.cancel()
            self._preroll_handle = None

    def close(self) -> None:
        """Cancel every scheduled callback and drop listeners."""
        self._cancel_pending()
        self._is_playing = False
        self._listeners.clear()

    def __enter__(self) -> "PlaybackClock":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
