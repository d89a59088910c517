"""Display-surface consumers of a PlaybackClock.

Both classes only read clock snapshots; the single write path back into the
clock is ImagerySync switching ``sync_active`` off after a manual selection.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from heritagetimeline.clock import PlaybackClock
from heritagetimeline.decay import HeritageDecayModel
from heritagetimeline.intervals import ComparisonInterval, comparison_release_indices
from heritagetimeline.matching import find_nearest_release_index, find_next_release_index
from heritagetimeline.models import ClockState, MapGlowState, Release, Site


class ImagerySync:
    """Keeps an imagery release selection aligned with the clock while sync is active.

    Args:
        clock: Clock to follow.
        releases: Sorted release list (live or fallback).
        on_change: Called with the new release index whenever it changes.
    """

    def __init__(
        self,
        clock: PlaybackClock,
        releases: Sequence[Release],
        on_change: Callable[[int], None] | None = None,
    ) -> None:
        self._clock = clock
        self.releases = list(releases)
        self.release_index = len(self.releases) - 1 if self.releases else 0
        self.before_index: int | None = None
        self._on_change = on_change
        self._unsubscribe = clock.subscribe(self._on_clock)
        self._on_clock(clock.snapshot())

    @property
    def current_release(self) -> Release | None:
        return self.releases[self.release_index] if self.releases else None

    def _set_index(self, index: int) -> None:
        if index == self.release_index:
            return
        self.release_index = index
        if self._on_change is not None:
            self._on_change(index)

    def _on_clock(self, state: ClockState) -> None:
        if state.sync_active and self.releases:
            self._set_index(find_nearest_release_index(self.releases, state.current_timestamp))

    def select_release(self, index: int) -> None:
        """Manual pick; suspends auto-follow until the clock is reset."""
        if not self.releases:
            return
        self._clock.set_sync_active(False)
        self._set_index(max(0, min(index, len(self.releases) - 1)))

    def show_event(
        self,
        when: datetime,
        interval: ComparisonInterval | str | None = None,
    ) -> tuple[int | None, int]:
        """Jump to the imagery right after an event, optionally with a before image.

        Returns:
            (before_index or None, after_index).
        """
        if not self.releases:
            return None, 0
        if interval is None:
            after = find_next_release_index(self.releases, when)
            self.before_index = None
        else:
            self.before_index, after = comparison_release_indices(when, interval, self.releases)
        self._set_index(after)
        return self.before_index, after

    def close(self) -> None:
        self._unsubscribe()


class GlowTracker:
    """Recomputes the map glow state each time the clock's timestamp moves.

    Base values are cached per site and refreshed only by ``set_sites``.
    """

    def __init__(
        self,
        clock: PlaybackClock,
        sites: Iterable[Site],
        model: HeritageDecayModel | None = None,
    ) -> None:
        self.model = model or HeritageDecayModel()
        self._sites: tuple[Site, ...] = ()
        self._base_values: dict[str, float] = {}
        self._last_timestamp: datetime | None = None
        self.state: MapGlowState | None = None
        self.set_sites(sites, at=clock.current_timestamp)
        self._unsubscribe = clock.subscribe(self._on_clock)

    def set_sites(self, sites: Iterable[Site], at: datetime | None = None) -> None:
        self._sites = tuple(sites)
        self._base_values = {s.id: self.model.base_value(s) for s in self._sites}
        at = at or self._last_timestamp
        if at is not None:
            self._recompute(at)

    def _recompute(self, at: datetime) -> None:
        self._last_timestamp = at
        self.state = self.model.glow_state(self._sites, at, self._base_values)

    def _on_clock(self, state: ClockState) -> None:
        if state.current_timestamp != self._last_timestamp:
            self._recompute(state.current_timestamp)

    def close(self) -> None:
        self._unsubscribe()
