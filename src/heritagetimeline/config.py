"""Runtime configuration — playback constants, archive source, and logging setup.

Values can be overridden from the environment (a ``.env`` file is loaded
with python-dotenv by ``load_config``).
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime

from dotenv import find_dotenv, load_dotenv
from pytz import utc

from heritagetimeline.dates import DAY_MS
from heritagetimeline.i18n import localized

ADVANCE_PER_TICK = "per_tick"
ADVANCE_ELAPSED = "elapsed"
_ADVANCE_MODES = (ADVANCE_PER_TICK, ADVANCE_ELAPSED)

WAYBACK_CONFIG_URL = (
    "https://s3-us-west-2.amazonaws.com/config.maptiles.arcgis.com/waybackconfig.json"
)


@dataclass(frozen=True)
class SpeedOption:
    """A selectable playback speed multiplier."""

    value: float
    label: str
    labels: dict[str, str] = field(default_factory=dict)
    description: str = ""
    is_default: bool = False


SPEED_OPTIONS: tuple[SpeedOption, ...] = (
    SpeedOption(0.25, "0.25x", {"ar": "٠.٢٥×"}, "Quarter speed - very slow playback"),
    SpeedOption(0.5, "0.5x", {"ar": "٠.٥×"}, "Half speed - slow playback for detailed viewing"),
    SpeedOption(1, "1x", {"ar": "١×"}, "Normal speed - default playback", is_default=True),
    SpeedOption(2, "2x", {"ar": "٢×"}, "Double speed - fast playback"),
    SpeedOption(4, "4x", {"ar": "٤×"}, "Quadruple speed - very fast playback"),
    SpeedOption(8, "8x", {"ar": "٨×"}, "8x speed - ultra fast playback"),
)


@dataclass(frozen=True)
class PlaybackConfig:
    """Constants driving PlaybackClock."""

    frame_interval_ms: float = 16.67  # Minimum wall time between executed ticks
    time_increment_ms: int = DAY_MS  # Virtual time per tick at 1x
    speeds: tuple[float, ...] = tuple(o.value for o in SPEED_OPTIONS)
    default_speed: float = 1
    advance_mode: str = ADVANCE_PER_TICK
    pause_at_start: bool = True  # Preroll to the baseline imagery when sync is on
    preroll_delay_ms: float = 1000
    baseline_date: datetime = datetime(2014, 2, 20, tzinfo=utc)
    range_buffer_days: int = 7
    fallback_start: datetime = datetime(2023, 10, 7, tzinfo=utc)
    fallback_end: datetime | None = None  # None → now

    def __post_init__(self) -> None:
        if self.advance_mode not in _ADVANCE_MODES:
            raise ValueError(
                f"advance_mode '{self.advance_mode}' not valid. "
                f"Must be one of: {list(_ADVANCE_MODES)}"
            )
        if self.frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be positive.")
        if self.preroll_delay_ms < 0:
            raise ValueError("preroll_delay_ms must not be negative.")
        if not self.speeds or any(s <= 0 for s in self.speeds):
            raise ValueError("speeds must be a non-empty set of positive multipliers.")
        if self.default_speed not in self.speeds:
            raise ValueError(f"default_speed {self.default_speed} is not in speeds.")


@dataclass(frozen=True)
class ReleaseSourceConfig:
    url: str = WAYBACK_CONFIG_URL
    timeout: float = 10.0


@dataclass(frozen=True)
class AppConfig:
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    releases: ReleaseSourceConfig = field(default_factory=ReleaseSourceConfig)
    log_level: str = "WARNING"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_config(dotenv: bool = True) -> AppConfig:
    """Build an AppConfig from HERITAGE_* environment variables.

    Args:
        dotenv: Load a ``.env`` file into the environment first.

    Returns:
        AppConfig with environment overrides applied to the defaults.

    Raises:
        ValueError: When a variable is set to an unusable value.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    playback = PlaybackConfig(
        frame_interval_ms=_env_float("HERITAGE_FRAME_INTERVAL_MS", 16.67),
        preroll_delay_ms=_env_float("HERITAGE_PREROLL_MS", 1000),
        advance_mode=os.environ.get("HERITAGE_ADVANCE_MODE", ADVANCE_PER_TICK),
    )
    releases = ReleaseSourceConfig(
        url=os.environ.get("HERITAGE_RELEASES_URL") or WAYBACK_CONFIG_URL,
        timeout=_env_float("HERITAGE_HTTP_TIMEOUT", 10.0),
    )
    log_level = os.environ.get("HERITAGE_LOG_LEVEL", "WARNING").upper()
    if log_level not in logging.getLevelNamesMapping():
        raise ValueError(f"HERITAGE_LOG_LEVEL '{log_level}' is not a logging level")
    return AppConfig(playback=playback, releases=releases, log_level=log_level)


def configure_logging(level: str | int = "WARNING") -> None:
    """Install a basic stream handler for the heritagetimeline loggers."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# --- Speed catalog ---


def get_speed_option(value: float) -> SpeedOption | None:
    return next((o for o in SPEED_OPTIONS if o.value == value), None)


def get_speed_label(value: float, lang: str = "en") -> str:
    """Display label for a speed; unknown speeds render as "{value}x"."""
    option = get_speed_option(value)
    if option is None:
        return f"{value:g}x"
    return localized(option.label, option.labels, lang)


def get_default_speed() -> SpeedOption:
    return next((o for o in SPEED_OPTIONS if o.is_default), SPEED_OPTIONS[0])


def is_valid_speed(value: float, config: PlaybackConfig | None = None) -> bool:
    speeds = (config or PlaybackConfig()).speeds
    return value in speeds


def calculate_time_increment(speed: float, config: PlaybackConfig | None = None) -> float:
    """Virtual milliseconds advanced by one tick at the given speed."""
    return (config or PlaybackConfig()).time_increment_ms * speed
