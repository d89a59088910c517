"""Data model definitions — explicit boundaries between site data, playback state, and derived values."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from heritagetimeline.dates import to_utc


@dataclass(frozen=True)
class Site:
    """A heritage site as supplied by the site data source. Read-only here."""

    id: str
    name: str
    coordinates: tuple[float, float]  # (latitude, longitude)
    status: str  # Damage status id ("destroyed", "heavily-damaged", "damaged", ...)
    type: str  # Site type id ("mosque", "museum", ...)
    year_built: str = ""  # Free text ("800 BCE", "1950", "7th century CE")
    destruction_date: datetime | None = None
    name_arabic: str | None = None

    # Significance flags consumed by the decay model
    unesco_listed: bool = False
    artifact_count: int | None = None
    is_unique: bool = False
    religious_significance: bool = False
    community_gathering_place: bool = False
    historical_events: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.destruction_date is not None:
            object.__setattr__(self, "destruction_date", to_utc(self.destruction_date))
        object.__setattr__(self, "historical_events", tuple(self.historical_events))


@dataclass(frozen=True)
class Release:
    """A dated imagery release from the archive service."""

    index: int  # Archive release number
    date: datetime  # Release date (UTC midnight)
    imagery_locator: str  # Tile URL template with {z}/{y}/{x}
    max_detail_level: int  # Maximum zoom level
    label: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", to_utc(self.date))


@dataclass(frozen=True)
class DateRange:
    """A closed interval [start, end]. start <= end is enforced."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", to_utc(self.start))
        object.__setattr__(self, "end", to_utc(self.end))
        if self.start > self.end:
            raise ValueError(
                f"DateRange start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, value: datetime) -> bool:
        return self.start <= to_utc(value) <= self.end

    def clamp(self, value: datetime) -> datetime:
        value = to_utc(value)
        if value < self.start:
            return self.start
        if value > self.end:
            return self.end
        return value

    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class ClockState:
    """Read-only snapshot of a PlaybackClock handed to display surfaces."""

    current_timestamp: datetime
    is_playing: bool
    speed: float
    start_date: datetime
    end_date: datetime
    sync_enabled: bool
    sync_active: bool


@dataclass(frozen=True)
class GlowContribution:
    """Per-site value at a given clock position."""

    site_id: str
    site_name: str
    base_value: float  # Time-invariant
    current_value: float  # Reduced once the destruction date has passed
    coordinates: tuple[float, float]
    status: str
    destruction_date: datetime | None


@dataclass(frozen=True)
class HeritageMetrics:
    total_value: float
    destroyed_value: float
    destroyed_count: int
    integrity_percent: float  # 100 when total_value is 0
    remaining_value: float


@dataclass(frozen=True)
class MapGlowState:
    """Everything a map surface needs to draw the glow layer for one clock position."""

    contributions: tuple[GlowContribution, ...]
    metrics: HeritageMetrics
    max_value: float = 0.0  # Largest base value, for intensity normalisation
    at: datetime | None = field(default=None)
