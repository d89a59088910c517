"""Heritage decay model — per-site value, damage over time, and aggregate metrics.

A site's base value is fixed by its age, type, and significance. Its current
value drops by a status-dependent percentage once the clock reaches its
destruction date.
"""

import math
import re
from collections.abc import Iterable, Sequence
from datetime import datetime

from heritagetimeline.dates import to_utc
from heritagetimeline.formulas import HERITAGE_TRACKER_V1, GlowFormulaConfig, GlowFormulaRegistry
from heritagetimeline.models import GlowContribution, HeritageMetrics, MapGlowState, Site

DEFAULT_REFERENCE_YEAR = 2024

_CENTURY_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\s+century\s*(BCE|BC|CE|AD)?", re.IGNORECASE)
_YEAR_RE = re.compile(r"(\d+)\s*(BCE|BC|CE|AD)?", re.IGNORECASE)
_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")

_GLOW_BASE_RADIUS = 20
_GLOW_RADIUS_SCALE = 15
_GLOW_MAX_RADIUS = 150


def parse_year_built(text: str | None) -> int | None:
    """Extract a year from free text. BCE years are negative.

    "800 BCE" → -800, "1950" → 1950, "7th century" → 600, "" → None.
    """
    if not text:
        return None
    match = _CENTURY_RE.search(text)
    if match:
        century = int(match.group(1))
        if (match.group(2) or "").upper() in ("BCE", "BC"):
            return -century * 100
        return (century - 1) * 100
    match = _YEAR_RE.search(text)
    if not match:
        return None
    year = int(match.group(1))
    if (match.group(2) or "").upper() in ("BCE", "BC"):
        return -year
    return year


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


class HeritageDecayModel:
    """Computes base/current values and aggregate metrics for a formula.

    Args:
        registry: Formula registry (a fresh one holding the built-in formula by default).
        formula_id: Formula to use; None or an unregistered id selects the registry default.
        reference_year: Year ages are measured from.
    """

    def __init__(
        self,
        registry: GlowFormulaRegistry | None = None,
        formula_id: str | None = None,
        reference_year: int = DEFAULT_REFERENCE_YEAR,
    ) -> None:
        self.registry = registry if registry is not None else GlowFormulaRegistry()
        self.formula_id = formula_id
        self.reference_year = reference_year

    @property
    def formula(self) -> GlowFormulaConfig:
        formula = self.registry.get(self.formula_id) if self.formula_id else None
        return formula or self.registry.get_default() or HERITAGE_TRACKER_V1

    def site_age(self, site: Site) -> int | None:
        year = parse_year_built(site.year_built)
        if year is None:
            return None
        return self.reference_year - year

    def significance_factor(self, site: Site, formula: GlowFormulaConfig | None = None) -> float:
        formula = formula or self.formula
        factor = 1.0
        for rule in formula.significance_multipliers:
            factor *= rule.factor_for(getattr(site, rule.property_name, None))
        return factor

    def base_value(self, site: Site) -> float:
        """Time-invariant value, rounded to a whole number."""
        formula = self.formula
        value = (
            formula.base_weight
            * formula.age_multiplier(self.site_age(site))
            * formula.type_multiplier(site.type)
            * self.significance_factor(site, formula)
        )
        return _round_half_up(value)

    def reduce(self, site: Site, base: float, at: datetime) -> float:
        """Apply the damage reduction to ``base`` if the site is destroyed by ``at``."""
        if site.destruction_date is None or to_utc(at) < site.destruction_date:
            return base
        reduction = self.formula.damage_reduction(site.status)
        return base * (100 - reduction) / 100

    def current_value(self, site: Site, at: datetime) -> float:
        return self.reduce(site, self.base_value(site), at)

    def age_color(self, site: Site) -> str:
        return self.formula.age_color(self.site_age(site))

    def contributions(
        self,
        sites: Iterable[Site],
        at: datetime,
        base_values: dict[str, float] | None = None,
    ) -> list[GlowContribution]:
        result: list[GlowContribution] = []
        for site in sites:
            base = base_values[site.id] if base_values and site.id in base_values else self.base_value(site)
            result.append(
                GlowContribution(
                    site_id=site.id,
                    site_name=site.name,
                    base_value=base,
                    current_value=self.reduce(site, base, at),
                    coordinates=site.coordinates,
                    status=site.status,
                    destruction_date=site.destruction_date,
                )
            )
        return result

    def total_value(self, sites: Iterable[Site]) -> float:
        return sum(self.base_value(s) for s in sites)

    def destroyed(self, sites: Iterable[Site], at: datetime) -> tuple[float, int]:
        """(value, count) of sites whose destruction date is on or before ``at``."""
        at = to_utc(at)
        lost = [s for s in sites if s.destruction_date is not None and s.destruction_date <= at]
        return sum(self.base_value(s) for s in lost), len(lost)

    def integrity_percent(self, sites: Sequence[Site], at: datetime) -> float:
        return self.metrics(sites, at).integrity_percent

    def metrics(self, sites: Sequence[Site], at: datetime) -> HeritageMetrics:
        return _metrics_from(self.contributions(sites, at), at)

    def glow_state(
        self,
        sites: Sequence[Site],
        at: datetime,
        base_values: dict[str, float] | None = None,
    ) -> MapGlowState:
        """Contributions and metrics for one clock position."""
        contributions = self.contributions(sites, at, base_values)
        return MapGlowState(
            contributions=tuple(contributions),
            metrics=_metrics_from(contributions, at),
            max_value=max((c.base_value for c in contributions), default=0.0),
            at=to_utc(at),
        )


def _metrics_from(contributions: Sequence[GlowContribution], at: datetime) -> HeritageMetrics:
    at = to_utc(at)
    total = sum(c.base_value for c in contributions)
    lost = [c for c in contributions if c.destruction_date is not None and c.destruction_date <= at]
    destroyed_value = sum(c.base_value for c in lost)
    remaining = total - destroyed_value
    return HeritageMetrics(
        total_value=total,
        destroyed_value=destroyed_value,
        destroyed_count=len(lost),
        integrity_percent=100.0 if total == 0 else remaining / total * 100,
        remaining_value=remaining,
    )


def significance_score(site: Site, reference_year: int = DEFAULT_REFERENCE_YEAR) -> float:
    """Additive score used for marker sizing; larger is more significant."""
    score = 1.0
    year = parse_year_built(site.year_built)
    if year is not None:
        score += (reference_year - year) / 1000  # +1 per millennium
    if site.unesco_listed:
        score += 2
    if site.artifact_count:
        score += site.artifact_count / 100
    if site.is_unique:
        score += 3
    if site.religious_significance:
        score += 1
    if site.community_gathering_place:
        score += 1
    score += len(site.historical_events) * 0.5
    return score


# --- Rendering support ---


def glow_intensity(value: float, max_value: float) -> float:
    """Normalise value against max_value into [0, 1]; 0 when max_value is 0."""
    if max_value == 0:
        return 0.0
    return min(max(value / max_value, 0.0), 1.0)


def glow_radius(value: float) -> float:
    """Display radius in pixels: logarithmic in value, capped."""
    scaled = math.log(max(value, 0.0) + 1) * _GLOW_RADIUS_SCALE
    return min(_GLOW_BASE_RADIUS + scaled, _GLOW_MAX_RADIUS)


def normalize_hex(color: str) -> str:
    """Lowercase "#rrggbb" form of a 3- or 6-digit hex colour.

    Raises:
        ValueError: If ``color`` is not a hex colour.
    """
    match = _HEX_RE.match(color.strip())
    if not match:
        raise ValueError(f"not a hex colour: {color!r}")
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def _channels(color: str) -> tuple[int, int, int]:
    digits = normalize_hex(color)[1:]
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def interpolate_color(color1: str, color2: str, progress: float) -> str:
    """Blend two hex colours channel by channel; progress is clamped to [0, 1]."""
    progress = min(max(progress, 0.0), 1.0)
    start, end = _channels(color1), _channels(color2)
    mixed = (int(_round_half_up(a + (b - a) * progress)) for a, b in zip(start, end))
    return "#" + "".join(f"{c:02x}" for c in mixed)
