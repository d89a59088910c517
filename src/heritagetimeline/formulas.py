"""Glow formula registry — swappable weightings for the heritage value model.

A formula combines a base weight with age, significance, and type multipliers,
plus per-status damage reductions and age colours. Formulas live in a mutable
keyed registry so new ones can be registered at runtime.
"""

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from heritagetimeline.i18n import localized

logger = logging.getLogger(__name__)

DEFAULT_FORMULA_ID = "heritage-tracker-v1"
FALLBACK_AGE_COLOR = "#4a90e2"


class FormulaNotFoundError(LookupError):
    """Raised when mutating a formula id that is not registered."""


@dataclass(frozen=True)
class AgeTier:
    """Age range [min_age, max_age) in years. max_age None means unbounded."""

    min_age: float
    max_age: float | None
    multiplier: float
    label: str
    labels: dict[str, str] = field(default_factory=dict)

    def matches(self, age: float) -> bool:
        return age >= self.min_age and (self.max_age is None or age < self.max_age)


@dataclass(frozen=True)
class AgeColorTier:
    min_age: float
    max_age: float | None
    color: str
    label: str
    labels: dict[str, str] = field(default_factory=dict)

    def matches(self, age: float) -> bool:
        return age >= self.min_age and (self.max_age is None or age < self.max_age)


@dataclass(frozen=True)
class SignificanceMultiplier:
    """Multiplier keyed on a Site attribute.

    Booleans apply when true. Numbers apply when greater than ``threshold``
    (0 when unset). Sequences with ``per_item`` scale with their length:
    ``1 + n * (multiplier - 1)``; without it they apply when non-empty.
    """

    id: str
    label: str
    multiplier: float
    property_name: str
    threshold: float | None = None
    per_item: bool = False
    labels: dict[str, str] = field(default_factory=dict)

    def factor_for(self, value: Any) -> float:
        if value is None or value is False:
            return 1.0
        if value is True:
            return self.multiplier
        if isinstance(value, (int, float)):
            return self.multiplier if value > (self.threshold or 0) else 1.0
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                return 1.0
            if self.per_item:
                return 1 + len(value) * (self.multiplier - 1)
            return self.multiplier
        return 1.0


@dataclass(frozen=True)
class TypeMultiplier:
    type: str
    multiplier: float
    label: str
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DamageReduction:
    status: str
    reduction_percentage: float  # 0-100
    label: str
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GlowFormulaConfig:
    id: str
    label: str
    base_weight: float
    age_multiplier_tiers: tuple[AgeTier, ...] = ()
    significance_multipliers: tuple[SignificanceMultiplier, ...] = ()
    type_multipliers: tuple[TypeMultiplier, ...] = ()
    damage_reductions: tuple[DamageReduction, ...] = ()
    age_color_tiers: tuple[AgeColorTier, ...] = ()
    labels: dict[str, str] = field(default_factory=dict)  # Localized labels by language
    is_default: bool = False
    description: str = ""

    def age_multiplier(self, age: float | None) -> float:
        if age is None:
            return 1.0
        for tier in sorted(self.age_multiplier_tiers, key=lambda a: a.min_age, reverse=True):
            if tier.matches(age):
                return tier.multiplier
        return 1.0

    def type_multiplier(self, site_type: str) -> float:
        for entry in self.type_multipliers:
            if entry.type == site_type:
                return entry.multiplier
        return 1.0

    def damage_reduction(self, status: str) -> float:
        for entry in self.damage_reductions:
            if entry.status == status:
                return entry.reduction_percentage
        return 0.0

    def age_color(self, age: float | None) -> str:
        if age is None:
            return FALLBACK_AGE_COLOR
        for tier in sorted(self.age_color_tiers, key=lambda a: a.min_age, reverse=True):
            if tier.matches(age):
                return tier.color
        return FALLBACK_AGE_COLOR

    def localized_label(self, lang: str = "en") -> str:
        return localized(self.label, self.labels, lang)


HERITAGE_TRACKER_V1 = GlowFormulaConfig(
    id=DEFAULT_FORMULA_ID,
    label="Heritage Tracker Formula v1",
    labels={"ar": "صيغة متتبع التراث الإصدار 1"},
    is_default=True,
    description="Original glow formula considering age, significance, and damage status",
    base_weight=100,
    age_multiplier_tiers=(
        AgeTier(2000, None, 3, "Ancient", {"ar": "قديم"}),
        AgeTier(1000, 2000, 2, "Medieval", {"ar": "عصور وسطى"}),
        AgeTier(200, 1000, 1.5, "Historic", {"ar": "تاريخي"}),
        AgeTier(0, 200, 1, "Modern", {"ar": "حديث"}),
    ),
    significance_multipliers=(
        SignificanceMultiplier("unesco-listed", "UNESCO Listed", 2, "unesco_listed"),
        SignificanceMultiplier(
            "artifact-count-100", "Rich Artifact Collection (>100)", 1.5, "artifact_count", threshold=100
        ),
        SignificanceMultiplier("unique", "Unique Site", 2, "is_unique"),
        SignificanceMultiplier("religious-significance", "Religious Significance", 1.3, "religious_significance"),
        SignificanceMultiplier("community-gathering", "Community Gathering Place", 1.2, "community_gathering_place"),
        SignificanceMultiplier("historical-events", "Historical Events", 1.1, "historical_events", per_item=True),
    ),
    type_multipliers=(
        TypeMultiplier("archaeological", 1.8, "Archaeological Site", {"ar": "موقع أثري"}),
        TypeMultiplier("museum", 1.6, "Museum", {"ar": "متحف"}),
        TypeMultiplier("mosque", 1, "Mosque", {"ar": "مسجد"}),
        TypeMultiplier("church", 1, "Church", {"ar": "كنيسة"}),
        TypeMultiplier("historic-building", 1, "Historic Building", {"ar": "مبنى تاريخي"}),
    ),
    damage_reductions=(
        DamageReduction("destroyed", 100, "Destroyed", {"ar": "مدمر"}),
        DamageReduction("heavily-damaged", 50, "Heavily Damaged", {"ar": "متضرر بشدة"}),
        DamageReduction("damaged", 25, "Damaged", {"ar": "متضرر"}),
    ),
    age_color_tiers=(
        AgeColorTier(2000, None, "#FFD700", "Ancient (Gold)"),
        AgeColorTier(500, 2000, "#CD7F32", "Medieval (Bronze)"),
        AgeColorTier(200, 500, "#C0C0C0", "Historic (Silver)"),
        AgeColorTier(0, 200, "#4A90E2", "Modern (Blue)"),
    ),
)


class GlowFormulaRegistry:
    """Mutable keyed store of GlowFormulaConfig.

    Lookups of missing ids degrade (None / id string); mutating a missing id
    raises FormulaNotFoundError.
    """

    def __init__(self, formulas: Iterable[GlowFormulaConfig] | None = None) -> None:
        self._formulas: dict[str, GlowFormulaConfig] = {}
        for formula in (HERITAGE_TRACKER_V1,) if formulas is None else formulas:
            self._formulas[formula.id] = formula

    def all(self) -> list[GlowFormulaConfig]:
        return list(self._formulas.values())

    def ids(self) -> list[str]:
        return list(self._formulas)

    def get(self, formula_id: str) -> GlowFormulaConfig | None:
        return self._formulas.get(formula_id)

    def get_default(self) -> GlowFormulaConfig | None:
        """The formula flagged is_default, else the first registered, else None."""
        for formula in self._formulas.values():
            if formula.is_default:
                return formula
        return next(iter(self._formulas.values()), None)

    def exists(self, formula_id: str) -> bool:
        return formula_id in self._formulas

    def register(self, formula: GlowFormulaConfig) -> None:
        """Insert or overwrite a formula."""
        self._formulas[formula.id] = formula
        logger.info("Registered glow formula %s", formula.id)

    def update(self, formula_id: str, **changes: Any) -> GlowFormulaConfig:
        """Merge ``changes`` into an existing formula and return the new version."""
        existing = self._formulas.get(formula_id)
        if existing is None:
            raise FormulaNotFoundError(f"Glow formula '{formula_id}' not found in registry")
        updated = dataclasses.replace(existing, **changes)
        if updated.id != formula_id:
            del self._formulas[formula_id]
        self._formulas[updated.id] = updated
        logger.info("Updated glow formula %s: %s", formula_id, sorted(changes))
        return updated

    def remove(self, formula_id: str) -> None:
        """Delete a formula. Removing the default does not promote another one."""
        if formula_id not in self._formulas:
            raise FormulaNotFoundError(f"Glow formula '{formula_id}' not found in registry")
        del self._formulas[formula_id]
        logger.info("Removed glow formula %s", formula_id)

    def label(self, formula_id: str, lang: str = "en") -> str:
        formula = self._formulas.get(formula_id)
        if formula is None:
            return formula_id
        return formula.localized_label(lang)

    # Id-based lookups with neutral defaults for unknown formulas

    def age_multiplier(self, formula_id: str, age: float | None) -> float:
        formula = self.get(formula_id)
        return formula.age_multiplier(age) if formula else 1.0

    def type_multiplier(self, formula_id: str, site_type: str) -> float:
        formula = self.get(formula_id)
        return formula.type_multiplier(site_type) if formula else 1.0

    def damage_reduction(self, formula_id: str, status: str) -> float:
        formula = self.get(formula_id)
        return formula.damage_reduction(status) if formula else 0.0

    def age_color(self, formula_id: str, age: float | None) -> str:
        formula = self.get(formula_id)
        return formula.age_color(age) if formula else FALLBACK_AGE_COLOR
