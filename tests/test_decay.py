"""
Tests for the heritage decay model and glow rendering helpers.
"""

import math
import re
from datetime import timedelta

import pytest

from heritagetimeline.decay import (
    HeritageDecayModel,
    glow_intensity,
    glow_radius,
    interpolate_color,
    normalize_hex,
    parse_year_built,
    significance_score,
)
from heritagetimeline.formulas import GlowFormulaConfig, GlowFormulaRegistry
from heritagetimeline.models import Site

from conftest import utc_dt


def make_site(**overrides) -> Site:
    fields = dict(
        id="site",
        name="Site",
        coordinates=(31.5, 34.46),
        status="destroyed",
        type="historic-building",
        year_built="1990",
    )
    fields.update(overrides)
    return Site(**fields)


@pytest.fixture
def model() -> HeritageDecayModel:
    return HeritageDecayModel()


class TestParseYearBuilt:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1950", 1950),
            ("800 BCE", -800),
            ("300 BC", -300),
            ("1200 CE", 1200),
            ("7th century", 600),
            ("7th century CE", 600),
            ("3rd century BCE", -300),
            ("circa 1920s", 1920),
            ("", None),
            (None, None),
            ("unknown", None),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_year_built(text) == expected


class TestBaseValue:
    def test_modern_museum(self, model):
        assert model.base_value(make_site(type="museum", year_built="1950")) == 160

    def test_ancient_archaeological(self, model):
        assert model.base_value(make_site(type="archaeological", year_built="800 BCE")) == 540

    def test_unesco_doubles(self, model):
        site = make_site(type="archaeological", year_built="800 BCE", unesco_listed=True)
        assert model.base_value(site) == 1080

    def test_religious_historic_mosque(self, model):
        site = make_site(type="mosque", year_built="1200", religious_significance=True)
        assert model.base_value(site) == 195

    def test_artifact_threshold(self, model):
        assert model.base_value(make_site(type="museum", year_built="1950", artifact_count=150)) == 240
        assert model.base_value(make_site(type="museum", year_built="1950", artifact_count=50)) == 160

    def test_historical_events_scale_per_event(self, model):
        site = make_site(historical_events=("siege", "fire", "restoration"))
        assert model.base_value(site) == 130

    def test_unknown_year_and_type(self, model):
        assert model.base_value(make_site(type="warehouse", year_built="")) == 100

    def test_rounds_to_whole_number(self, model):
        value = model.base_value(make_site(community_gathering_place=True, religious_significance=True))
        assert value == 156  # 100 * 1.2 * 1.3
        assert value == int(value)

    def test_reference_year(self):
        model = HeritageDecayModel(reference_year=2200)
        assert model.site_age(make_site(year_built="1990")) == 210
        assert model.base_value(make_site(year_built="1990")) == 150

    def test_time_invariant(self, model, sites):
        assert [model.base_value(s) for s in sites] == [195, 160, 100]


class TestCurrentValue:
    def test_unchanged_before_destruction(self, model, sites):
        mosque = sites[0]
        assert model.current_value(mosque, utc_dt(2023, 12, 31)) == 195

    def test_drops_on_destruction_date(self, model, sites):
        mosque = sites[0]
        assert model.current_value(mosque, utc_dt(2024, 1, 1)) == 0

    def test_partial_reductions(self, model, sites):
        palace = sites[1]
        assert model.current_value(palace, utc_dt(2025, 1, 1)) == 80
        school = make_site(status="damaged", destruction_date=utc_dt(2024, 1, 1))
        assert model.current_value(school, utc_dt(2024, 6, 1)) == 75

    def test_no_destruction_date(self, model, sites):
        assert model.current_value(sites[2], utc_dt(2030, 1, 1)) == 100


class TestMetrics:
    def test_aggregate(self, model, sites):
        metrics = model.metrics(sites, utc_dt(2024, 3, 1))
        assert metrics.total_value == 455
        assert metrics.destroyed_value == 195
        assert metrics.destroyed_count == 1
        assert metrics.remaining_value == 260
        assert metrics.integrity_percent == pytest.approx(260 / 455 * 100)

    def test_destroyed_tuple(self, model, sites):
        assert model.destroyed(sites, utc_dt(2025, 1, 1)) == (355, 2)
        assert model.total_value(sites) == 455

    def test_empty_collection(self, model):
        metrics = model.metrics([], utc_dt(2024, 1, 1))
        assert metrics.total_value == 0
        assert metrics.integrity_percent == 100

    def test_integrity_never_increases(self, model, sites):
        previous = 100.0
        at = utc_dt(2023, 12, 1)
        while at < utc_dt(2025, 2, 1):
            current = model.integrity_percent(sites, at)
            assert 0 <= current <= previous
            previous = current
            at += timedelta(days=10)


class TestGlowState:
    def test_contributions(self, model, sites):
        state = model.glow_state(sites, utc_dt(2024, 3, 1))
        assert [c.site_id for c in state.contributions] == ["great-mosque", "pasha-palace", "old-school"]
        assert [c.current_value for c in state.contributions] == [0, 160, 100]
        assert state.max_value == 195
        assert state.at == utc_dt(2024, 3, 1)

    def test_uses_supplied_base_values(self, model, sites):
        state = model.glow_state(sites, utc_dt(2024, 3, 1), {"pasha-palace": 10})
        assert state.contributions[1].base_value == 10
        assert state.metrics.total_value == 305

    def test_empty(self, model):
        state = model.glow_state([], utc_dt(2024, 3, 1))
        assert state.contributions == ()
        assert state.max_value == 0


class TestFormulaSelection:
    def test_custom_formula(self):
        registry = GlowFormulaRegistry()
        registry.register(GlowFormulaConfig(id="flat", label="Flat", base_weight=10))
        model = HeritageDecayModel(registry, "flat")
        assert model.base_value(make_site(type="museum", year_built="800 BCE")) == 10
        assert model.current_value(make_site(destruction_date=utc_dt(2024, 1, 1)), utc_dt(2024, 2, 1)) == 10

    def test_unknown_id_uses_default(self):
        model = HeritageDecayModel(formula_id="missing")
        assert model.formula.id == "heritage-tracker-v1"

    def test_empty_registry_uses_builtin(self):
        model = HeritageDecayModel(GlowFormulaRegistry([]))
        assert model.base_value(make_site(type="museum", year_built="1950")) == 160

    def test_age_color(self, model):
        assert model.age_color(make_site(year_built="800 BCE")) == "#FFD700"
        assert model.age_color(make_site(year_built="")) == "#4a90e2"


class TestSignificanceScore:
    def test_plain_site(self):
        assert significance_score(make_site(year_built="")) == 1

    def test_flags_add_up(self):
        site = make_site(
            year_built="1024",
            unesco_listed=True,
            artifact_count=200,
            is_unique=True,
            religious_significance=True,
            community_gathering_place=True,
            historical_events=("a", "b"),
        )
        assert significance_score(site) == pytest.approx(1 + 1 + 2 + 2 + 3 + 1 + 1 + 1)


class TestGlowHelpers:
    def test_intensity(self):
        assert glow_intensity(50, 100) == 0.5
        assert glow_intensity(150, 100) == 1
        assert glow_intensity(-5, 100) == 0
        assert glow_intensity(50, 0) == 0

    def test_radius(self):
        assert glow_radius(0) == 20
        assert glow_radius(100) == pytest.approx(20 + math.log(101) * 15)
        assert glow_radius(1e9) == 150

    def test_normalize_hex(self):
        assert normalize_hex("#ABC") == "#aabbcc"
        assert normalize_hex("FFD700") == "#ffd700"
        with pytest.raises(ValueError):
            normalize_hex("gold")

    def test_interpolate_endpoints(self):
        assert interpolate_color("#FFD700", "#808080", 0) == "#ffd700"
        assert interpolate_color("#FFD700", "#808080", 1) == "#808080"

    def test_interpolate_midpoint(self):
        assert interpolate_color("#FFD700", "#808080", 0.5) == "#c0ac40"

    def test_interpolate_clamps_progress(self):
        assert interpolate_color("#000", "#fff", 2) == "#ffffff"
        assert interpolate_color("#000", "#fff", -1) == "#000000"

    def test_interpolate_output_format(self):
        for step in range(11):
            assert re.fullmatch(r"#[0-9a-f]{6}", interpolate_color("#b91c1c", "#4a90e2", step / 10))
