"""Runtime-extensible catalogs: site types, damage statuses, and source types.

Unknown ids never raise; ``get`` synthesises a neutral entry instead.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from heritagetimeline.i18n import localized


@dataclass(frozen=True)
class SiteTypeConfig:
    id: str
    label: str
    labels: dict[str, str] = field(default_factory=dict)
    description: str = ""


@dataclass(frozen=True)
class StatusConfig:
    id: str
    label: str
    color: str  # Hex colour for map/timeline markers
    labels: dict[str, str] = field(default_factory=dict)
    description: str = ""


@dataclass(frozen=True)
class SourceTypeConfig:
    id: str
    label: str
    credibility_weight: float  # 0-100
    labels: dict[str, str] = field(default_factory=dict)
    description: str = ""


T = TypeVar("T", SiteTypeConfig, StatusConfig, SourceTypeConfig)


class Catalog(Generic[T]):
    """Keyed store with graceful defaults for unregistered ids."""

    def __init__(self, entries: Iterable[T], default_factory: Callable[[str], T]) -> None:
        self._entries: dict[str, T] = {e.id: e for e in entries}
        self._default_factory = default_factory

    def register(self, entry: T) -> None:
        self._entries[entry.id] = entry

    def get(self, entry_id: str) -> T:
        entry = self._entries.get(entry_id)
        return entry if entry is not None else self._default_factory(entry_id)

    def all(self) -> list[T]:
        return list(self._entries.values())

    def exists(self, entry_id: str) -> bool:
        return entry_id in self._entries

    def label(self, entry_id: str, lang: str = "en") -> str:
        entry = self.get(entry_id)
        return localized(entry.label, entry.labels, lang)


def build_site_type_catalog() -> Catalog[SiteTypeConfig]:
    return Catalog(
        [
            SiteTypeConfig("mosque", "Mosque", {"ar": "مسجد"}, "Islamic place of worship"),
            SiteTypeConfig("church", "Church", {"ar": "كنيسة"}, "Christian place of worship"),
            SiteTypeConfig(
                "archaeological", "Archaeological Site", {"ar": "موقع أثري"},
                "Ancient ruins and historical excavation sites",
            ),
            SiteTypeConfig("museum", "Museum", {"ar": "متحف"}, "Cultural institution housing artifacts"),
            SiteTypeConfig(
                "historic-building", "Historic Building", {"ar": "مبنى تاريخي"},
                "Architecturally or historically significant structure",
            ),
        ],
        lambda type_id: SiteTypeConfig(type_id, type_id, description="Unknown site type"),
    )


def build_status_catalog() -> Catalog[StatusConfig]:
    return Catalog(
        [
            StatusConfig("destroyed", "Destroyed", "#b91c1c", {"ar": "مدمر"}),
            StatusConfig("heavily-damaged", "Heavily Damaged", "#d97706", {"ar": "متضرر بشدة"}),
            StatusConfig("damaged", "Damaged", "#ca8a04", {"ar": "متضرر"}),
        ],
        lambda status_id: StatusConfig(status_id, status_id, "#6b7280", description="Unknown status"),
    )


def build_source_type_catalog() -> Catalog[SourceTypeConfig]:
    return Catalog(
        [
            SourceTypeConfig("official", "Official Report", 100, {"ar": "تقرير رسمي"}),
            SourceTypeConfig("academic", "Academic Research", 95, {"ar": "بحث أكاديمي"}),
            SourceTypeConfig("forensic", "Forensic Analysis", 95, {"ar": "تحليل جنائي"}),
            SourceTypeConfig("satellite-analysis", "Satellite Analysis", 90, {"ar": "تحليل الأقمار الصناعية"}),
            SourceTypeConfig("journalism", "Journalism", 80, {"ar": "صحافة"}),
            SourceTypeConfig("documentation", "Documentation", 75, {"ar": "توثيق"}),
            SourceTypeConfig("eyewitness", "Eyewitness Account", 70, {"ar": "شهادة عيان"}),
        ],
        lambda source_id: SourceTypeConfig(source_id, source_id, 50, description="Unknown source type"),
    )


def source_credibility(catalog: Catalog[SourceTypeConfig], source_ids: Iterable[str]) -> int:
    """Mean credibility weight of a set of sources, rounded; 0 when empty."""
    weights = [catalog.get(s).credibility_weight for s in source_ids]
    if not weights:
        return 0
    return int(sum(weights) / len(weights) + 0.5)
