"""Small three-language (en/ar/it) translation helper."""

from collections.abc import Mapping

_STRINGS: dict[str, dict[str, str]] = {
    "timeline.play": {
        "en": "Play",
        "ar": "تشغيل",
        "it": "Riproduci",
    },
    "timeline.pause": {
        "en": "Pause",
        "ar": "إيقاف مؤقت",
        "it": "Pausa",
    },
    "timeline.reset": {
        "en": "Reset",
        "ar": "إعادة تعيين",
        "it": "Reimposta",
    },
    "timeline.speed": {
        "en": "Speed",
        "ar": "السرعة",
        "it": "Velocità",
    },
    "timeline.syncMap": {
        "en": "Sync Map",
        "ar": "مزامنة الخريطة",
        "it": "Sincronizza mappa",
    },
    "timeline.intervalAsLargeAsPossible": {
        "en": "As large as possible",
        "ar": "أكبر فترة ممكنة",
        "it": "Il più ampio possibile",
    },
    "timeline.intervalAsSmallAsPossible": {
        "en": "As small as possible",
        "ar": "أصغر فترة ممكنة",
        "it": "Il più piccolo possibile",
    },
    "timeline.interval1Month": {
        "en": "1 month",
        "ar": "شهر واحد",
        "it": "1 mese",
    },
    "timeline.interval1Year": {
        "en": "1 year",
        "ar": "سنة واحدة",
        "it": "1 anno",
    },
    "timeline.interval5Years": {
        "en": "5 years",
        "ar": "5 سنوات",
        "it": "5 anni",
    },
    "releases.current": {
        "en": "Current",
        "ar": "الحالي",
        "it": "Attuale",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key


def localized(label: str, labels: Mapping[str, str], lang: str) -> str:
    """Pick lang from a per-language label table, falling back to the base label."""
    if lang == "en":
        return label
    return labels.get(lang) or label
