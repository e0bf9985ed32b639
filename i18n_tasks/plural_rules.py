"""Plural categories required by each locale.

The table follows the Rails i18n pluralization rules, which list, per locale,
the CLDR categories a translation needs to provide. It is built once at import
time and exposed read-only.
"""

from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from i18n_tasks.errors import UnknownLocale

PLURAL_CATEGORIES: Tuple[str, ...] = ("zero", "one", "two", "few", "many", "other")

_CATEGORY_ORDER = {category: index for index, category in enumerate(PLURAL_CATEGORIES)}

DEFAULT_FORMS: Tuple[str, ...] = ("one", "other")

_ONE_OTHER = ("one", "other")
_OTHER = ("other",)
_ONE_FEW_OTHER = ("one", "few", "other")
_ONE_FEW_MANY_OTHER = ("one", "few", "many", "other")
_ALL = PLURAL_CATEGORIES

_RULES_BY_GROUP = {
    _ONE_OTHER: [
        "af", "az", "bg", "bn", "ca", "da", "de", "el", "en", "eo", "es", "et", "eu",
        "fa", "fi", "fil", "fr", "fy", "gl", "gu", "hi", "hu", "hy", "is", "it", "ka",
        "kk", "kn", "ky", "lb", "ml", "mn", "mr", "nb", "ne", "nl", "nn", "no", "or",
        "pa", "pt", "rm", "sq", "sv", "sw", "ta", "te", "tl", "tr", "ur",
        "uz", "wo", "zu",
    ],
    _OTHER: [
        "bo", "dz", "id", "ig", "ja", "jv", "km", "ko", "lo", "ms", "my", "su", "th",
        "to", "vi", "yo", "zh", "zh-CN", "zh-HK", "zh-TW", "zh-YUE",
    ],
    _ONE_FEW_OTHER: ["bs", "cs", "hr", "me", "mo", "ro", "sk", "sr"],
    _ONE_FEW_MANY_OTHER: ["be", "lt", "pl", "ru", "uk"],
    _ALL: ["ar", "cy"],
    ("zero", "one", "other"): ["lv"],
    ("one", "two", "few", "other"): ["gd", "sl", "dsb", "hsb"],
    ("one", "two", "many", "other"): ["he", "iw"],
    ("one", "two", "few", "many", "other"): ["br", "ga", "gv"],
    ("one", "few", "many", "other"): ["mt"],
}


def _build_table():
    table = {}
    for forms, locales in _RULES_BY_GROUP.items():
        for locale in locales:
            table[locale] = forms
    return MappingProxyType(table)


RULES: Mapping[str, Tuple[str, ...]] = _build_table()


def sort_categories(categories: Iterable[str]) -> list:
    """Sort plural categories into canonical CLDR order (zero, one, two, few, many, other)."""
    return sorted(set(categories), key=lambda c: _CATEGORY_ORDER.get(c, len(_CATEGORY_ORDER)))


def is_plural_category(name) -> bool:
    return name in _CATEGORY_ORDER


class UnknownLocalePolicy(Enum):
    SKIP = "skip"
    FALLBACK = "fallback"
    RAISE = "raise"

    @classmethod
    def from_value(cls, value) -> "UnknownLocalePolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown locale policy must be one of {valid}, got {value!r}")


class PluralRules:
    """Lookup of required plural categories per locale.

    Instances only add a lookup strategy on top of the static ``RULES`` table;
    there is no way to change a locale's categories after construction.
    """

    def __init__(self, rules: Mapping[str, Tuple[str, ...]] = None):
        self._rules = RULES if rules is None else MappingProxyType(
            {locale: tuple(sort_categories(forms)) for locale, forms in rules.items()})

    def required_forms(self, locale: str) -> Tuple[str, ...]:
        """Get the plural categories a locale requires.

        Lookup tries the exact code, then the code with ``_`` normalized to
        ``-``, then the bare language subtag (``pt-BR`` -> ``pt``).

        Raises:
            UnknownLocale: If no entry matches
        """
        for candidate in self._candidates(locale):
            if candidate in self._rules:
                return self._rules[candidate]
        raise UnknownLocale(locale)

    def __call__(self, locale: str) -> Tuple[str, ...]:
        return self.required_forms(locale)

    def supports_locale(self, locale: str) -> bool:
        return any(candidate in self._rules for candidate in self._candidates(locale))

    @property
    def locales(self):
        return list(self._rules)

    @staticmethod
    def _candidates(locale):
        locale = str(locale)
        normalized = locale.replace("_", "-")
        candidates = [locale, normalized]
        if "-" in normalized:
            candidates.append(normalized.split("-", 1)[0])
        return candidates


DEFAULT_PLURAL_RULES = PluralRules()
