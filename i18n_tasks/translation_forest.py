"""Filling a forest of missing keys with machine translations of the base values."""

import re
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Tuple

from i18n_tasks.errors import TranslationBackendError
from i18n_tasks.key_tree import Forest, KeyTree, join_key
from i18n_tasks.lib.base_translator import Translator
from i18n_tasks.plural_rules import PLURAL_CATEGORIES
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("translation_forest")

# Rails "%{count}" and i18next "{{count}}" interpolations
INTERPOLATION_RE = re.compile(r"%\{[^{}]+\}|\{\{[^{}]+\}\}")
TOKEN_FORMAT = "__I18N_{}__"

_Entry = namedtuple("_Entry", ["key", "source", "data"])
_Slot = namedtuple("_Slot", ["index", "placeholders", "original"])


def protect_interpolations(text: str) -> Tuple[str, List[str]]:
    """Replace interpolations with numbered tokens a translator will leave alone.

    Returns:
        tuple: The protected text and the interpolations in token order
    """
    placeholders = []

    def replace(match):
        placeholders.append(match.group(0))
        return TOKEN_FORMAT.format(len(placeholders) - 1)

    return INTERPOLATION_RE.sub(replace, text), placeholders


def restore_interpolations(text: str, placeholders: List[str], original: str = None) -> str:
    """Put interpolations back in place of their tokens.

    Raises:
        TranslationBackendError: If the translation dropped or mangled a token
    """
    result = text
    for index, placeholder in enumerate(placeholders):
        token = TOKEN_FORMAT.format(index)
        if token not in result:
            raise TranslationBackendError(
                f"Interpolation {placeholder} was lost translating {original or text!r} -> {text!r}")
        result = result.replace(token, placeholder)
    return result


class TranslationForestBuilder:
    """Translates the leaves of a forest from base-locale values.

    Every root of the input forest names a destination locale. A leaf annotated
    with ``missing_keys`` stands for one new leaf per missing plural category;
    any other leaf is translated in place. Source strings always come from the
    base tree, falling back to a leaf's own value when the base has none.
    """

    def __init__(self, translator: Translator, base_tree: KeyTree, max_workers: int = 4):
        self.translator = translator
        self.base_tree = base_tree
        self.max_workers = max(1, int(max_workers))

    def translate_forest(self, forest: Forest, from_locale: Optional[str] = None) -> Forest:
        """Translate every leaf of ``forest`` and return them in a new forest.

        Locales are translated concurrently, one translator call per locale.
        Results are reassembled in the input order.

        Args:
            forest: Forest of missing leaves, one root per destination locale
            from_locale: Source locale. Defaults to the base tree's locale.

        Returns:
            Forest: Same keys (plural leaves expanded to categories) with translated values

        Raises:
            TranslationBackendError: If any translator call fails or a missing plural form has no
                base value to translate from; no partial forest is returned
        """
        from_locale = from_locale or self.base_tree.key
        jobs = [(root.key, self._collect_entries(root)) for root in forest]
        jobs = [(locale, entries) for locale, entries in jobs if entries]
        if not jobs:
            return Forest()

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as executor:
            futures = [executor.submit(self._translate_entries, entries, from_locale, locale)
                       for locale, entries in jobs]
            translated = [future.result() for future in futures]

        result = Forest()
        for (locale, entries), values in zip(jobs, translated):
            root = KeyTree(locale, children={})
            for entry, value in zip(entries, values):
                root = root.set(entry.key, value, data=entry.data)
            result = result.with_root(root)
        return result

    def _collect_entries(self, root: KeyTree) -> List[_Entry]:
        entries = []
        for leaf in root.leaves(root=False):
            missing = leaf.data.get("missing_keys")
            if missing:
                data = {k: v for k, v in leaf.data.items() if k != "missing_keys"}
                for category in missing:
                    source = self._plural_source(leaf.full_key, category)
                    if source is None:
                        raise TranslationBackendError(
                            f"No base value to translate {root.key}.{leaf.full_key}.{category} from")
                    entries.append(_Entry(join_key(leaf.full_key, category), source, data))
            else:
                base = self.base_tree.get(leaf.full_key)
                if base is not None and base.is_leaf and base.value is not None:
                    source = base.value
                else:
                    source = leaf.value
                entries.append(_Entry(leaf.full_key, source, dict(leaf.data)))
        return entries

    def _plural_source(self, key: str, category: str) -> Any:
        """Base value for one plural category.

        Tries the category itself, then "other", then the first category the
        base group has in CLDR order. A collapsed base leaf is its own source.
        """
        node = self.base_tree.get(key)
        if node is None:
            return None
        if node.is_leaf:
            return node.value
        names = [category, "other"] + [name for name in PLURAL_CATEGORIES if name not in (category, "other")]
        for name in names:
            child = node.child(name)
            if child is not None and child.is_leaf and child.value is not None:
                return child.value
        return None

    def _translate_entries(self, entries: List[_Entry], from_locale: str, to_locale: str) -> List[Any]:
        texts = []
        slots = []
        for entry in entries:
            source = entry.source
            if isinstance(source, list) and all(isinstance(v, str) for v in source):
                slots.append([self._queue(v, texts) for v in source])
            else:
                slots.append(self._queue(source, texts))

        translated = []
        if texts:
            logger.info(f"Translating {len(texts)} strings {from_locale}->{to_locale} with {self.translator!r}")
            try:
                translated = list(self.translator.translate(texts, from_locale, to_locale))
            except TranslationBackendError:
                raise
            except Exception as e:
                raise TranslationBackendError(f"Translation {from_locale}->{to_locale} failed: {e}") from e
            if len(translated) != len(texts):
                raise TranslationBackendError(
                    f"Translator returned {len(translated)} strings for a batch of {len(texts)} "
                    f"({from_locale}->{to_locale})")

        values = []
        for entry, slot in zip(entries, slots):
            if isinstance(slot, list):
                values.append([text if s is None else self._restore(translated, s)
                               for s, text in zip(slot, entry.source)])
            elif slot is None:
                values.append(entry.source)
            else:
                values.append(self._restore(translated, slot))
        return values

    @staticmethod
    def _queue(source, texts) -> Optional[_Slot]:
        # Only non-blank strings go to the translator, everything else is copied as is
        if not isinstance(source, str) or not source.strip():
            return None
        protected, placeholders = protect_interpolations(source)
        texts.append(protected)
        return _Slot(len(texts) - 1, placeholders, source)

    @staticmethod
    def _restore(translated, slot):
        return restore_interpolations(translated[slot.index], slot.placeholders, slot.original)
