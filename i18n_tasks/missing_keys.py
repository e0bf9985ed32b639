from typing import List, Optional, Sequence

from i18n_tasks.ignore_patterns import IgnorePatternMatcher
from i18n_tasks.key_tree import Forest, KeyTree, join_key
from i18n_tasks.missing_plurals import unique_targets
from i18n_tasks.plural_detector import depluralize
from i18n_tasks.results import AnalysisResults, AnalysisType
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("missing_keys")

MISSING_FROM_LOCALE = "missing_from_locale"
NOT_IN_BASE = "not_in_base"


def canonical_keys(tree: KeyTree) -> List[str]:
    """Leaf keys of a tree with plural categories folded into their group key, in order."""
    keys = []
    seen = set()
    for leaf in tree.leaves(root=False):
        key = depluralize(tree, leaf.full_key)
        if key not in seen:
            seen.add(key)
            keys.append(key)
    return keys


def is_blank(node: Optional[KeyTree]) -> bool:
    """Whether a node is absent or a leaf without any text."""
    if node is None:
        return True
    if not node.is_leaf:
        return False
    return node.value is None or (isinstance(node.value, str) and node.value.strip() == "")


def _annotated(node: KeyTree, kind: str) -> KeyTree:
    if node.is_leaf:
        return node.with_data(type=kind)
    return KeyTree(node.key, children=[_annotated(child, kind) for child in node.children], data=node.data)


class MissingKeysAnalyzer:
    """Key-level differences between a base locale and target locales.

    Plural groups are compared as a whole: a target providing any form of a
    plural key (or a single interpolation string in its place) has the key.
    Missing categories within a group are the job of MissingPluralAnalyzer.
    """

    def missing_keys_forest(self, base_tree: KeyTree, target_locales: Sequence[str], data: Forest,
                            ignore_matcher: Optional[IgnorePatternMatcher] = None) -> Forest:
        return self.analyze_missing(base_tree, target_locales, data, ignore_matcher).forest

    def keys_not_in_base_forest(self, base_tree: KeyTree, target_locales: Sequence[str], data: Forest,
                                ignore_matcher: Optional[IgnorePatternMatcher] = None) -> Forest:
        return self.analyze_not_in_base(base_tree, target_locales, data, ignore_matcher).forest

    def analyze_missing(self, base_tree: KeyTree, target_locales: Sequence[str], data: Forest,
                        ignore_matcher: Optional[IgnorePatternMatcher] = None) -> AnalysisResults:
        """Find base keys that a target locale lacks or leaves blank.

        Each reported key is a copy of the base node (value and, for plural
        groups, every category) placed under the target locale, so the forest
        can go straight to translation.
        """
        base_locale = base_tree.key
        ignore_matcher = ignore_matcher or IgnorePatternMatcher()
        targets = unique_targets(target_locales, base_locale)
        results = AnalysisResults(AnalysisType.MISSING_KEYS, base_locale, targets)
        keys = canonical_keys(base_tree)

        forest = Forest()
        for locale in targets:
            tree = data.root(locale) if data is not None else None
            if tree is None:
                tree = KeyTree(locale, children={})
            root = KeyTree(locale, children={})
            for key in keys:
                if ignore_matcher.matches(join_key(locale, key)):
                    continue
                if is_blank(tree.get(key)):
                    root = root.set(key, _annotated(base_tree.get(key), MISSING_FROM_LOCALE))
            if root.children:
                forest = forest.with_root(root)

        results.forest = forest
        logger.info(f"Missing keys: {results.get_total_errors() or 'none'}")
        return results

    def analyze_not_in_base(self, base_tree: KeyTree, target_locales: Sequence[str], data: Forest,
                            ignore_matcher: Optional[IgnorePatternMatcher] = None) -> AnalysisResults:
        """Find target keys with no counterpart in the base locale."""
        base_locale = base_tree.key
        ignore_matcher = ignore_matcher or IgnorePatternMatcher()
        targets = unique_targets(target_locales, base_locale)
        results = AnalysisResults(AnalysisType.NOT_IN_BASE, base_locale, targets)

        forest = Forest()
        for locale in targets:
            tree = data.root(locale) if data is not None else None
            if tree is None:
                continue
            root = KeyTree(locale, children={})
            for key in canonical_keys(tree):
                if ignore_matcher.matches(join_key(locale, key)):
                    continue
                if base_tree.get(key) is None:
                    root = root.set(key, _annotated(tree.get(key), NOT_IN_BASE))
            if root.children:
                forest = forest.with_root(root)

        results.forest = forest
        logger.info(f"Keys not in base: {results.get_total_errors() or 'none'}")
        return results
