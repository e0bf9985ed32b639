from typing import Iterable, List, Optional, Sequence, Set, Tuple

from i18n_tasks.errors import UnknownLocale
from i18n_tasks.ignore_patterns import IgnorePatternMatcher
from i18n_tasks.key_tree import Forest, KeyTree, join_key
from i18n_tasks.plural_detector import PluralGroup, classify, is_collapsed_plural
from i18n_tasks.plural_rules import (DEFAULT_FORMS, DEFAULT_PLURAL_RULES, PluralRules,
                                     UnknownLocalePolicy, is_plural_category, sort_categories)
from i18n_tasks.results import AnalysisResults, AnalysisType
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("missing_plurals")

MISSING_PLURAL = "missing_plural"


def unique_targets(target_locales: Iterable[str], base_locale: str) -> List[str]:
    """Target locales in the given order, without duplicates and without the base locale."""
    targets = []
    for locale in target_locales:
        if locale != base_locale and locale not in targets:
            targets.append(locale)
    return targets


class MissingPluralAnalyzer:
    """Finds plural groups whose target-locale translations lack required categories.

    The base tree is walked once to find every plural group (a "site"). Each
    target locale is then checked site by site against the categories its
    plural rules require.
    """

    def __init__(self, plural_rules: Optional[PluralRules] = None,
                 unknown_locale_policy=UnknownLocalePolicy.SKIP,
                 default_forms: Sequence[str] = DEFAULT_FORMS):
        self.plural_rules = plural_rules or DEFAULT_PLURAL_RULES
        self.unknown_locale_policy = UnknownLocalePolicy.from_value(unknown_locale_policy)
        self.default_forms = tuple(sort_categories(default_forms))

    def find_plural_sites(self, base_tree: KeyTree) -> List[Tuple[str, PluralGroup]]:
        """List every plural group in the base tree in depth-first order.

        Returns:
            list: ``(key, PluralGroup)`` pairs, keys relative to the locale root
        """
        sites = []
        for key, node in base_tree.nodes(root=False):
            classification = classify(node)
            if isinstance(classification, PluralGroup):
                sites.append((key, classification))
        return sites

    def missing_plural_forest(self, base_tree: KeyTree, target_locales: Sequence[str], data: Forest,
                              ignore_matcher: Optional[IgnorePatternMatcher] = None) -> Forest:
        """Forest of ``<locale>.<key>`` leaves whose ``missing_keys`` data lists absent categories."""
        return self.analyze(base_tree, target_locales, data, ignore_matcher).forest

    def analyze(self, base_tree: KeyTree, target_locales: Sequence[str], data: Forest,
                ignore_matcher: Optional[IgnorePatternMatcher] = None) -> AnalysisResults:
        """Compare each target locale's plural groups against the base tree.

        Args:
            base_tree: The base locale's tree, rooted at the base locale code
            target_locales: Locales to check; the base locale is skipped if listed
            data: Forest holding the target locales' trees. A missing root is
                treated as an empty tree.
            ignore_matcher: Patterns exempting keys or single categories

        Returns:
            AnalysisResults: The missing-plural forest, the sites found and any
                per-locale warnings

        Raises:
            UnknownLocale: Only with the RAISE unknown-locale policy
        """
        base_locale = base_tree.key
        ignore_matcher = ignore_matcher or IgnorePatternMatcher()
        targets = unique_targets(target_locales, base_locale)
        results = AnalysisResults(AnalysisType.MISSING_PLURALS, base_locale, targets)

        sites = self.find_plural_sites(base_tree)
        results.sites = [key for key, _ in sites]
        logger.debug(f"Found {len(sites)} plural groups in base locale {base_locale}")

        forest = Forest()
        for locale in targets:
            expected = self._expected_forms(locale, results)
            if expected is None:
                continue
            tree = data.root(locale) if data is not None else None
            if tree is None:
                logger.debug(f"No data for locale {locale}, treating it as empty")
                tree = KeyTree(locale, children={})

            root = KeyTree(locale, children={})
            for key, _ in sites:
                missing = self._missing_for_site(locale, key, tree, expected, ignore_matcher)
                if missing:
                    logger.debug(f"{locale}.{key} is missing plural forms {missing}")
                    root = root.set(key, None, data={"type": MISSING_PLURAL, "missing_keys": missing})
            if root.children:
                forest = forest.with_root(root)

        results.forest = forest
        logger.info(f"Missing plural forms: {results.get_total_errors() or 'none'}")
        return results

    def _expected_forms(self, locale: str, results: AnalysisResults) -> Optional[List[str]]:
        try:
            return sort_categories(self.plural_rules.required_forms(locale))
        except UnknownLocale as e:
            if self.unknown_locale_policy is UnknownLocalePolicy.RAISE:
                raise
            if self.unknown_locale_policy is UnknownLocalePolicy.FALLBACK:
                message = f"{e}, using default forms {list(self.default_forms)}"
                logger.warning(message)
                results.add_warning(locale, message)
                return list(self.default_forms)
            message = f"{e}, skipping locale"
            logger.warning(message)
            results.add_warning(locale, message, skipped=True)
            return None

    def _missing_for_site(self, locale, key, tree, expected, ignore_matcher) -> List[str]:
        full_key = join_key(locale, key)
        if ignore_matcher.matches(full_key):
            logger.debug(f"Ignoring plural key {full_key}")
            return []
        present = self._present_forms(tree.get(key), expected, full_key)
        return [category for category in expected
                if category not in present and not ignore_matcher.matches(full_key, category=category)]

    @staticmethod
    def _present_forms(node: Optional[KeyTree], expected, full_key) -> Set[str]:
        if node is None:
            return set()
        if node.is_leaf:
            # A single string where the base has a plural group is taken as complete
            if not is_collapsed_plural(node):
                logger.debug(f"{full_key} is a plain string where the base locale has plural forms")
            return set(expected)
        classification = classify(node)
        if isinstance(classification, PluralGroup):
            return set(classification.categories)
        return {name for name in node.child_names() if is_plural_category(name)}
