from typing import Dict, List, Optional, Sequence

from i18n_tasks.data.file_system_data import FileSystemData
from i18n_tasks.ignore_patterns import IgnorePatternMatcher
from i18n_tasks.key_tree import Forest, KeyTree
from i18n_tasks.lib import Translator, get_translator
from i18n_tasks.missing_keys import MissingKeysAnalyzer
from i18n_tasks.missing_plurals import MissingPluralAnalyzer
from i18n_tasks.plural_detector import depluralize
from i18n_tasks.plural_rules import PluralRules
from i18n_tasks.results import AnalysisResults
from i18n_tasks.translation_forest import TranslationForestBuilder
from i18n_tasks.utils.config import ConfigManager
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("base_task")

# Config keys whose patterns apply to each kind of check
IGNORE_CONFIG_KEYS = {
    "missing": ("ignore", "ignore_missing"),
    "plurals": ("ignore", "ignore_missing", "ignore_plurals"),
    "not_in_base": ("ignore",),
}


class BaseTask:
    """Entry point for checking and fixing the locale data of a project.

    The task holds the configuration, the locale trees (loaded from the
    ``data.read`` files on first use unless given up front), the compiled
    ignore patterns and the translator.

    1. Analysis:
       - ``missing_plural_forest``: plural groups lacking categories a target locale needs
       - ``missing_keys_forest``: base keys a target locale lacks
       - ``keys_not_in_base_forest``: target keys the base locale lacks

    2. Fixing:
       - ``translate_forest``: fill a forest of missing keys from base values
       - ``merge_forest`` / ``write_forest``: apply results in memory or on disk

    Ignore patterns are compiled when the task is created, so a bad pattern in
    the configuration fails before any analysis runs.
    """

    def __init__(self, config: Optional[ConfigManager] = None, data=None,
                 translator: Optional[Translator] = None, plural_rules: Optional[PluralRules] = None,
                 root_dir=None):
        """Initialize the task.

        Args:
            config: Configuration. Defaults to ``config/i18n-tasks.yml`` under ``root_dir``.
            data: Locale data as a Forest or a ``{locale: {...}}`` mapping. Read
                from the files in ``data.read`` when omitted.
            translator: Translator used by ``translate_forest`` unless one is passed there
            plural_rules: Plural rules table override
            root_dir: Project directory. Defaults to the working directory.
        """
        self.config = config or ConfigManager(root_dir=root_dir)
        self.translator = translator
        self._file_system_data = None
        self._data: Optional[Forest] = None
        if data is not None:
            self._data = data if isinstance(data, Forest) else Forest.from_dict(data)

        self.plural_analyzer = MissingPluralAnalyzer(
            plural_rules,
            unknown_locale_policy=self.config.get("plurals.unknown_locale", "skip"),
            default_forms=self.config.get_list("plurals.default_forms") or ("one", "other"),
        )
        self.keys_analyzer = MissingKeysAnalyzer()
        self._ignore_matchers = {kind: self._build_ignore_matcher(kind) for kind in IGNORE_CONFIG_KEYS}
        logger.debug(f"Initialized task with base locale {self.base_locale}")

    @property
    def base_locale(self) -> str:
        return str(self.config.get("base_locale", "en"))

    @property
    def locales(self) -> List[str]:
        """Configured locales, or all locales with data, with the base locale first."""
        locales = self.config.get_list("locales")
        if not locales:
            if self._data is not None:
                locales = self._data.locales
            else:
                locales = self.file_system_data.available_locales()
        return [self.base_locale] + [locale for locale in locales if locale != self.base_locale]

    @property
    def file_system_data(self) -> FileSystemData:
        if self._file_system_data is None:
            self._file_system_data = FileSystemData(self.config)
        return self._file_system_data

    @property
    def data(self) -> Forest:
        if self._data is None:
            self._data = self.file_system_data.load_forest(self.locales)
            logger.info(f"Loaded locale data for {self._data.locales}")
        return self._data

    @data.setter
    def data(self, value):
        self._data = value if isinstance(value, Forest) else Forest.from_dict(value)

    def locale_tree(self, locale: str) -> KeyTree:
        """The tree of one locale; an empty tree if it has no data."""
        tree = self.data.root(locale)
        if tree is None and self._file_system_data is not None:
            tree = self.file_system_data.read_locale(locale)
            self._data = self._data.with_root(tree)
        return tree if tree is not None else KeyTree(locale, children={})

    def ignore_matcher(self, kind: str = "missing") -> IgnorePatternMatcher:
        return self._ignore_matchers[kind]

    def _build_ignore_matcher(self, kind):
        patterns = []
        for config_key in IGNORE_CONFIG_KEYS[kind]:
            patterns.extend(self.config.get_list(config_key))
        return IgnorePatternMatcher(patterns, scope=self.config.get("ignore_scope", "key"))

    def depluralize_key(self, key: str, locale: Optional[str] = None) -> str:
        """Strip a trailing plural category from a key that names one form of a plural group.

        Args:
            key: Key relative to the locale, e.g. "plural_key.one"
            locale: Locale whose data decides what is a plural group. Defaults to the base locale.
        """
        return depluralize(self.locale_tree(locale or self.base_locale), key)

    def _target_data(self, locales, base):
        base = base or self.base_locale
        locales = list(locales) if locales is not None else self.locales
        base_tree = self.locale_tree(base)
        targets = Forest(self.locale_tree(locale) for locale in dict.fromkeys(locales) if locale != base)
        return base_tree, locales, targets

    def missing_plural_results(self, locales: Optional[Sequence[str]] = None,
                               base: Optional[str] = None) -> AnalysisResults:
        base_tree, locales, targets = self._target_data(locales, base)
        return self.plural_analyzer.analyze(base_tree, locales, targets, self.ignore_matcher("plurals"))

    def missing_plural_forest(self, locales: Optional[Sequence[str]] = None,
                              base: Optional[str] = None) -> Forest:
        """Plural groups missing categories, as ``<locale>.<key>`` leaves with ``missing_keys`` data.

        Args:
            locales: Locales to check. Defaults to all locales; the base locale is skipped.
            base: Base locale. Defaults to the configured base locale.
        """
        return self.missing_plural_results(locales, base).forest

    def missing_keys_results(self, locales: Optional[Sequence[str]] = None,
                             base: Optional[str] = None) -> AnalysisResults:
        base_tree, locales, targets = self._target_data(locales, base)
        return self.keys_analyzer.analyze_missing(base_tree, locales, targets, self.ignore_matcher("missing"))

    def missing_keys_forest(self, locales: Optional[Sequence[str]] = None,
                            base: Optional[str] = None) -> Forest:
        return self.missing_keys_results(locales, base).forest

    def keys_not_in_base_results(self, locales: Optional[Sequence[str]] = None,
                                 base: Optional[str] = None) -> AnalysisResults:
        base_tree, locales, targets = self._target_data(locales, base)
        return self.keys_analyzer.analyze_not_in_base(base_tree, locales, targets,
                                                      self.ignore_matcher("not_in_base"))

    def keys_not_in_base_forest(self, locales: Optional[Sequence[str]] = None,
                                base: Optional[str] = None) -> Forest:
        return self.keys_not_in_base_results(locales, base).forest

    def translate_forest(self, forest: Forest, from_locale: Optional[str] = None,
                         backend: Optional[str] = None, translator: Optional[Translator] = None) -> Forest:
        """Translate a forest of missing keys from the base locale's values.

        The translator is, in order of preference: ``translator``, the task's
        own translator, or the backend named by ``backend`` or the
        ``translation.backend`` setting.

        Raises:
            TranslationBackendError: If the translator fails; nothing is returned in that case
        """
        from_locale = from_locale or self.base_locale
        translator = translator or self.translator
        if translator is None:
            translator = get_translator(backend or self.config.get("translation.backend"), self.config)
            self.translator = translator
        builder = TranslationForestBuilder(translator, self.locale_tree(from_locale),
                                           max_workers=self.config.get("translation.max_workers", 4))
        return builder.translate_forest(forest, from_locale)

    def merge_forest(self, forest: Forest) -> Forest:
        """Merge a forest into the in-memory locale data and return the new data."""
        self._data = self.data.merge(forest)
        return self._data

    def write_forest(self, forest: Forest) -> Dict[str, str]:
        """Merge a forest into the locale files on disk."""
        return self.file_system_data.write(forest, merge=True)

    def print_report(self, results: AnalysisResults):
        print(results.format_status_report())
