"""Find and fix missing keys and incomplete pluralizations across locale files."""

from i18n_tasks.base_task import BaseTask
from i18n_tasks.errors import (ConfigError, I18nTasksError, InvalidIgnorePattern, TranslationBackendError,
                               TypeConflict, UnknownLocale)
from i18n_tasks.ignore_patterns import IgnorePatternMatcher, MatchScope
from i18n_tasks.key_tree import Forest, KeyTree, Leaf
from i18n_tasks.lib.base_translator import Translator
from i18n_tasks.missing_keys import MissingKeysAnalyzer
from i18n_tasks.missing_plurals import MissingPluralAnalyzer
from i18n_tasks.plural_detector import OrdinaryNode, PluralGroup, classify, depluralize, is_plural_group
from i18n_tasks.plural_rules import PLURAL_CATEGORIES, PluralRules, UnknownLocalePolicy
from i18n_tasks.translation_forest import TranslationForestBuilder

__version__ = "0.1.0"

__all__ = [
    "BaseTask",
    "ConfigError",
    "Forest",
    "I18nTasksError",
    "IgnorePatternMatcher",
    "InvalidIgnorePattern",
    "KeyTree",
    "Leaf",
    "MatchScope",
    "MissingKeysAnalyzer",
    "MissingPluralAnalyzer",
    "OrdinaryNode",
    "PLURAL_CATEGORIES",
    "PluralGroup",
    "PluralRules",
    "TranslationBackendError",
    "TranslationForestBuilder",
    "Translator",
    "TypeConflict",
    "UnknownLocale",
    "UnknownLocalePolicy",
    "classify",
    "depluralize",
    "is_plural_group",
]
