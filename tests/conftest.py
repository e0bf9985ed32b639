"""
Pytest configuration and shared fixtures for the i18n_tasks tests.
"""

import threading
from copy import deepcopy

import pytest

from i18n_tasks.base_task import BaseTask
from i18n_tasks.key_tree import KeyTree
from i18n_tasks.lib.base_translator import Translator
from i18n_tasks.utils.config import ConfigManager

BASE_KEYS = {
    "regular_key": "a",
    "plural_key": {
        "one": "one",
        "other": "%{count}",
    },
    "not_really_plural": {
        "one": "a",
        "green": "b",
    },
    "nested": {
        "plural_key": {
            "zero": "none",
            "one": "one",
            "other": "%{count}",
        },
    },
    "ignored_pattern": {
        "plural_key": {
            "other": "%{count}",
        },
    },
}


class PrefixTranslator(Translator):
    """Test backend that prefixes every string and records its calls."""

    name = "test"

    def __init__(self, prefix="translated:"):
        self.prefix = prefix
        self.calls = []
        self._lock = threading.Lock()

    def translate(self, batch, from_locale, to_locale):
        with self._lock:
            self.calls.append((list(batch), from_locale, to_locale))
        return [f"{self.prefix}{text}" for text in batch]


class FailingTranslator(Translator):
    name = "failing"

    def __init__(self, fail_for=None):
        self.fail_for = fail_for

    def translate(self, batch, from_locale, to_locale):
        if self.fail_for is None or to_locale == self.fail_for:
            raise RuntimeError("backend unavailable")
        return list(batch)


@pytest.fixture
def base_keys():
    return deepcopy(BASE_KEYS)


@pytest.fixture
def base_tree(base_keys):
    return KeyTree.from_dict(base_keys, "en")


@pytest.fixture
def translator():
    return PrefixTranslator()


@pytest.fixture
def failing_translator():
    """Factory for a translator that raises, for every locale or just ``fail_for``."""
    return FailingTranslator


@pytest.fixture
def make_task():
    """Build a task from in-memory data and config values."""
    def _make_task(data, **config):
        config.setdefault("base_locale", "en")
        return BaseTask(config=ConfigManager.from_dict(config), data=data)
    return _make_task
