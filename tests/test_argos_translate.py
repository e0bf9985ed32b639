import importlib
import os
import sys
import threading
import time
from types import ModuleType, SimpleNamespace

import pytest

from i18n_tasks.errors import TranslationBackendError
from i18n_tasks.key_tree import Forest, KeyTree
from i18n_tasks.lib import get_translator
from i18n_tasks.translation_forest import TranslationForestBuilder
from i18n_tasks.utils.config import ConfigManager


class FakeArgos:
    """In-memory stand-in for the argostranslate package index and installed models."""

    def __init__(self, installed=(), available=(), index_delay=0.0):
        self.installed = set(installed)
        self.available = set(available)
        self.index_delay = index_delay
        self.index_updates = 0
        self.active_updates = 0
        self.max_concurrent_updates = 0
        self._lock = threading.Lock()

    def get_installed_packages(self):
        return [SimpleNamespace(from_code=f, to_code=t) for f, t in sorted(self.installed)]

    def update_package_index(self):
        with self._lock:
            self.index_updates += 1
            self.active_updates += 1
            self.max_concurrent_updates = max(self.max_concurrent_updates, self.active_updates)
        time.sleep(self.index_delay)
        with self._lock:
            self.active_updates -= 1

    def get_available_packages(self):
        return [SimpleNamespace(from_code=f, to_code=t, download=lambda pair=(f, t): pair)
                for f, t in sorted(self.available)]

    def install_from_path(self, path):
        self.installed.add(path)

    def get_language_from_code(self, code):
        return FakeLanguage(code, self)


class FakeLanguage:
    def __init__(self, code, argos):
        self.code = code
        self.argos = argos

    def get_translation(self, to_lang):
        if (self.code, to_lang.code) not in self.argos.installed:
            return None
        return SimpleNamespace(translate=lambda text, to_code=to_lang.code: f"{to_code}:{text}")


@pytest.fixture
def install_fake_argos(monkeypatch, tmp_path):
    """Put fake ``argostranslate`` modules in place and return a freshly imported adapter module."""
    monkeypatch.setenv("ARGOS_PACKAGES_DIR", "")

    def _install(argos):
        package = ModuleType("argostranslate.package")
        for name in ("get_installed_packages", "update_package_index", "get_available_packages",
                     "install_from_path"):
            setattr(package, name, getattr(argos, name))
        translate = ModuleType("argostranslate.translate")
        translate.get_language_from_code = argos.get_language_from_code
        root = ModuleType("argostranslate")
        root.package = package
        root.translate = translate
        monkeypatch.setitem(sys.modules, "argostranslate", root)
        monkeypatch.setitem(sys.modules, "argostranslate.package", package)
        monkeypatch.setitem(sys.modules, "argostranslate.translate", translate)
        monkeypatch.delitem(sys.modules, "i18n_tasks.lib.argos_translate", raising=False)
        return importlib.import_module("i18n_tasks.lib.argos_translate")

    return _install


class TestArgosTranslator:

    def test_translate_batch(self, tmp_path, install_fake_argos):
        module = install_fake_argos(FakeArgos(installed={("en", "ru")}))
        translator = module.ArgosTranslator(models_dir=tmp_path, auto_install=False)
        assert translator.translate(["one", "__I18N_0__"], "en", "ru") == ["ru:one", "ru:__I18N_0__"]

    def test_region_uses_language_model(self, tmp_path, install_fake_argos):
        module = install_fake_argos(FakeArgos(installed={("en", "ru")}))
        translator = module.ArgosTranslator(models_dir=tmp_path, auto_install=False)
        assert translator.translate(["a"], "en-US", "ru_RU") == ["ru:a"]

    def test_missing_pair_without_auto_install(self, tmp_path, install_fake_argos):
        argos = FakeArgos(installed={("en", "ru")}, available={("en", "de")})
        module = install_fake_argos(argos)
        translator = module.ArgosTranslator(models_dir=tmp_path, auto_install=False)
        with pytest.raises(TranslationBackendError):
            translator.translate(["a"], "en", "de")
        assert argos.index_updates == 0

    def test_auto_install_downloads_missing_pair(self, tmp_path, install_fake_argos):
        argos = FakeArgos(available={("en", "de")})
        module = install_fake_argos(argos)
        translator = module.ArgosTranslator(models_dir=tmp_path)
        assert translator.translate(["a"], "en", "de") == ["de:a"]
        assert translator.get_installed_packages() == [("en", "de")]

    def test_unavailable_pair_raises(self, tmp_path, install_fake_argos):
        module = install_fake_argos(FakeArgos())
        translator = module.ArgosTranslator(models_dir=tmp_path)
        with pytest.raises(TranslationBackendError):
            translator.translate(["a"], "en", "xx")

    def test_sets_packages_dir(self, tmp_path, install_fake_argos):
        module = install_fake_argos(FakeArgos())
        module.ArgosTranslator(models_dir=tmp_path / "models", auto_install=False)
        assert os.environ["ARGOS_PACKAGES_DIR"] == str(tmp_path / "models")
        assert (tmp_path / "models").is_dir()

    def test_created_from_config(self, tmp_path, install_fake_argos):
        module = install_fake_argos(FakeArgos())
        config = ConfigManager.from_dict({"translation": {"models_dir": str(tmp_path / "models"),
                                                          "auto_install": False}})
        translator = get_translator("argos", config)
        assert isinstance(translator, module.ArgosTranslator)
        assert translator.models_dir == tmp_path / "models"
        assert translator.auto_install is False


def test_parallel_locales_install_packages_one_at_a_time(tmp_path, install_fake_argos):
    argos = FakeArgos(available={("en", "ru"), ("en", "de"), ("en", "fr")}, index_delay=0.05)
    module = install_fake_argos(argos)
    translator = module.ArgosTranslator(models_dir=tmp_path)
    base = KeyTree.from_dict({"greeting": "hello"}, "en")
    forest = Forest.from_dict({"ru": {"greeting": None}, "de": {"greeting": None}, "fr": {"greeting": None}})

    result = TranslationForestBuilder(translator, base, max_workers=3).translate_forest(forest)

    assert argos.max_concurrent_updates == 1
    assert argos.installed == {("en", "ru"), ("en", "de"), ("en", "fr")}
    assert result.to_dict() == {"ru": {"greeting": "ru:hello"}, "de": {"greeting": "de:hello"},
                                "fr": {"greeting": "fr:hello"}}
