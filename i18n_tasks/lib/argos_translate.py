import os
import threading
from pathlib import Path
from typing import List, Sequence

import argostranslate.package
import argostranslate.translate

from i18n_tasks.errors import TranslationBackendError
from i18n_tasks.lib.base_translator import Translator
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("argos_translate")


class ArgosTranslator(Translator):
    """Offline translation with Argos Translate models.

    Missing language packages are downloaded from the Argos package index on
    first use unless ``auto_install`` is off.
    """

    name = "argos"

    def __init__(self, models_dir="models/argos", auto_install=True):
        self.models_dir = Path(models_dir)
        self.auto_install = auto_install
        self._translations = {}
        # Package installs write to the shared ARGOS_PACKAGES_DIR, one at a time
        self._lock = threading.Lock()
        self.models_dir.mkdir(parents=True, exist_ok=True)
        # Read by argostranslate when it looks up installed packages
        os.environ["ARGOS_PACKAGES_DIR"] = str(self.models_dir)

        installed_packages = argostranslate.package.get_installed_packages()
        logger.info(f"Found {len(installed_packages)} installed Argos Translate packages")
        for package in installed_packages:
            logger.debug(f"Package: {package.from_code} -> {package.to_code}")

    @classmethod
    def from_config(cls, config):
        return cls(models_dir=config.get("translation.models_dir", "models/argos"),
                   auto_install=config.get("translation.auto_install", True))

    def translate(self, batch: Sequence[str], from_locale: str, to_locale: str) -> List[str]:
        translation = self._get_translation(self._language_code(from_locale), self._language_code(to_locale))
        return [translation.translate(text) for text in batch]

    def _get_translation(self, from_code, to_code):
        key = (from_code, to_code)
        with self._lock:
            if key not in self._translations:
                translation = self._find_translation(from_code, to_code)
                if translation is None and self.auto_install:
                    self.install_language_package(from_code, to_code)
                    translation = self._find_translation(from_code, to_code)
                if translation is None:
                    raise TranslationBackendError(
                        f"No Argos Translate package installed for {from_code}->{to_code}")
                self._translations[key] = translation
            return self._translations[key]

    @staticmethod
    def _find_translation(from_code, to_code):
        from_lang = argostranslate.translate.get_language_from_code(from_code)
        to_lang = argostranslate.translate.get_language_from_code(to_code)
        if not from_lang or not to_lang:
            logger.warning(f"Language code not recognized: {from_code}->{to_code}")
            return None
        return from_lang.get_translation(to_lang)

    def install_language_package(self, from_code, to_code):
        """Download and install the package for a language pair.

        Raises:
            TranslationBackendError: If the package index has no such pair
        """
        for package in argostranslate.package.get_installed_packages():
            if package.from_code == from_code and package.to_code == to_code:
                logger.info(f"Package {from_code}->{to_code} already installed")
                return

        logger.info(f"Updating Argos package index to install {from_code}->{to_code}")
        argostranslate.package.update_package_index()
        available_packages = argostranslate.package.get_available_packages()
        package_to_install = next(
            (p for p in available_packages if p.from_code == from_code and p.to_code == to_code),
            None
        )
        if not package_to_install:
            raise TranslationBackendError(f"No Argos Translate package available for {from_code}->{to_code}")

        package_path = package_to_install.download()
        argostranslate.package.install_from_path(package_path)
        logger.info(f"Successfully installed package for {from_code}->{to_code}")

    def get_installed_packages(self):
        """List installed language pairs as ``(from_code, to_code)`` tuples."""
        return [(p.from_code, p.to_code) for p in argostranslate.package.get_installed_packages()]

    @staticmethod
    def _language_code(locale):
        # Argos models are per language, "pt-BR" uses the "pt" model
        return str(locale).replace("_", "-").split("-", 1)[0].lower()
