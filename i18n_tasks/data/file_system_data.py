"""Reading and writing locale YAML files.

Rails i18n YAML files conventionally use quoted string values, which protects
strings like "yes" or "no" from being read back as booleans. Locale codes
are unquoted keys, though, and YAML 1.1 reads a top-level `no:` (Norwegian)
as False, so files are read with ruamel.yaml's YAML 1.2 safe loader. Writing
also goes through ruamel.yaml, which quotes every string value.
"""

import glob
import os
import re
from pathlib import Path
from typing import Dict, List, Sequence

from ruamel.yaml import YAML as RuamelYAML
from ruamel.yaml.scalarstring import DoubleQuotedScalarString

from i18n_tasks.errors import ConfigError
from i18n_tasks.key_tree import Forest, KeyTree
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("file_system_data")

LOCALE_PLACEHOLDER = "%{locale}"


def _pattern_to_regex(pattern: str) -> "re.Pattern":
    escaped = re.escape(pattern.replace(os.sep, "/"))
    escaped = escaped.replace(re.escape(LOCALE_PLACEHOLDER), r"(?P<locale>[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]+)*)")
    escaped = escaped.replace(r"\*\*/", r"(?:.*/)?").replace(r"\*", r"[^/]*")
    return re.compile(escaped + r"\Z")


class FileSystemData:
    """Locale data stored in YAML files matched by the ``data.read`` patterns.

    Patterns are relative to the project root and contain a ``%{locale}``
    placeholder, e.g. ``config/locales/%{locale}.yml`` or
    ``config/locales/**/*.%{locale}.yml``. Every file matched for a locale must
    have the locale code as its single top-level key; the files of one locale
    are deep-merged in sorted path order.
    """

    def __init__(self, config):
        self.config = config
        self.root_dir = Path(config.root_dir)
        self.read_patterns = config.get_list("data.read")
        if not self.read_patterns:
            raise ConfigError("data.read must list at least one file pattern")
        for pattern in self.read_patterns:
            if LOCALE_PLACEHOLDER not in pattern:
                raise ConfigError(f"data.read pattern has no {LOCALE_PLACEHOLDER} placeholder: {pattern}")
        self.write_pattern = config.get("data.write") or self.read_patterns[0]

    def available_locales(self) -> List[str]:
        """Locales that have at least one file matching a read pattern, sorted."""
        locales = set()
        for pattern in self.read_patterns:
            regex = _pattern_to_regex(pattern)
            for path in self._glob(pattern.replace(LOCALE_PLACEHOLDER, "*")):
                relative = os.path.relpath(path, self.root_dir).replace(os.sep, "/")
                match = regex.match(relative)
                if match:
                    locales.add(match.group("locale"))
        return sorted(locales)

    def locale_files(self, locale: str) -> List[str]:
        files = []
        for pattern in self.read_patterns:
            for path in self._glob(pattern.replace(LOCALE_PLACEHOLDER, locale)):
                if path not in files:
                    files.append(path)
        return files

    def read_locale(self, locale: str) -> KeyTree:
        """Load and merge every file of a locale into one tree rooted at the locale code."""
        tree = KeyTree(locale, children={})
        for path in self.locale_files(locale):
            data = self._load(path)
            if not data:
                logger.debug(f"Skipping empty YAML file {path}")
                continue
            locale_data = self._locale_section(data, locale)
            if locale_data is None:
                logger.warning(f"YAML file {path} has no top-level '{locale}' key, skipping")
                continue
            tree = tree.merge(KeyTree.from_dict(locale_data, locale))
            logger.debug(f"Loaded {path} for locale {locale}")
        return tree

    def load_forest(self, locales: Sequence[str]) -> Forest:
        return Forest(self.read_locale(locale) for locale in locales)

    def write(self, forest: Forest, merge: bool = True) -> Dict[str, str]:
        """Write each locale root of ``forest`` to its ``data.write`` file.

        Args:
            forest: Trees to write, one root per locale
            merge: Deep-merge into the file's current content instead of replacing it

        Returns:
            dict: Locale code to the path written
        """
        written = {}
        for root in forest:
            path = self.root_dir / self.write_pattern.replace(LOCALE_PLACEHOLDER, root.key)
            tree = root
            if merge and path.exists():
                existing = self._locale_section(self._load(path) or {}, root.key)
                if existing:
                    tree = KeyTree.from_dict(existing, root.key).merge(root)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                self._dump({root.key: tree.to_dict()}, f)
            logger.info(f"Wrote locale {root.key} to {path}")
            written[root.key] = str(path)
        return written

    def _glob(self, pattern):
        return sorted(glob.glob(str(self.root_dir / pattern), recursive=True))

    @staticmethod
    def _load(path):
        with open(path, "r", encoding="utf-8") as f:
            return RuamelYAML(typ="safe").load(f)

    @staticmethod
    def _locale_section(data, locale):
        if not isinstance(data, dict):
            return None
        for key, value in data.items():
            if str(key) == locale:
                return value if value is not None else {}
        return None

    def _dump(self, data, stream):
        ryaml = RuamelYAML()
        ryaml.width = 1000  # Prevent line wrapping
        ryaml.indent(mapping=2, sequence=4, offset=2)
        ryaml.dump(self._quote_string_values(data), stream)

    def _quote_string_values(self, data):
        """Recursively wrap string values (not keys) in DoubleQuotedScalarString."""
        if isinstance(data, dict):
            return {k: self._quote_string_values(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [self._quote_string_values(item) for item in data]
        elif isinstance(data, str):
            return DoubleQuotedScalarString(data)
        else:
            return data
