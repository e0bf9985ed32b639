class I18nTasksError(Exception):
    """Base class for errors raised by i18n_tasks."""
    pass


class UnknownLocale(I18nTasksError, LookupError):
    """Raised when a locale has no entry in the plural rules table."""

    def __init__(self, locale):
        super().__init__(f"No plural rules defined for locale: {locale}")
        self.locale = locale


class TypeConflict(I18nTasksError, TypeError):
    """Raised when a tree operation addresses a leaf as an internal node or vice versa."""

    def __init__(self, key, message):
        super().__init__(f"{message}: {key}")
        self.key = key


class TranslationBackendError(I18nTasksError):
    """Raised when the translator fails for a batch. No partial results are kept."""
    pass


class InvalidIgnorePattern(I18nTasksError, ValueError):
    """Raised when an ignore pattern cannot be compiled."""

    def __init__(self, pattern, reason):
        super().__init__(f"Invalid ignore pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class ConfigError(I18nTasksError):
    pass
