from i18n_tasks.lib.base_translator import Translator


def get_translator(backend, config):
    """Create the translator for a configured backend name.

    Backends are imported on demand so their dependencies are only needed
    when they are used.

    Args:
        backend (str): Backend name, e.g. "argos"
        config: ConfigManager holding the backend's settings

    Returns:
        Translator: The backend instance
    """
    if backend == "argos":
        from i18n_tasks.lib.argos_translate import ArgosTranslator
        return ArgosTranslator.from_config(config)
    raise ValueError(f"Unknown translation backend: {backend}")


__all__ = ["Translator", "get_translator"]
