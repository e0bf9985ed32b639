import logging
import sys

ROOT_LOGGER_NAME = "i18n_tasks"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name):
    """Get a logger namespaced under the package root logger.

    Args:
        name (str): Short module name, e.g. "missing_plurals"

    Returns:
        logging.Logger: The logger for ``i18n_tasks.<name>``
    """
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(level=logging.INFO, stream=None):
    """Install a console handler on the package root logger.

    Calling this more than once replaces the handler rather than stacking them.

    Args:
        level: Logging level for the package loggers
        stream: Stream for the handler. Defaults to stderr.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_i18n_tasks_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._i18n_tasks_handler = True
    root.addHandler(handler)
    root.setLevel(level)
    return root
