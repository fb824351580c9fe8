"""
Logger module - entry point for module loggers.

The root handlers are built once, on the first ``get_logger`` call, from
config.properties and the TASKLOOP_* environment variables.
"""

from .comprehensive_logger import ComprehensiveLogger, TaskLogger

_configured = False


def configure_logging(force: bool = False) -> None:
    """Build the root handlers from configuration (once unless *force*)."""
    global _configured
    if _configured and not force:
        return
    _configured = True

    from taskloop.config.config_properties import ConfigProperties

    ConfigProperties.load_env_file()
    ComprehensiveLogger.initialize(**ConfigProperties.logging_settings())


def get_logger(name: str) -> TaskLogger:
    """
    Get the logger for *name* (typically ``__name__``).

    Returns:
        TaskLogger sharing the taskloop root handlers
    """
    configure_logging()
    return ComprehensiveLogger.get_logger(name)
