"""Logging setup shared by the API server and the command-line renderer."""

import logging
from collections.abc import Iterable

import common.settings

APP_LOGGER_NAME = 'checkpoints'

QUIET_PATHS = ('/health', '/favicon.ico')


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access-log lines for probe and browser housekeeping paths."""

    def __init__(self, paths: Iterable[str] = QUIET_PATHS) -> None:
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in self.paths)


def configure_logging() -> None:
    """Quiet the access log and apply LOG_LEVEL to the application loggers.

    Safe to call more than once; the access-log filter is installed only once.
    """
    access = logging.getLogger('uvicorn.access')
    if not any(isinstance(f, HealthCheckFilter) for f in access.filters):
        access.addFilter(HealthCheckFilter())
    logging.getLogger(APP_LOGGER_NAME).setLevel(common.settings.LOG_LEVEL)
