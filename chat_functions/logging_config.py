import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

from .config import Settings, settings as default_settings

# Loggers of the Google SDKs that flood the function logs at INFO
QUIET_LOGGERS = ('google', 'google.auth', 'urllib3', 'grpc')


def build_formatter(settings: Optional[Settings] = None) -> jsonlogger.JsonFormatter:
    """
    JSON formatter whose records Cloud Logging parses natively.

    `levelname` is emitted as `severity`, and every record carries the
    service and environment it came from.
    """
    settings = settings or default_settings
    return jsonlogger.JsonFormatter(
        '%(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'severity'},
        static_fields={
            'service': settings.service_name,
            'environment': settings.environment,
        },
        timestamp=True,
    )


def setup_logging(settings: Optional[Settings] = None):
    """Route all logging to a single JSON handler on stderr."""
    settings = settings or default_settings

    handler = logging.StreamHandler()
    handler.setFormatter(build_formatter(settings))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
