"""Structured logging for odbkit.

Events are rendered by structlog and handed to the standard library
logger of the emitting module, under the 'odbkit' logger. That logger
carries a NullHandler, so nothing is printed unless the application
configures logging (the odbkit CLI does so for --verbose).
"""

import logging

import structlog

logging.getLogger('odbkit').addHandler(logging.NullHandler())


def get_logger(name: str):
    """Bound structlog logger writing to logging.getLogger(name)."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.KeyValueRenderer(key_order=['event']),
        ],
    )
