"""Structured logging setup.

structlog renders every record, including the ones emitted by Django
itself through the stdlib ``logging`` tree, so request errors and our own
lifecycle events end up in the same stream.
"""
import structlog


SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def build_logging_config(log_level="INFO", json_logs=True):
    """
    Return a ``LOGGING`` dict for Django settings.

    Args:
        log_level: Root level (DEBUG, INFO, WARNING, ERROR)
        json_logs: JSON lines when True, coloured console output otherwise
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'structlog': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processors': [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    renderer,
                ],
                'foreign_pre_chain': SHARED_PROCESSORS,
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'structlog',
            },
        },
        'root': {
            'handlers': ['console'],
            'level': log_level.upper(),
        },
        'loggers': {
            'django.db.backends': {'level': 'WARNING'},
        },
    }


def configure_structlog():
    structlog.configure(
        processors=SHARED_PROCESSORS + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name):
    return structlog.get_logger(name)
