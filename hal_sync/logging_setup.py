import json
import logging
import os
import sys

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s | extras=%(extras)s"


class _DefaultExtras(logging.Filter):
    """Fill in an empty `extras` field for records logged without one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "extras"):
            record.extras = "{}"
        return True


def get_logger(name: str) -> logging.LoggerAdapter:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT))
        handler.addFilter(_DefaultExtras())
        logger.addHandler(handler)
        logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    return logging.LoggerAdapter(logger, extra={"extras": "{}"})


def with_extras(logger, **extras) -> logging.LoggerAdapter:
    # attach JSON extras for consistent structured logs
    base = logger.logger if isinstance(logger, logging.LoggerAdapter) else logger
    return logging.LoggerAdapter(base, extra={"extras": json.dumps(extras, ensure_ascii=False, default=str)})


def set_package_level(prefix: str, level) -> None:
    """Change the level of every logger created under `prefix`."""
    for name in list(logging.root.manager.loggerDict):
        if name == prefix or name.startswith(prefix + "."):
            logging.getLogger(name).setLevel(level)
