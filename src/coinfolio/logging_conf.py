# src/coinfolio/logging_conf.py
import logging
import os
import sys

from coinfolio.config import Settings, settings as default_settings

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(settings: Settings | None = None):
    """
    Configures the `coinfolio` logger once: console output plus an appending
    log file when LOG_DIR is set and writable.
    """
    settings = settings or default_settings
    logger = logging.getLogger("coinfolio")
    if logger.handlers:
        return logger
    level = logging.INFO if settings.ENV != "dev" else logging.DEBUG
    fmt = logging.Formatter(_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(fmt)
    handler.setLevel(level)
    logger.addHandler(handler)

    if settings.LOG_DIR:
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            file_handler = logging.FileHandler(
                os.path.join(settings.LOG_DIR, settings.LOG_FILE), mode="a", encoding="utf-8"
            )
            file_handler.setFormatter(fmt)
            file_handler.setLevel(logging.DEBUG)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning("File logging disabled, cannot open %s: %s", settings.LOG_DIR, e)

    logger.setLevel(logging.DEBUG)
    return logger
