import logging
import os
from datetime import UTC, datetime
from logging.handlers import TimedRotatingFileHandler

import pytz

"""
Named logger setup
logs to console and, optionally, to a daily rotated file
"""

DISPLAY_TIMEZONE = pytz.timezone(os.getenv("EPGSYNC_LOG_TIMEZONE", "UTC"))
LOG_DIR = os.getenv("EPGSYNC_LOG_DIR", "/tmp/log/epgsync")

Logger_Cache: dict[str, logging.Logger] = {}
Default_Level = logging.getLevelName(os.getenv("EPGSYNC_LOG_LEVEL", "INFO").upper())
if not isinstance(Default_Level, int):
    Default_Level = logging.INFO


def set_level(level):
    global Default_Level
    Default_Level = level
    for logger in Logger_Cache.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


class LocalTimeFormatter(logging.Formatter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.display_tz = DISPLAY_TIMEZONE

    def format(self, record):
        utc_dt = datetime.fromtimestamp(record.created, UTC).replace(tzinfo=pytz.utc)
        local_dt = utc_dt.astimezone(self.display_tz)

        record.local_time = local_dt.strftime("%H:%M:%S")
        record.short_name = record.name[-24:]
        if record.levelno == logging.WARNING:
            self._style._fmt = "%(local_time)-9s %(short_name)-24s:%(levelname)-8s =====> %(message)s"
        elif record.levelno >= logging.ERROR:
            self._style._fmt = "%(local_time)-9s %(short_name)-24s =====> ERROR %(message)s"
        else:
            self._style._fmt = "%(local_time)-9s %(short_name)-24s:%(levelname)-8s %(message)s"

        return super().format(record)


class LocalFileFormatter(logging.Formatter):
    def format(self, record):
        utc_dt = datetime.fromtimestamp(record.created, UTC)
        record.local_time = utc_dt.strftime("%Y-%m-%d %H:%M:%S")
        self._style._fmt = "%(local_time)s:%(name)s:%(levelname)s %(message)s"
        return super().format(record)


def get_logger(name: str, level=None, filename=None) -> logging.Logger:
    """Return a logger with the specified name."""
    if name in Logger_Cache:
        return Logger_Cache[name]

    if level is None:
        level = Default_Level
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(LocalTimeFormatter())
    logger.addHandler(ch)

    if filename:
        os.makedirs(LOG_DIR, exist_ok=True)
        fullpath = os.path.join(LOG_DIR, os.path.basename(filename))
        try:
            fh = TimedRotatingFileHandler(fullpath, when="midnight", backupCount=14)
        except FileNotFoundError:
            fh = logging.FileHandler(fullpath)
        fh.setLevel(level)
        fh.setFormatter(LocalFileFormatter())
        logger.addHandler(fh)

    logger.propagate = False

    Logger_Cache[name] = logger

    return logger
