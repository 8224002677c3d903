"""Thread-safe leveled logger with an optional message callback."""

import sys
import threading
from enum import IntEnum

_MAX_MESSAGE = 4094


class LogLevel(IntEnum):
    """Syslog style log levels."""

    EMERG = 0
    ALERT = 1
    CRIT = 2
    ERR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7


def _format(fmt, args):
    return fmt % args if args else fmt


class Logger:
    """Filters messages by level and hands them to a callback or to stderr."""

    def __init__(self, level=LogLevel.WARNING):
        self._level_lock = threading.Lock()
        self._callback_lock = threading.Lock()
        self._level = level
        self._callback = None

    @property
    def level(self):
        with self._level_lock:
            return self._level

    @level.setter
    def level(self, level):
        with self._level_lock:
            self._level = level

    def set_callback(self, callback):
        """Deliver messages to ``callback(level, message)``; ``None`` restores stderr."""
        with self._callback_lock:
            self._callback = callback

    def log(self, level, fmt, *args):
        """Format and emit a message if ``level`` passes the current threshold."""
        if level > self.level:
            return
        message = _format(fmt, args)[:_MAX_MESSAGE]
        with self._callback_lock:
            callback = self._callback
            if callback is not None:
                callback(level, message)
                return
        print(message, file=sys.stderr)


def console_log(level, fmt, *args):
    """Print a formatted message to stdout regardless of level."""
    print(_format(fmt, args))