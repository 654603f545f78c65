import sys
import traceback
import logging
import zlib

from .ansi import Color, BackgroundColor, color, clear, setup_terminal


def detect_test_env() -> bool:
    if "pytest" in sys.modules:
        return True
    return bool(sys.argv) and "unittest" in sys.argv[0]


class Loggers:
    """
    Implements a loggers manager for structrefine.
    """

    __slots__ = (
        "default_level",
        "_loggers",
        "handler",
    )

    IN_SCOPE = ("structrefine",)

    def __init__(self, default_level=logging.WARNING):
        self.default_level = default_level
        self._loggers = {}
        self.load_all_loggers()

        self.handler = logging.StreamHandler()
        self.handler.setFormatter(CuteFormatter(setup_terminal()))

        if not detect_test_env() and len(logging.root.handlers) == 0:
            self.enable_root_logger()
            logging.root.setLevel(self.default_level)

    def load_all_loggers(self):
        """
        Collect every registered logger under structrefine.

        Adds attributes to this instance of each registered logger, replacing '.' with '_'
        """
        for name, logger in logging.Logger.manager.loggerDict.items():
            if any(name.startswith(x + ".") or name == x for x in self.IN_SCOPE):
                self._loggers[name] = logger

    def __getattr__(self, k):
        real_k = k.replace("_", ".")
        if real_k in self._loggers:
            return self._loggers[real_k]
        raise AttributeError(k)

    def __dir__(self):
        return list(super().__dir__()) + list(self._loggers.keys())

    def enable_root_logger(self):
        logging.root.addHandler(self.handler)

    def disable_root_logger(self):
        logging.root.removeHandler(self.handler)

    def setall(self, level):
        for name in self._loggers:
            logging.getLogger(name).setLevel(level)


class CuteFormatter(logging.Formatter):
    """
    A log formatter that can print log messages with colors.
    """

    __slots__ = ("_should_color",)

    def __init__(self, should_color: bool):
        super().__init__()
        self._should_color: bool = should_color

    def format(self, record: logging.LogRecord):
        name: str = record.name
        level: str = record.levelname
        message: str = record.getMessage()
        name_len: int = len(name)
        lvl_len: int = len(level)
        if self._should_color:
            if record.levelno >= logging.CRITICAL:
                level = color(Color.red, True) + level + clear
                level = color(BackgroundColor.yellow, False) + level + clear
            elif record.levelno >= logging.ERROR:
                level = color(Color.red, False) + level + clear
            elif record.levelno >= logging.WARNING:
                level = color(Color.yellow, False) + level + clear
            elif record.levelno >= logging.INFO:
                level = color(Color.blue, False) + level + clear
            # one stable color per logger name, never black or white
            c: int = zlib.adler32(record.name.encode()) % 6
            col = Color(c + Color.red.value)
            message = color(col, False) + message + clear
            name = color(col, False) + name + clear
        name = name.ljust(14 + len(name) - name_len)
        level = level.ljust(8 + len(level) - lvl_len)
        body: str = f"{level} | {self.formatTime(record, self.datefmt) : <23} | {name} | {message}"
        if record.exc_info:
            body += "\n" + "".join(traceback.format_exception(*record.exc_info))[:-1]
        return body
