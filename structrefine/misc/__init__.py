from . import ansi
from . import loggers
