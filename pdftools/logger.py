import logging

from pdftools.config import settings

logger = logging.getLogger("pdftools")
logger.setLevel(settings.log_level.upper())
logger.propagate = False

_console = logging.StreamHandler()
_console.setFormatter(logging.Formatter(
    fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
))
logger.addHandler(_console)
