import sys
import logging
from typing import Optional

_FMT = "[%(levelname)s] %(message)s"
_FILE_FMT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"

def configure(level: int = logging.WARNING, *, quiet: bool = False,
              debug: bool = False, log_file: Optional[str] = None) -> None:
    """Send diagnostics to stderr (and optionally a file); stdout carries only tables."""
    if quiet:
        level = logging.ERROR
    if debug:
        level = logging.DEBUG
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    handlers = [console]
    root_level = level
    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FMT))
        handlers.append(fh)
        root_level = logging.DEBUG
    logging.basicConfig(level=root_level, format=_FMT, handlers=handlers, force=True)

def configure_from_args(args) -> None:
    configure(quiet=getattr(args, "quiet", False),
              debug=getattr(args, "debug", False),
              log_file=getattr(args, "log_file", None))

def get_logger(name: str = "tblpeek"):
    return logging.getLogger(name)
