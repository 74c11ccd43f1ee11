from __future__ import annotations
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("tblpeek")
except PackageNotFoundError:  # local dev
    __version__ = "0.0.0.dev0"

from . import core, utils
from .core import main, run, dispatch_view

__all__ = ["core", "utils", "main", "run", "dispatch_view", "__version__"]
