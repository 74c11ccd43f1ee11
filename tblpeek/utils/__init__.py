# Building blocks for the tblpeek CLI: resolvers, loader and renderer.
from __future__ import annotations

from . import errors, columns, display, resolve, io, formatters, parsing
from . import logging as ULOG

__all__ = ["errors", "columns", "display", "resolve", "io", "formatters", "parsing", "ULOG"]
