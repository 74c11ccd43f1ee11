from __future__ import annotations
import argparse
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Mapping, Optional, Tuple

from .columns import parse_projection
from .display import DisplayOptions, display_options
from .errors import ConflictingFlags, UnrecognizedFormat
from .logging import get_logger

logger = get_logger(__name__)

STDIN = "-"
DEFAULT_HEAD_ROWS = 10
UNBOUNDED = None


class FileFormat(str, Enum):
    CSV = "csv"
    TSV = "tsv"
    PARQUET = "parquet"
    UNKNOWN = "unknown"


_EXTENSIONS = {
    ".csv": FileFormat.CSV,
    ".tsv": FileFormat.TSV,
    ".parquet": FileFormat.PARQUET,
}


class ViewMode(str, Enum):
    HEAD = "head"
    TAIL = "tail"
    SAMPLE = "sample"
    DESCRIBE = "describe"
    COLUMNS_ONLY = "columns"
    FULL = "full"


@dataclass(frozen=True)
class ResolvedConfig:
    source: str
    fmt: FileFormat
    delimiter: Optional[str]
    has_header: bool
    projection: Optional[Tuple[str, ...]]
    row_budget: Optional[int]
    mode: ViewMode
    count: Optional[int] = None
    encoding: str = "utf-8"
    seed: Optional[int] = None
    display: DisplayOptions = field(default_factory=DisplayOptions)

    @property
    def from_stdin(self) -> bool:
        return is_stdin(self.source)


def is_stdin(source: Optional[str]) -> bool:
    return source is None or source == STDIN


def resolve_format(source: Optional[str]) -> FileFormat:
    """
    Map a path to its FileFormat by extension (case-sensitive).
    Standard input has no extension and always yields UNKNOWN.
    """
    if is_stdin(source):
        return FileFormat.UNKNOWN
    return _EXTENSIONS.get(PurePath(str(source)).suffix, FileFormat.UNKNOWN)


def resolve_delimiter(fmt: FileFormat, override: Optional[str] = None) -> str:
    if override is not None:
        return override
    if fmt is FileFormat.PARQUET:
        raise ValueError("Parquet sources have no delimiter.")
    if fmt is FileFormat.TSV:
        return "\t"
    return ","


def resolve_row_budget(mode: ViewMode, count: Optional[int] = None) -> Optional[int]:
    """
    Number of rows the loader must materialize for a view (None = all rows).
    Order matters: columns-only beats everything, tail/sample always need the
    whole table, and only then does an explicit count beat the head default.
    """
    if mode is ViewMode.COLUMNS_ONLY:
        return 1
    if mode in (ViewMode.TAIL, ViewMode.SAMPLE):
        return UNBOUNDED
    if count is not None:
        return count
    if mode is ViewMode.HEAD:
        return DEFAULT_HEAD_ROWS
    return UNBOUNDED


_MODE_FLAGS = (("head", "--head"), ("tail", "--tail"), ("sample", "--sample"))

_COLUMNS_ONLY_EXCLUDES = _MODE_FLAGS + (
    ("max_rows", "--max-rows"),
    ("select", "--select"),
    ("no_header", "--no-header"),
    ("describe", "--describe"),
    ("markdown", "--markdown"),
)


def _is_set(args, dest: str) -> bool:
    value = getattr(args, dest, None)
    return value is not None and value is not False


def check_conflicts(args) -> None:
    for i, (dest_a, flag_a) in enumerate(_MODE_FLAGS):
        for dest_b, flag_b in _MODE_FLAGS[i + 1:]:
            if _is_set(args, dest_a) and _is_set(args, dest_b):
                raise ConflictingFlags(flag_a, flag_b)
    if _is_set(args, "column_names_only"):
        for dest, flag in _COLUMNS_ONLY_EXCLUDES:
            if _is_set(args, dest):
                raise ConflictingFlags("--column-names-only", flag)
    if _is_set(args, "describe"):
        for dest, flag in _MODE_FLAGS:
            if _is_set(args, dest):
                raise ConflictingFlags("--describe", flag)


def select_view_mode(args) -> ViewMode:
    if _is_set(args, "column_names_only"):
        return ViewMode.COLUMNS_ONLY
    if _is_set(args, "describe"):
        return ViewMode.DESCRIBE
    for dest, _flag in _MODE_FLAGS:
        if _is_set(args, dest):
            return ViewMode(dest)
    return ViewMode.FULL


def _effective_format(source: str, forced: Optional[str], strict: bool) -> FileFormat:
    if forced:
        return FileFormat(forced)
    fmt = resolve_format(source)
    if fmt is FileFormat.UNKNOWN:
        if is_stdin(source):
            logger.debug("Reading stdin as delimited text (no extension to infer from).")
        elif strict:
            raise UnrecognizedFormat(source)
        else:
            logger.warning("Unrecognized extension for %s; reading it as delimited text.", source)
    return fmt


def validate(args: argparse.Namespace, *,
             environ: Optional[Mapping[str, str]] = None) -> ResolvedConfig:
    """
    Turn parsed CLI arguments into the single ResolvedConfig for this run.
    Raises ConflictingFlags / UnrecognizedFormat; never touches the source.
    """
    check_conflicts(args)

    source = getattr(args, "filepath", None)
    if source is None:
        source = STDIN
    mode = select_view_mode(args)
    count = getattr(args, "max_rows", None)
    fmt = _effective_format(source, getattr(args, "format", None),
                            bool(getattr(args, "strict", False)))

    delimiter = None
    if fmt is not FileFormat.PARQUET:
        delimiter = resolve_delimiter(fmt, getattr(args, "delimiter", None))

    row_budget = resolve_row_budget(mode, count)
    display = display_options(
        bool(getattr(args, "markdown", False)),
        max_col_width=getattr(args, "max_col_width", None),
        show_full=bool(getattr(args, "show_full", False)),
        show_shape=not getattr(args, "no_shape", False),
        environ=environ,
    )

    config = ResolvedConfig(
        source=source,
        fmt=fmt,
        delimiter=delimiter,
        has_header=not getattr(args, "no_header", False),
        projection=parse_projection(getattr(args, "select", None)),
        row_budget=row_budget,
        mode=mode,
        count=count,
        encoding=getattr(args, "encoding", None) or "utf-8",
        seed=getattr(args, "seed", None),
        display=display,
    )
    logger.debug("source=%s format=%s delimiter=%r view=%s row_budget=%s",
                 config.source, config.fmt.value, config.delimiter,
                 config.mode.value, "all" if row_budget is None else row_budget)
    return config
