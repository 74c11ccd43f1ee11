from __future__ import annotations
import sys
import signal
import traceback
from typing import Callable, Dict, Optional, TextIO

import numpy as np
import pandas as pd

from . import __version__
from .utils import display as UDISP
from .utils import io as UIO
from .utils import logging as ULOG
from .utils import parsing as UP
from .utils import resolve as URES
from .utils.errors import TblpeekError
from .utils.resolve import ResolvedConfig, ViewMode

_STAT_ORDER = ("count", "null_count", "unique", "top", "freq",
               "mean", "std", "min", "25%", "50%", "75%", "max")


def describe_table(df: pd.DataFrame) -> pd.DataFrame:
    """Summary statistics, one row per statistic, one column per table column."""
    if len(df.columns) == 0:
        return pd.DataFrame()
    stats = df.describe(include="all")
    stats.loc["null_count"] = df.isna().sum().to_numpy()
    stats = stats.loc[[s for s in _STAT_ORDER if s in stats.index]]
    stats.index.name = "statistic"
    return stats.reset_index()


#-- View Handlers --
def _handle_view_columns(df: pd.DataFrame, config: ResolvedConfig, *, stream: TextIO) -> None:
    """Prints column names, one per line, in table order."""
    stream.write("".join(f"{c}\n" for c in df.columns))
    return None

def _handle_view_describe(df: pd.DataFrame, config: ResolvedConfig, **kwargs) -> pd.DataFrame:
    return describe_table(df)

def _handle_view_head(df: pd.DataFrame, config: ResolvedConfig, **kwargs) -> pd.DataFrame:
    # The loader already kept only the first row_budget rows.
    return df

def _handle_view_tail(df: pd.DataFrame, config: ResolvedConfig, **kwargs) -> pd.DataFrame:
    n = config.count if config.count is not None else len(df)
    return df.tail(n)

def _handle_view_sample(df: pd.DataFrame, config: ResolvedConfig, **kwargs) -> pd.DataFrame:
    n = config.count if config.count is not None else len(df)
    rng = np.random.default_rng(config.seed)
    return df.sample(n=min(n, len(df)), replace=False, random_state=rng)

def _handle_view_full(df: pd.DataFrame, config: ResolvedConfig, **kwargs) -> pd.DataFrame:
    return df


VIEW_HANDLERS: Dict[ViewMode, Callable[..., Optional[pd.DataFrame]]] = {
    ViewMode.COLUMNS_ONLY: _handle_view_columns,
    ViewMode.DESCRIBE: _handle_view_describe,
    ViewMode.HEAD: _handle_view_head,
    ViewMode.TAIL: _handle_view_tail,
    ViewMode.SAMPLE: _handle_view_sample,
    ViewMode.FULL: _handle_view_full,
}


def dispatch_view(df: pd.DataFrame, config: ResolvedConfig, stream: Optional[TextIO] = None) -> None:
    """Render exactly one view of df, chosen by config.mode."""
    out = sys.stdout if stream is None else stream
    handler = VIEW_HANDLERS[config.mode]
    res = handler(df, config, stream=out)
    if isinstance(res, pd.DataFrame):
        UDISP.print_table(res, config.display, stream=out)


def run(config: ResolvedConfig, stream: Optional[TextIO] = None) -> int:
    df = UIO.load_table(
        config.source,
        config.fmt,
        config.delimiter,
        config.has_header,
        config.projection,
        config.row_budget,
        encoding=config.encoding,
    )
    dispatch_view(df, config, stream=stream)
    return 0


def build_parser():
    return UP.build_parser(version=__version__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    try:
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
    except (AttributeError, ValueError):
        # no SIGPIPE on Windows; not settable outside the main thread
        pass

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code == 0 else 2

    try:
        ULOG.configure_from_args(args)
    except OSError as e:
        ULOG.configure(quiet=getattr(args, "quiet", False), debug=getattr(args, "debug", False))
        ULOG.get_logger("tblpeek.core").error("Unable to open the log file %s: %s", args.log_file, e)
        return 3
    logger = ULOG.get_logger("tblpeek.core")

    try:
        config = URES.validate(args)
        return run(config)
    except TblpeekError as e:
        logger.error(str(e))
        if getattr(args, "debug", False): traceback.print_exc()
        return e.exit_code
    except BrokenPipeError:
        try:
            sys.stdout.close()
        except OSError:
            pass
        return 0
    except Exception as e:
        logger.error("An unexpected error occurred: %s", e)
        if getattr(args, "debug", False): traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
