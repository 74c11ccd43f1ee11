from __future__ import annotations
import os
import re
import sys
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, TextIO

import pandas as pd
from wcwidth import wcswidth

from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_COL_WIDTH = 40
NULL_TEXT = "<NA>"


class TableStyle(str, Enum):
    BOX = "box"
    MARKDOWN = "markdown"


@dataclass(frozen=True)
class DisplayOptions:
    """
    Presentation settings for one invocation, passed by value to the renderer.
      - style         : box-drawing (default) or markdown pipe table
      - max_rows      : show at most N rows, eliding the middle (None = all)
      - max_cols      : show at most N columns, eliding the middle (None = all)
      - max_col_width : clip cells to this display width (None = never clip)
      - show_shape    : print "shape: (rows, cols)" under the table
      - color         : ANSI colour for box output
    """
    style: TableStyle = TableStyle.BOX
    max_rows: Optional[int] = None
    max_cols: Optional[int] = None
    max_col_width: Optional[int] = DEFAULT_MAX_COL_WIDTH
    show_shape: bool = True
    color: bool = False


def _env_cap(environ: Mapping[str, str], key: str) -> Optional[int]:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (expected an integer).", key, raw)
        return None
    return value if value > 0 else None


def display_options(markdown: bool = False, *,
                    max_col_width: Optional[int] = None,
                    show_full: bool = False,
                    show_shape: bool = True,
                    environ: Optional[Mapping[str, str]] = None,
                    stream: Optional[TextIO] = None) -> DisplayOptions:
    """Build the DisplayOptions for this run from flags and the environment (read once)."""
    env = os.environ if environ is None else environ
    out = sys.stdout if stream is None else stream

    style = TableStyle.MARKDOWN if markdown else TableStyle.BOX
    if not markdown:
        env_style = (env.get("TBLPEEK_TABLE_STYLE") or "").strip().lower()
        if env_style:
            try:
                style = TableStyle(env_style)
            except ValueError:
                logger.warning("Ignoring TBLPEEK_TABLE_STYLE=%r (expected 'box' or 'markdown').", env_style)

    max_rows = _env_cap(env, "TBLPEEK_MAX_ROWS")
    max_cols = _env_cap(env, "TBLPEEK_MAX_COLS")
    width: Optional[int] = max_col_width or DEFAULT_MAX_COL_WIDTH
    color = False
    if style is TableStyle.MARKDOWN:
        # Markdown output is meant to be pasted; never drop columns or clip cells.
        max_cols = None
        width = None
    else:
        isatty = getattr(out, "isatty", None)
        color = bool(isatty and isatty()) and env.get("NO_COLOR") is None
    if show_full:
        width = None

    return DisplayOptions(style=style, max_rows=max_rows, max_cols=max_cols,
                          max_col_width=width, show_shape=show_shape, color=color)


NUM_LIKE_RE = re.compile(r"^\s*[\$]?[-+]?((?:\d{1,3}(?:,\d{3})*)|\d+)(?:\.\d+)?%?\s*$")

def is_numeric_like(series: pd.Series) -> bool:
    if pd.api.types.is_bool_dtype(series.dtype):
        return False
    if pd.api.types.is_numeric_dtype(series.dtype):
        return True
    if pd.api.types.is_object_dtype(series.dtype) or pd.api.types.is_string_dtype(series.dtype):
        sample = series.dropna().head(20)
        if len(sample) == 0:
            return False
        return all(isinstance(v, str) and NUM_LIKE_RE.match(v) for v in sample)
    return False


def _coerce(x) -> str:
    if isinstance(x, bytes):
        return x.decode("utf-8", "replace")
    s = str(x) if x is not None else ""
    s = s.replace("\r", "").replace("\n", "⏎")
    return re.sub(r"[\x00-\x08\x0b-\x1f\x7f]", "", s)


def _cell_text(v) -> str:
    with warnings.catch_warnings():
        warnings.simplefilter(action="ignore", category=FutureWarning)
        try:
            missing = bool(pd.isna(v))
        except (TypeError, ValueError):
            # list-like cells (e.g. parquet list columns)
            missing = False
    return NULL_TEXT if missing else _coerce(v)


def _clip(s: str, wmax: Optional[int], ell: str) -> str:
    if wmax is None:
        return s
    w = wcswidth(s)
    if w <= wmax:
        return s
    keep = wmax - wcswidth(ell)
    if keep <= 0:
        return ell if wmax >= wcswidth(ell) else "." * min(3, max(0, wmax))
    out = ""
    for ch in s:
        if wcswidth(out + ch) > keep:
            break
        out += ch
    return out + ell


def _width(s: str) -> int:
    # wcswidth returns -1 for non-printable text; fall back to len
    w = wcswidth(s)
    return len(s) if w < 0 else w


def _elide(n: int, cap: Optional[int]):
    """Positions to keep out of n, and where the gap marker goes (None if nothing elided)."""
    if cap is None or n <= cap:
        return list(range(n)), None
    head = (cap + 1) // 2
    tail = cap // 2
    return list(range(head)) + list(range(n - tail, n)), head


_BOX = {
    "unicode": dict(top="╭┬╮─", mid="╞╪╡═", bottom="╰┴╯─", v="│", ell="…"),
    "ascii": dict(top="+++-", mid="+++=", bottom="+++-", v="|", ell="..."),
}


def _build_grid(df: pd.DataFrame, options: DisplayOptions, ell: str):
    col_pos, col_gap = _elide(len(df.columns), options.max_cols)
    row_pos, row_gap = _elide(len(df), options.max_rows)
    view = df.iloc[row_pos, col_pos]

    headers = [_coerce(c) for c in view.columns]
    dtypes = [str(view.iloc[:, j].dtype) for j in range(len(view.columns))]
    numeric = [is_numeric_like(view.iloc[:, j]) for j in range(len(view.columns))]
    nulls = []
    rows = []
    for raw in view.itertuples(index=False, name=None):
        rows.append([_cell_text(v) for v in raw])
        nulls.append([t == NULL_TEXT for t in rows[-1]])

    if col_gap is not None:
        headers.insert(col_gap, ell)
        dtypes.insert(col_gap, "")
        numeric.insert(col_gap, False)
        for r, nr in zip(rows, nulls):
            r.insert(col_gap, ell)
            nr.insert(col_gap, False)
    if row_gap is not None:
        rows.insert(row_gap, [ell] * len(headers))
        nulls.insert(row_gap, [False] * len(headers))
    return headers, dtypes, numeric, rows, nulls


def _render_box(df: pd.DataFrame, options: DisplayOptions, charset: str) -> list[str]:
    chars = _BOX[charset]
    ell = chars["ell"]
    headers, dtypes, numeric, rows, nulls = _build_grid(df, options, ell)

    wmax = options.max_col_width
    disp_headers = [_clip(h, wmax, ell) for h in headers]
    disp_dtypes = [_clip(d, wmax, ell) for d in dtypes]
    disp_rows = [[_clip(v, wmax, ell) for v in r] for r in rows]
    widths = [max(_width(x) for x in col) for col in zip(disp_headers, disp_dtypes, *disp_rows)]

    reset = "\033[0m" if options.color else ""
    blue = "\033[94m" if options.color else ""
    red = "\033[91m" if options.color else ""

    def rule(spec: str) -> str:
        left, cross, right, fill = spec
        return left + cross.join(fill * (w + 2) for w in widths) + right

    def line(vals, *, align_numbers: bool, null_flags=None) -> str:
        cells = []
        for j, (v, w) in enumerate(zip(vals, widths)):
            pad = " " * (w - _width(v))
            color = ""
            if null_flags is not None and null_flags[j]:
                color = red
            elif align_numbers and numeric[j]:
                color = blue
            text = f"{color}{v}{reset}" if color else v
            if align_numbers and numeric[j]:
                cells.append(" " + pad + text + " ")
            else:
                cells.append(" " + text + pad + " ")
        return chars["v"] + chars["v"].join(cells) + chars["v"]

    out = [rule(chars["top"]),
           line(disp_headers, align_numbers=False),
           line(disp_dtypes, align_numbers=False),
           rule(chars["mid"])]
    for r, nr in zip(disp_rows, nulls):
        out.append(line(r, align_numbers=True, null_flags=nr))
    out.append(rule(chars["bottom"]))
    return out


def _md_escape(s: str) -> str:
    return s.replace("|", "\\|")


def _render_markdown(df: pd.DataFrame, options: DisplayOptions) -> list[str]:
    headers, _dtypes, numeric, rows, _nulls = _build_grid(df, options, "…")
    headers = [_md_escape(h) for h in headers]
    rows = [[_md_escape(v) for v in r] for r in rows]
    widths = [max(3, *(_width(x) for x in col)) for col in zip(headers, *rows)]

    def line(vals) -> str:
        cells = []
        for j, (v, w) in enumerate(zip(vals, widths)):
            pad = " " * (w - _width(v))
            cells.append(pad + v if numeric[j] else v + pad)
        return "| " + " | ".join(cells) + " |"

    sep = []
    for j, w in enumerate(widths):
        sep.append("-" * (w - 1) + ":" if numeric[j] else "-" * w)
    out = [line(headers), "| " + " | ".join(sep) + " |"]
    out.extend(line(r) for r in rows)
    return out


def render_table(df: pd.DataFrame, options: Optional[DisplayOptions] = None, *,
                 charset: str = "unicode") -> str:
    """Render a DataFrame to text. Pure: the result depends only on df and options."""
    options = options or DisplayOptions()
    if len(df.columns) == 0:
        lines = ["(empty table)"]
    elif options.style is TableStyle.MARKDOWN:
        lines = _render_markdown(df, options)
    else:
        lines = _render_box(df, options, charset)
    if options.show_shape:
        if options.style is TableStyle.MARKDOWN:
            lines.append("")
        lines.append(f"shape: ({len(df)}, {len(df.columns)})")
    return "\n".join(lines) + "\n"


def _charset_for(stream: TextIO) -> str:
    try:
        "╭…".encode(getattr(stream, "encoding", None) or "utf-8")
    except (UnicodeEncodeError, LookupError):
        return "ascii"
    return "unicode"


def print_table(df: pd.DataFrame, options: Optional[DisplayOptions] = None,
                stream: Optional[TextIO] = None) -> None:
    """Write a rendered table in one piece so a failure never leaves half a table."""
    out = sys.stdout if stream is None else stream
    text = render_table(df, options, charset=_charset_for(out))
    out.write(text)
    out.flush()
