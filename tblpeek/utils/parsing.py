from __future__ import annotations
import argparse
import codecs
from tblpeek.utils import formatters as UFMT
from tblpeek.utils.resolve import FileFormat

_DELIMITER_TOKENS = {
    "tab": "\t", "\\t": "\t",
    "comma": ",",
    "pipe": "|", "bar": "|",
    "semicolon": ";",
    "space": " ",
}


def build_epilog(title: str, items: list[str]) -> str:
    if not items:
        return ""
    width = max(len(x) for x in items)
    lines = ["", title]
    for x in items:
        pad = " " * (width - len(x))
        lines.append(f"  {x}{pad}  ")
    return "\n".join(lines)


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number, got {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def delimiter_char(value: str) -> str:
    """Accept one literal character, or a name such as 'tab' or '\\t'."""
    sep = _DELIMITER_TOKENS.get(value.lower(), value)
    if len(sep) != 1:
        raise argparse.ArgumentTypeError(f"delimiter must be a single character, got {value!r}")
    return sep


def codec_name(value: str) -> str:
    try:
        return codecs.lookup(value).name
    except LookupError:
        raise argparse.ArgumentTypeError(f"unknown encoding {value!r}")


def add_input_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("Input")
    g.add_argument("filepath", nargs="?", default="-",
                   help="The path to the file (default: '-' reads stdin).")
    g.add_argument("-d", "--delimiter", type=delimiter_char,
                   help="Character used to separate columns (default: from extension, else ',').")
    g.add_argument("-f", "--format", choices=[f.value for f in FileFormat if f is not FileFormat.UNKNOWN],
                   help="Read the input as this format instead of inferring it from the extension.")
    g.add_argument("--strict", action="store_true",
                   help="Fail on unrecognized extensions instead of reading them as CSV.")
    g.add_argument("-s", "--select", metavar="COL,COL",
                   help="Columns to display, in this order.")
    g.add_argument("--no-header", dest="no_header", action="store_true",
                   help="Table has no header row (columns become column_1, column_2, ...).")
    g.add_argument("--encoding", type=codec_name, default="utf-8",
                   help="Text encoding of delimited input (default: utf-8).")


def add_view_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("View")
    g.add_argument("-n", "--max-rows", dest="max_rows", type=positive_int, metavar="MAX-ROWS",
                   help="Number of rows to print.")
    g.add_argument("--head", action="store_true", help="Print only the first n rows (default n: 10).")
    g.add_argument("--tail", action="store_true", help="Print only the last n rows.")
    g.add_argument("--sample", action="store_true", help="Print only a random subset of n rows.")
    g.add_argument("--seed", type=int, help="Random seed for --sample.")
    g.add_argument("-D", "--describe", action="store_true", help="Print summary statistics.")
    g.add_argument("-c", "--column-names-only", dest="column_names_only", action="store_true",
                   help="Print column names only.")


def add_display_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("Display")
    g.add_argument("-m", "--markdown", action="store_true",
                   help="Format print for markdown documents.")
    g.add_argument("--max-col-width", dest="max_col_width", type=positive_int,
                   help="Truncate each cell to this width (default: 40).")
    g.add_argument("--show-full", dest="show_full", action="store_true",
                   help="Do not truncate wide fields.")
    g.add_argument("--no-shape", dest="no_shape", action="store_true",
                   help="Do not print the table shape below the table.")


def add_logging_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("Logging")
    g.add_argument("--quiet", action="store_true", help="Only report errors.")
    g.add_argument("--debug", action="store_true", help="Verbose diagnostics and tracebacks.")
    g.add_argument("--log-file", dest="log_file", help="Also write a debug log to this file.")


def build_parser(version: str = "0.0.0") -> argparse.ArgumentParser:
    ap = UFMT.CustomArgumentParser(
        prog="tblpeek",
        description="Preview CSV, TSV and Parquet tables in the terminal.",
        epilog=build_epilog("Examples:", [
            "tblpeek data.tsv",
            "tblpeek data.csv -s name,age --head",
            "tblpeek data.parquet --tail -n 5",
            "tblpeek data.csv -D -m",
            "cat data.txt | tblpeek -d ';'",
        ]),
    )
    add_input_args(ap)
    add_view_args(ap)
    add_display_args(ap)
    add_logging_args(ap)
    ap.add_argument("--version", action="version", version=f"%(prog)s {version}")
    return ap
