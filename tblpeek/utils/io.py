from __future__ import annotations
import io as _io
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from .columns import apply_projection, headerless_names, missing_columns
from .errors import ColumnNotFound, SourceNotFound, UnparseableSource, UnreadableSource
from .logging import get_logger
from .resolve import FileFormat, is_stdin

logger = get_logger(__name__)

Source = Union[str, _io.BytesIO]


def read_stdin_buffer(stream=None) -> _io.BytesIO:
    """Buffer all of stdin before parsing; the row budget never shortens the read."""
    stream = sys.stdin if stream is None else stream
    try:
        raw = getattr(stream, "buffer", stream).read()
    except OSError as e:
        raise UnreadableSource("stdin", f"Unable to read from stdin: {e}") from e
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    if not raw:
        raise UnparseableSource("stdin", "No input detected on stdin. Pipe a table or pass a file path.")
    logger.debug("Buffered %d bytes from stdin.", len(raw))
    return _io.BytesIO(raw)


def read_delimited(handle: Source, where: str, *,
                   delimiter: str,
                   has_header: bool = True,
                   projection: Optional[Sequence[str]] = None,
                   nrows: Optional[int] = None,
                   encoding: str = "utf-8") -> pd.DataFrame:
    """
    Parse delimited text with pandas. Headerless tables get column_1..column_N
    names so --select can address them.
    """
    usecols = None
    if projection is not None and has_header:
        wanted = set(projection)
        usecols = lambda name: name in wanted  # noqa: E731

    try:
        df = pd.read_csv(
            handle, sep=delimiter, header=0 if has_header else None,
            usecols=usecols, nrows=nrows, encoding=encoding,
            on_bad_lines="error",
        )
    except FileNotFoundError as e:
        raise SourceNotFound(where) from e
    except UnicodeDecodeError as e:
        raise UnparseableSource(where, f"Unable to decode {where} as {encoding}: {e}") from e
    except EmptyDataError as e:
        raise UnparseableSource(where, f"Failed to read table from {where}: empty input.") from e
    except ParserError as e:
        raise UnparseableSource(where, f"Failed to read table from {where}: {e}") from e
    except OSError as e:
        raise UnreadableSource(where, f"Unable to read {where}: {e}") from e
    except ValueError as e:
        raise UnparseableSource(where, f"Failed to read table from {where}: {e}") from e

    if not has_header:
        df.columns = headerless_names(len(df.columns))
    return apply_projection(df, projection, where)


def _read_parquet_rows(pq, pa, handle: Source, columns: Optional[list], nrows: int) -> pd.DataFrame:
    """Pull record batches until nrows rows are in hand; later row groups stay unread."""
    with pq.ParquetFile(handle) as pf:
        batches = []
        got = 0
        for batch in pf.iter_batches(batch_size=nrows, columns=columns):
            batches.append(batch)
            got += batch.num_rows
            if got >= nrows:
                break
        if batches:
            table = pa.Table.from_batches(batches)
        else:
            table = pf.schema_arrow.empty_table()
            if columns is not None:
                table = table.select(columns)
    return table.slice(0, nrows).to_pandas()


def read_parquet(handle: Source, where: str, *,
                 projection: Optional[Sequence[str]] = None,
                 nrows: Optional[int] = None) -> pd.DataFrame:
    import pyarrow as pa
    import pyarrow.parquet as pq

    try:
        columns = None
        if projection is not None:
            schema_names = pq.read_schema(handle).names
            missing = missing_columns(projection, schema_names)
            if missing:
                raise ColumnNotFound(where, missing)
            if hasattr(handle, "seek"):
                handle.seek(0)
            columns = list(dict.fromkeys(projection))
        if nrows is None:
            df = pd.read_parquet(handle, engine="pyarrow", columns=columns)
        else:
            df = _read_parquet_rows(pq, pa, handle, columns, nrows)
    except FileNotFoundError as e:
        raise SourceNotFound(where) from e
    except pa.ArrowInvalid as e:
        raise UnparseableSource(where, f"Unable to parse the Parquet file {where}: {e}") from e
    except OSError as e:
        raise UnreadableSource(where, f"Unable to open the file {where}: {e}") from e
    except (pa.ArrowException, ValueError) as e:
        raise UnparseableSource(where, f"Unable to parse the Parquet file {where}: {e}") from e

    return apply_projection(df, projection, where)


def load_table(source: Optional[str],
               fmt: FileFormat,
               delimiter: Optional[str],
               has_header: bool,
               projection: Optional[Sequence[str]],
               row_budget: Optional[int],
               *,
               encoding: str = "utf-8") -> pd.DataFrame:
    """
    Load a path or stdin into a DataFrame.
      - PARQUET ignores delimiter and header; projection and row budget apply.
      - Everything else is delimited text (stdin defaults here too).
      - row_budget caps retained rows (None = all).
    Raises SourceNotFound before any open attempt when the path is not a file.
    """
    if is_stdin(source):
        where = "stdin"
        handle: Source = read_stdin_buffer()
    else:
        where = str(source)
        if not Path(where).is_file():
            raise SourceNotFound(where)
        handle = where

    if fmt is FileFormat.PARQUET:
        df = read_parquet(handle, where, projection=projection, nrows=row_budget)
    else:
        df = read_delimited(handle, where, delimiter=delimiter or ",",
                            has_header=has_header, projection=projection,
                            nrows=row_budget, encoding=encoding)
    logger.debug("Loaded %d rows x %d columns from %s.", len(df), len(df.columns), where)
    return df
