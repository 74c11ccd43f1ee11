# tests/test_io.py  (loader: delimited text, parquet, stdin, error mapping)
import io
import sys
import pandas as pd
import pytest

from tblpeek.utils.errors import (
    ColumnNotFound, SourceNotFound, UnparseableSource, LoadError, TblpeekError,
)
from tblpeek.utils.io import load_table, read_stdin_buffer
from tblpeek.utils.resolve import FileFormat

def _w(p, text: str):
    p.write_text(text, encoding="utf-8")
    return str(p)

def _fake_stdin(monkeypatch, data: bytes):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data), encoding="utf-8"))

# ---------- DELIMITED ----------

def test_load_tsv_all_rows(tmp_path):
    f = _w(tmp_path / "data.tsv", "a\tb\n1\tx\n2\ty\n")
    df = load_table(f, FileFormat.TSV, "\t", True, None, None)
    assert list(df.columns) == ["a", "b"]
    assert df["a"].tolist() == [1, 2]
    assert df["b"].tolist() == ["x", "y"]

def test_row_budget_limits_retained_rows(tmp_path):
    rows = "\n".join(str(i) for i in range(25))
    f = _w(tmp_path / "n.csv", "v\n" + rows + "\n")
    df = load_table(f, FileFormat.CSV, ",", True, None, 10)
    assert df["v"].tolist() == list(range(10))

def test_projection_keeps_user_order_and_repeats(tmp_path):
    f = _w(tmp_path / "p.csv", "a,b,c\n1,2,3\n4,5,6\n")
    df = load_table(f, FileFormat.CSV, ",", True, ("c", "a", "c"), None)
    assert list(df.columns) == ["c", "a", "c"]
    assert df.iloc[1].tolist() == [6, 4, 6]

def test_projection_of_missing_column(tmp_path):
    f = _w(tmp_path / "p.csv", "a,b\n1,2\n")
    with pytest.raises(ColumnNotFound) as ei:
        load_table(f, FileFormat.CSV, ",", True, ("a", "zzz"), None)
    assert ei.value.missing == ["zzz"]
    assert isinstance(ei.value, LoadError)

def test_headerless_table_gets_generated_names(tmp_path):
    f = _w(tmp_path / "h.csv", "1,2\n3,4\n")
    df = load_table(f, FileFormat.CSV, ",", False, None, None)
    assert list(df.columns) == ["column_1", "column_2"]
    assert len(df) == 2
    sel = load_table(f, FileFormat.CSV, ",", False, ("column_2",), 1)
    assert sel["column_2"].tolist() == [2]

def test_unknown_extension_read_as_delimited(tmp_path):
    f = _w(tmp_path / "data.txt", "a|b\n1|2\n")
    df = load_table(f, FileFormat.UNKNOWN, "|", True, None, None)
    assert list(df.columns) == ["a", "b"]

def test_header_only_file(tmp_path):
    f = _w(tmp_path / "h.csv", "z,a,m\n")
    df = load_table(f, FileFormat.CSV, ",", True, None, 1)
    assert list(df.columns) == ["z", "a", "m"]
    assert len(df) == 0

def test_missing_file(tmp_path):
    with pytest.raises(SourceNotFound) as ei:
        load_table(str(tmp_path / "missing.csv"), FileFormat.CSV, ",", True, None, None)
    assert "missing.csv" in str(ei.value)
    assert ei.value.exit_code == 3

def test_directory_is_not_a_source(tmp_path):
    with pytest.raises(SourceNotFound):
        load_table(str(tmp_path), FileFormat.CSV, ",", True, None, None)

def test_column_count_mismatch(tmp_path):
    f = _w(tmp_path / "bad.csv", "a,b\n1,2\n3,4,5\n")
    with pytest.raises(UnparseableSource) as ei:
        load_table(f, FileFormat.CSV, ",", True, None, None)
    assert ei.value.exit_code == 4

def test_bad_encoding(tmp_path):
    p = tmp_path / "latin.csv"
    p.write_bytes(b"a,b\n\xff\xfe,1\n")
    with pytest.raises(UnparseableSource):
        load_table(str(p), FileFormat.CSV, ",", True, None, None)
    df = load_table(str(p), FileFormat.CSV, ",", True, None, None, encoding="latin-1")
    assert df["a"].tolist() == ["\xff\xfe"]

def test_empty_file(tmp_path):
    f = _w(tmp_path / "empty.csv", "")
    with pytest.raises(UnparseableSource):
        load_table(f, FileFormat.CSV, ",", True, None, None)

# ---------- STDIN ----------

def test_stdin_with_custom_delimiter(monkeypatch):
    _fake_stdin(monkeypatch, b"a;b\n1;2\n3;4\n")
    df = load_table("-", FileFormat.UNKNOWN, ";", True, None, None)
    assert list(df.columns) == ["a", "b"]
    assert df["b"].tolist() == [2, 4]

def test_stdin_is_buffered_completely(monkeypatch):
    data = b"v\n" + b"\n".join(str(i).encode() for i in range(50)) + b"\n"
    _fake_stdin(monkeypatch, data)
    df = load_table(None, FileFormat.UNKNOWN, ",", True, None, 3)
    assert len(df) == 3
    assert sys.stdin.buffer.read() == b""

def test_stdin_empty(monkeypatch):
    _fake_stdin(monkeypatch, b"")
    with pytest.raises(UnparseableSource):
        load_table("-", FileFormat.UNKNOWN, ",", True, None, None)

def test_read_stdin_buffer_accepts_text_streams():
    buf = read_stdin_buffer(io.StringIO("a\n1\n"))
    assert buf.read() == b"a\n1\n"

# ---------- PARQUET ----------

def test_parquet_projection_and_budget(tmp_path):
    pytest.importorskip("pyarrow")
    p = tmp_path / "t.parquet"
    pd.DataFrame({"a": [1, 2, 3], "b": ["x", "y", "z"], "c": [0.5, 1.5, 2.5]}).to_parquet(p)
    df = load_table(str(p), FileFormat.PARQUET, None, False, ("b", "a"), 2)
    assert list(df.columns) == ["b", "a"]
    assert df["a"].tolist() == [1, 2]

def test_parquet_ignores_header_and_delimiter(tmp_path):
    pytest.importorskip("pyarrow")
    p = tmp_path / "t.parquet"
    pd.DataFrame({"a": [1, 2]}).to_parquet(p)
    df = load_table(str(p), FileFormat.PARQUET, "\t", False, None, None)
    assert list(df.columns) == ["a"] and len(df) == 2

def test_parquet_missing_column(tmp_path):
    pytest.importorskip("pyarrow")
    p = tmp_path / "t.parquet"
    pd.DataFrame({"a": [1]}).to_parquet(p)
    with pytest.raises(ColumnNotFound):
        load_table(str(p), FileFormat.PARQUET, None, True, ("nope",), None)

def test_corrupt_parquet(tmp_path):
    pytest.importorskip("pyarrow")
    p = tmp_path / "broken.parquet"
    p.write_bytes(b"this is not a parquet file")
    with pytest.raises(UnparseableSource):
        load_table(str(p), FileFormat.PARQUET, None, True, None, None)

def test_parquet_from_stdin(monkeypatch):
    pytest.importorskip("pyarrow")
    buf = io.BytesIO()
    pd.DataFrame({"k": ["p", "q"]}).to_parquet(buf)
    _fake_stdin(monkeypatch, buf.getvalue())
    df = load_table("-", FileFormat.PARQUET, None, True, ("k",), None)
    assert df["k"].tolist() == ["p", "q"]

def test_parquet_budget_bounds_the_read(tmp_path, monkeypatch):
    pytest.importorskip("pyarrow")
    import pyarrow.parquet as pq
    p = tmp_path / "big.parquet"
    pd.DataFrame({"i": range(1000), "s": [f"r{k}" for k in range(1000)]}).to_parquet(p, row_group_size=100)

    seen = {"rows": 0}
    orig = pq.ParquetFile.iter_batches
    def counting(self, *a, **kw):
        for batch in orig(self, *a, **kw):
            seen["rows"] += batch.num_rows
            yield batch
    def whole_file(*a, **kw):
        raise AssertionError("whole-file read with a row budget")
    monkeypatch.setattr(pq.ParquetFile, "iter_batches", counting)
    monkeypatch.setattr(pd, "read_parquet", whole_file)

    df = load_table(str(p), FileFormat.PARQUET, None, True, None, 1)
    assert df["i"].tolist() == [0]
    assert seen["rows"] <= 1

def test_parquet_budget_spans_row_groups(tmp_path):
    pytest.importorskip("pyarrow")
    p = tmp_path / "groups.parquet"
    pd.DataFrame({"i": range(50)}).to_parquet(p, row_group_size=10)
    df = load_table(str(p), FileFormat.PARQUET, None, True, ("i",), 25)
    assert df["i"].tolist() == list(range(25))

def test_parquet_budget_on_empty_file(tmp_path):
    pytest.importorskip("pyarrow")
    p = tmp_path / "empty.parquet"
    pd.DataFrame({"a": pd.Series([], dtype="int64"), "b": pd.Series([], dtype="object")}).to_parquet(p)
    df = load_table(str(p), FileFormat.PARQUET, None, True, ("b",), 10)
    assert list(df.columns) == ["b"] and len(df) == 0

def test_every_load_error_is_a_tblpeek_error():
    assert issubclass(LoadError, TblpeekError)
