from __future__ import annotations
from typing import Sequence


class TblpeekError(Exception):
    """Base class for every failure that ends an invocation."""
    exit_code = 1


class ConflictingFlags(TblpeekError):
    exit_code = 2

    def __init__(self, first: str, second: str) -> None:
        self.first = first
        self.second = second
        super().__init__(f"{first} cannot be used together with {second}.")


class UnrecognizedFormat(TblpeekError):
    exit_code = 2

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(
            f"Cannot infer the table format of {source} "
            "(expected .csv, .tsv or .parquet). Use --format to set it."
        )


class LoadError(TblpeekError):
    exit_code = 4

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(message)


class SourceNotFound(LoadError):
    exit_code = 3

    def __init__(self, source: str) -> None:
        super().__init__(source, f"File not found at {source}")


class UnreadableSource(LoadError):
    exit_code = 3


class UnparseableSource(LoadError):
    pass


class ColumnNotFound(LoadError):
    def __init__(self, source: str, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        names = ", ".join(repr(m) for m in self.missing)
        super().__init__(source, f"Column(s) not found in {source}: {names}")
