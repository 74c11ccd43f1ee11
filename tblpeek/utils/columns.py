from __future__ import annotations
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .errors import ColumnNotFound


def parse_projection(spec: Optional[str]) -> Optional[Tuple[str, ...]]:
    """
    Split a --select value on commas. Names are taken literally: no trimming,
    no de-duplication, user order kept. None means "all columns".
    """
    if spec is None:
        return None
    return tuple(str(spec).split(","))


def headerless_names(n: int) -> List[str]:
    return [f"column_{i}" for i in range(1, n + 1)]


def missing_columns(projection: Sequence[str], available: Sequence) -> List[str]:
    names = {str(c) for c in available}
    out: List[str] = []
    for c in projection:
        if c not in names and c not in out:
            out.append(c)
    return out


def apply_projection(df: pd.DataFrame, projection: Optional[Sequence[str]], source: str) -> pd.DataFrame:
    """Select the projected columns in projection order; repeated names yield repeated columns."""
    if projection is None:
        return df
    missing = missing_columns(projection, df.columns)
    if missing:
        raise ColumnNotFound(source, missing)
    return df.loc[:, list(projection)]
