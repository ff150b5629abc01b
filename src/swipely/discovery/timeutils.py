from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import pandas as pd


def as_utc(moment: Optional[Any] = None) -> pd.Timestamp:
    """Coerce a datetime or ISO string to a UTC timestamp; naive values are UTC."""
    if moment is None:
        return pd.Timestamp.now(tz="UTC")
    ts = pd.Timestamp(moment)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def parse_timestamps(values: pd.Series) -> pd.Series:
    return pd.to_datetime(values, errors="coerce", utc=True, format="ISO8601")


def utc_isoformat(moment: Optional[datetime] = None) -> str:
    return as_utc(moment).isoformat()
