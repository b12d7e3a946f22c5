# resources/utils.py
from datetime import timedelta

import pandas as pd

from models.database import utcnow


def error(msg, code=400):
    return {"success": False, "msg": msg}, code


def validation_message(exc):
    """One-line summary of a pydantic ValidationError."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


def parse_datetime(value):
    """
    ISO-8601 string -> naive UTC datetime.
    Raises ValueError for anything pandas can't read as a timestamp.
    """
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"invalid date: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def parse_window(start_raw, end_raw, default_days):
    """
    Returns (start, end). Missing `to` means now; missing `from` means
    `default_days` before now.
    """
    now = utcnow()
    end = parse_datetime(end_raw) if end_raw else now
    start = parse_datetime(start_raw) if start_raw else now - timedelta(days=default_days)
    return start, end


def split_csv(value):
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]
