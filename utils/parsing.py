"""Safe parsing helpers for list and timestamp values read from storage."""

import ast
from datetime import datetime


# Genre lists are stored as python/JSON list text, or plain comma-separated text
def parse_list(val):
    """Parse a stored list into a list of stripped, non-empty strings."""
    if val is None:
        return []
    if isinstance(val, (list, tuple, set, frozenset)):
        items = list(val)
    elif isinstance(val, str):
        text = val.strip()
        if not text:
            return []
        try:
            parsed = ast.literal_eval(text)
        except (ValueError, SyntaxError):
            parsed = None
        if isinstance(parsed, (list, tuple, set)):
            items = list(parsed)
        else:
            # Just comma-separated text
            items = text.split(",")
    else:
        # NaN from pandas and other scalars
        return []
    return [str(x).strip() for x in items if x is not None and str(x).strip()]


def parse_timestamp(val):
    """Parse a SQLite/ISO timestamp; None when missing or unreadable."""
    if val is None:
        return None
    if isinstance(val, datetime):
        return val
    text = str(val).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
