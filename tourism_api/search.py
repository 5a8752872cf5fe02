"""
Somalia Tourism API - Search filters
"""
import re
from typing import Optional

DECIMAL = re.compile(r"-?[0-9]+(\.[0-9]+)?")

# kind -> (text fields, numeric field)
SEARCH_FIELDS = {
    "destination": (("name", "region", "description"), "price"),
    "activity": (("name", "description"), "price"),
    "guide": (("name", "bio", "languages"), None),
}


def build_search_filter(kind: str, term: Optional[str]) -> dict:
    """Case-insensitive substring match, plus exact price match for numeric terms."""
    try:
        text_fields, numeric_field = SEARCH_FIELDS[kind]
    except KeyError:
        raise ValueError(f"Unknown search kind: {kind}")

    term = (term or "").strip()
    if not term:
        return {}

    regex = {"$regex": re.escape(term), "$options": "i"}
    clauses = [{field: regex} for field in text_fields]
    if numeric_field and DECIMAL.fullmatch(term):
        number = float(term)
        clauses.append({numeric_field: int(number) if number.is_integer() else number})
    return {"$or": clauses}
