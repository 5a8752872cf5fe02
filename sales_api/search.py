"""
Sales API - Search query builder

Maps a free-text ``search`` parameter to a MongoDB filter for one record kind:
case-insensitive substring match on the kind's text fields, plus exact
equality on its amount field when the term reads as a number.
"""
import re
from typing import Dict, NamedTuple, Optional, Tuple, Union


DECIMAL = re.compile(r"-?[0-9]+(\.[0-9]+)?")


class SearchFields(NamedTuple):
    text: Tuple[str, ...]
    amount: Optional[str] = None


SEARCH_FIELDS: Dict[str, SearchFields] = {
    "generalSales": SearchFields(("magaca", "description"), "lacagta"),
    "dailyBreakdown": SearchFields(("magaca", "description"), "lacagta"),
    "customerCredit": SearchFields(("magaca", "description"), "lacagta_uhartay"),
    "outOfStock": SearchFields(("magaca", "nooca", "description")),
}


def parse_number(term: str) -> Optional[Union[int, float]]:
    """Plain decimals only: no exponents, underscores or inf/nan."""
    if not DECIMAL.fullmatch(term):
        return None
    number = float(term)
    return int(number) if number.is_integer() else number


def build_search_filter(kind: str, term: Optional[str]) -> dict:
    if kind not in SEARCH_FIELDS:
        raise ValueError(f"Unknown record kind: {kind}")
    term = (term or "").strip()
    if not term:
        return {}

    fields = SEARCH_FIELDS[kind]
    pattern = {"$regex": re.escape(term), "$options": "i"}
    clauses = [{name: pattern} for name in fields.text]
    if fields.amount:
        number = parse_number(term)
        if number is not None:
            clauses.append({fields.amount: number})
    return {"$or": clauses}
