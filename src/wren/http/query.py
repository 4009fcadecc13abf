"""Query string decoding for ``Context.query``."""

from typing import Any
from urllib.parse import parse_qs


def parse_query(query_string: str) -> dict[str, Any]:
    """Decode *query_string* into ``name -> value``.

    A name given once maps to its string; a repeated name maps to the
    list of its values in order. Blank values are kept as ``""``.
    """
    if not query_string:
        return {}
    parsed = parse_qs(query_string, keep_blank_values=True)
    return {name: values[0] if len(values) == 1 else values for name, values in parsed.items()}
