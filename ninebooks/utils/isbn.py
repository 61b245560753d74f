import re

_SEPARATORS = re.compile(r"[\s\-]+")
_ISBN_DIGITS = re.compile(r"^\d{10}(?:\d{3})?$")
_WHITESPACE = re.compile(r"\s+")


def strip_separators(value: str) -> str:
    return _SEPARATORS.sub("", value or "")


def is_isbn_query(query: str) -> bool:
    return bool(_ISBN_DIGITS.match(strip_separators(query)))


def normalize_query(query: str) -> str:
    """Cache key for a search query.

    Identifier queries collapse to their bare digits so "978-4-10-101001-4" and
    "9784101010014" share an entry; text queries are trimmed, whitespace is
    collapsed and case is folded.
    """
    if is_isbn_query(query):
        return strip_separators(query)
    return _WHITESPACE.sub(" ", (query or "").strip()).casefold()
