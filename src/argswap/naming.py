"""Identifier tokenization and name similarity."""

from __future__ import annotations

import re

# Matched against a character-class shape of the identifier (U upper, l other
# letter, d digit): acronym before a capitalised word, capitalised/lowercase
# word, trailing acronym, bare digits.
_TERM_RE = re.compile(r"U+(?=Ul)|U?l+d*|U+d*|d+")


def _shape(ch: str) -> str:
    if ch.isupper():
        return "U"
    if ch.isalpha():
        return "l"
    if ch.isdigit():
        return "d"
    return " "


def split_terms(name: str | None) -> list[str]:
    """Split an identifier into lowercase word terms, in order.

    Underscores are split first, then case transitions inside each piece:
    ``fooBarID`` -> ``["foo", "bar", "id"]``, ``HTTPServer`` ->
    ``["http", "server"]``, ``FOO_BAR`` -> ``["foo", "bar"]``. Terms without
    any letter are dropped, so purely numeric or symbolic input yields ``[]``.
    """
    if not name:
        return []
    result: list[str] = []
    for piece in name.split("_"):
        shape = "".join(_shape(ch) for ch in piece)
        for match in _TERM_RE.finditer(shape):
            term = piece[match.start() : match.end()]
            if any(ch.isalpha() for ch in term):
                result.append(term.lower())
    return result


def terms(name: str | None) -> frozenset[str]:
    return frozenset(split_terms(name))


def term_key(name: str | None) -> str:
    """Normalized spelling of ``name``: its terms joined by underscores."""
    return "_".join(split_terms(name))


def similarity(first: str | None, second: str | None) -> float:
    """Jaccard similarity of the two names' term sets.

    Both sides empty scores 0.0 rather than dividing by zero.
    """
    left = terms(first)
    right = terms(second)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)
