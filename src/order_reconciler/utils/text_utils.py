"""
Text utilities for the Order Reconciler.

Provides whitespace normalization for extracted document text, value
cleanup shared by extraction and matching, and pt-BR numeric parsing
(``.`` thousands separator, ``,`` decimal separator).
"""

import math
import re
from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import Any, Iterable, Optional, Union


NBSP = "\u00a0"

_LINE_BREAKS = re.compile(r"(?:\r?\n|\r)+")
_WHITESPACE = re.compile(r"\s+")
_MULTI_SPACE = re.compile(r"\s{2,}")


def normalize_whitespace(text: Optional[str]) -> str:
    """
    Collapse text into a single canonical line.

    Replaces non-breaking spaces with normal spaces, turns runs of line
    breaks into a single space, collapses any whitespace run to one space
    and trims both ends.

    Args:
        text: Input text, possibly multi-line. None is treated as empty.

    Returns:
        Normalized single-line text
    """
    if not text:
        return ""
    normalized = text.replace(NBSP, " ")
    normalized = _LINE_BREAKS.sub(" ", normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip()


def collapse_spaces(text: str) -> str:
    """
    Collapse runs of two or more whitespace characters into one space.

    Args:
        text: Input text

    Returns:
        Trimmed text with single spaces only
    """
    return _MULTI_SPACE.sub(" ", text).strip()


def clean_text_value(value: Optional[str]) -> Optional[str]:
    """Trim a captured value; empty results become None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def is_number(value: Any) -> bool:
    """True for int/float/Decimal values (bool excluded)."""
    return isinstance(value, Number) and not isinstance(value, bool)


def normalize_cell_value(value: Any) -> Union[None, int, float, Decimal, str]:
    """
    Normalize a value before comparison.

    None stays None, numbers pass through unchanged and everything else is
    stringified and trimmed, with an empty result treated as None.
    """
    if value is None:
        return None
    if is_number(value):
        return value
    text = str(value).strip()
    if text == "":
        return None
    return text


def stringify_value(value: Any) -> str:
    """
    Render a normalized value as text for string comparisons.

    Integral floats render without a fractional part so that a spreadsheet
    cell holding ``2018.0`` compares equal to the text ``"2018"``.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value)


def _locale_to_plain(text: str) -> str:
    return text.strip().replace(".", "").replace(",", ".")


def parse_locale_decimal(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a pt-BR formatted amount such as ``1.234,56``.

    Thousands separators (``.``) are removed and the decimal comma becomes
    a dot. Trailing separators left over from sentence punctuation are
    ignored.

    Args:
        text: Amount text, may be None

    Returns:
        Decimal value, or None when the text is absent or unparsable
    """
    if text is None:
        return None
    candidate = text.strip().rstrip(".,")
    if not candidate:
        return None
    try:
        value = Decimal(_locale_to_plain(candidate))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_locale_number(value: Any) -> Optional[float]:
    """
    Convert a cell or extracted value to a finite float.

    Numbers pass through; text goes through the same separator conversion
    as ``parse_locale_decimal``.

    Args:
        value: Number, text or None

    Returns:
        Finite float or None
    """
    if value is None:
        return None
    if is_number(value):
        number = float(value)
    else:
        plain = _locale_to_plain(str(value))
        if not plain:
            return None
        try:
            number = float(plain)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """True if any keyword occurs as a substring of text."""
    return any(keyword in text for keyword in keywords)
