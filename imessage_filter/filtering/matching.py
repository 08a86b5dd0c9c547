"""
Identifier matching for conversation filters.

Matching Strategy:
    1. Exact match on the normalized value
    2. Phone numbers only: suffix match
       - both >= 10 digits: last 10 digits (country code variance)
       - both >= 5 digits: last min(len) digits (short codes, partial numbers)
    3. Emails and opaque identifiers never match partially

The relation is symmetric: shapes_match(a, b) == shapes_match(b, a).
"""

from imessage_filter.filtering.normalizers import (
    IdentifierShape,
    PhoneIdentifier,
    classify_identifier,
)

# Digits compared when both numbers are full-length
FULL_NUMBER_SUFFIX = 10

# Shortest number eligible for partial suffix matching
MIN_PARTIAL_SUFFIX = 5


def _phones_match(left: PhoneIdentifier, right: PhoneIdentifier) -> bool:
    if len(left.digits) >= FULL_NUMBER_SUFFIX and len(right.digits) >= FULL_NUMBER_SUFFIX:
        return left.digits[-FULL_NUMBER_SUFFIX:] == right.digits[-FULL_NUMBER_SUFFIX:]

    if len(left.digits) >= MIN_PARTIAL_SUFFIX and len(right.digits) >= MIN_PARTIAL_SUFFIX:
        suffix = min(len(left.digits), len(right.digits))
        return left.digits[-suffix:] == right.digits[-suffix:]

    return False


def shapes_match(filter_shape: IdentifierShape, handle_shape: IdentifierShape) -> bool:
    """
    Decide whether two classified identifiers denote the same contact.

    Args:
        filter_shape: Classified filter term.
        handle_shape: Classified handle identifier.

    Returns:
        True if the identifiers match.
    """
    if filter_shape.value == handle_shape.value:
        return True

    if isinstance(filter_shape, PhoneIdentifier) and isinstance(handle_shape, PhoneIdentifier):
        return _phones_match(filter_shape, handle_shape)

    return False


def identifiers_match(filter_value: str, handle_value: str) -> bool:
    """
    Decide whether two identifier strings denote the same contact.

    Both values are normalized first, so raw and normalized input behave the
    same.

    Examples:
        >>> identifiers_match("15551234567", "+1 (555) 123-4567")
        True
        >>> identifiers_match("jane@example.com", "jane@example.org")
        False
    """
    return shapes_match(classify_identifier(filter_value), classify_identifier(handle_value))
