"""
Tests for identifier normalization.

Tests separator stripping, email case folding and shape classification.
"""

import pytest

from imessage_filter.filtering.normalizers import (
    EmailIdentifier,
    OpaqueIdentifier,
    PhoneIdentifier,
    classify_identifier,
    is_numeric_identifier,
    normalize_identifier,
)


class TestNormalizeIdentifier:
    """Tests for normalize_identifier."""

    def test_us_phone_with_formatting(self):
        """Parentheses, spaces, dashes and plus are removed."""
        assert normalize_identifier("+1 (555) 123-4567") == "15551234567"

    def test_phone_with_dots(self):
        """Dots are separators too."""
        assert normalize_identifier("555.123.4567") == "5551234567"

    def test_international_phone(self):
        """Country codes are kept, only separators go."""
        assert normalize_identifier("+44 20 7946 0958") == "442079460958"

    def test_email_is_lowercased(self):
        """Emails fold to lowercase."""
        assert normalize_identifier("Jane@Example.COM") == "jane@example.com"

    def test_email_dots_are_removed(self):
        """Dots are stripped from emails as well, before lowercasing."""
        assert normalize_identifier("Jane.Doe@Example.com") == "janedoe@examplecom"

    def test_name_keeps_case(self):
        """Without '@' the case is untouched."""
        assert normalize_identifier("Person 10") == "Person10"

    def test_empty_string(self):
        """Empty input normalizes to empty output."""
        assert normalize_identifier("") == ""

    def test_only_separators(self):
        """A value made of separators normalizes to empty."""
        assert normalize_identifier(" (+-.) ") == ""

    def test_other_punctuation_is_kept(self):
        """Only the listed separators are removed."""
        assert normalize_identifier("a_b/c#1") == "a_b/c#1"

    @pytest.mark.parametrize(
        "raw",
        ["+1 (555) 123-4567", "Jane.Doe@Example.com", "Person 10", "", "chat123"],
    )
    def test_idempotent(self, raw: str):
        """Normalizing twice gives the same result."""
        once = normalize_identifier(raw)
        assert normalize_identifier(once) == once


class TestIsNumericIdentifier:
    """Tests for is_numeric_identifier."""

    def test_digits(self):
        assert is_numeric_identifier("5551234567")

    def test_empty_is_not_numeric(self):
        assert not is_numeric_identifier("")

    def test_letters_are_not_numeric(self):
        assert not is_numeric_identifier("555ABC")

    def test_non_ascii_digits_are_not_numeric(self):
        """Arabic-Indic digits are not treated as a phone number."""
        assert not is_numeric_identifier("٥٥٥١٢٣٤٥٦٧")


class TestClassifyIdentifier:
    """Tests for classify_identifier."""

    def test_phone(self):
        result = classify_identifier("(555) 123-4567")
        assert result == PhoneIdentifier("5551234567")
        assert result.value == "5551234567"

    def test_email(self):
        assert classify_identifier("USER@example.com") == EmailIdentifier("user@examplecom")

    def test_name_is_opaque(self):
        assert classify_identifier("Jane Doe") == OpaqueIdentifier("JaneDoe")

    def test_alphanumeric_is_opaque(self):
        assert classify_identifier("1-800-FLOWERS") == OpaqueIdentifier("1800FLOWERS")

    def test_empty_is_opaque(self):
        assert classify_identifier("") == OpaqueIdentifier("")

    def test_email_with_digits_only_local_part(self):
        """'@' wins over digits."""
        assert isinstance(classify_identifier("5551234567@sms.example"), EmailIdentifier)
