"""
Tests for identifier matching.

Tests exact matches, phone suffix matching and the no-partial-match policy
for emails and names.
"""

import pytest

from imessage_filter.filtering.matching import identifiers_match, shapes_match
from imessage_filter.filtering.normalizers import (
    EmailIdentifier,
    OpaqueIdentifier,
    PhoneIdentifier,
)


class TestExactMatch:
    """Identical normalized values always match."""

    def test_same_email_different_case(self):
        assert identifiers_match("Jane@Example.com", "jane@example.com")

    def test_same_name(self):
        assert identifiers_match("Person 10", "Person 10")

    def test_name_spacing_is_ignored(self):
        """Spaces are separators, so names compare without them."""
        assert identifiers_match("Person10", "Person 10")

    def test_name_case_matters(self):
        """Only emails fold case."""
        assert not identifiers_match("person 10", "Person 10")

    def test_short_numbers_match_exactly(self):
        assert identifiers_match("1234", "1234")


class TestPhoneSuffixMatch:
    """Phone numbers match on digit suffixes."""

    def test_country_code_variance(self):
        """A number with and without the US country code is the same contact."""
        assert identifiers_match("15551234567", "+1 (555) 123-4567")
        assert identifiers_match("5551234567", "+1 (555) 123-4567")

    def test_different_country_codes_same_last_ten(self):
        assert identifiers_match("+44 555 123 4567", "+1 555 123 4567")

    def test_full_numbers_with_different_last_ten(self):
        assert not identifiers_match("15551234567", "15551234568")

    def test_partial_number_matches_suffix(self):
        """Short numbers compare on the shorter length."""
        assert identifiers_match("123-4567", "+1 (555) 123-4567")

    def test_partial_number_must_be_a_suffix(self):
        assert not identifiers_match("555-1234", "+1 (555) 123-4567")

    def test_short_codes(self):
        assert identifiers_match("12345", "912345")

    def test_below_five_digits_no_partial_match(self):
        assert not identifiers_match("4567", "5551234567")

    def test_ten_digit_filter_against_short_handle(self):
        """Mixed lengths fall back to the shorter suffix when both have >= 5 digits."""
        assert identifiers_match("5551234567", "34567")
        assert not identifiers_match("5551234567", "34568")


class TestNoPartialMatch:
    """Emails and opaque identifiers only match exactly."""

    def test_email_prefix(self):
        assert not identifiers_match("jane@example.com", "jane@example.org")

    def test_email_with_digits(self):
        """Digits inside an email never trigger suffix matching."""
        assert not identifiers_match("5551234567@sms.example", "15551234567@sms.example")

    def test_email_against_phone(self):
        assert not identifiers_match("5551234567", "5551234567@sms.example")

    def test_name_suffix(self):
        assert not identifiers_match("Doe", "Jane Doe")

    def test_alphanumeric_with_digit_suffix(self):
        assert not identifiers_match("A5551234567", "5551234567")


class TestShapesMatch:
    """Tests for shapes_match on classified identifiers."""

    def test_phone_shapes(self):
        assert shapes_match(PhoneIdentifier("15551234567"), PhoneIdentifier("5551234567"))

    def test_email_shapes(self):
        assert shapes_match(EmailIdentifier("a@b"), EmailIdentifier("a@b"))
        assert not shapes_match(EmailIdentifier("a@b"), EmailIdentifier("a@c"))

    def test_opaque_vs_phone(self):
        assert not shapes_match(OpaqueIdentifier("x5551234567"), PhoneIdentifier("5551234567"))

    @pytest.mark.parametrize(
        "left,right",
        [
            ("15551234567", "+1 (555) 123-4567"),
            ("123-4567", "5551234567"),
            ("4567", "5551234567"),
            ("a@b.com", "A@B.com"),
            ("Person 10", "Person 11"),
        ],
    )
    def test_symmetric(self, left: str, right: str):
        assert identifiers_match(left, right) == identifiers_match(right, left)
