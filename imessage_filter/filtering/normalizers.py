"""
Identifier normalization for conversation filters.

Filter terms typed by the user and handle identifiers stored in chat.db are
only ever compared after normalization. Normalization is deliberately
conservative: it strips formatting characters and folds case for emails, but
never rewrites the identifier (no country-code insertion, no E.164).

Design Decisions:
    1. Separators removed: '+', ' ', '(', ')', '-', '.'
    2. Lowercase only when the value contains '@'
    3. Classification happens once, producing an IdentifierShape variant
    4. Normalization is total and idempotent

Shapes:
    PhoneIdentifier  - non-empty, ASCII digits only
    EmailIdentifier  - contains '@'
    OpaqueIdentifier - anything else (names, alphanumeric ids, empty string)
"""

from dataclasses import dataclass
from typing import Union

# Characters removed from every identifier before comparison
SEPARATOR_CHARS = "+ ()-."

_SEPARATOR_TABLE = str.maketrans("", "", SEPARATOR_CHARS)


@dataclass(frozen=True)
class PhoneIdentifier:
    """Normalized identifier made only of ASCII digits."""

    digits: str

    @property
    def value(self) -> str:
        return self.digits


@dataclass(frozen=True)
class EmailIdentifier:
    """Normalized, lower-cased identifier containing '@'."""

    value: str


@dataclass(frozen=True)
class OpaqueIdentifier:
    """Any other normalized identifier (contact names, chat GUIDs, ...)."""

    value: str


IdentifierShape = Union[PhoneIdentifier, EmailIdentifier, OpaqueIdentifier]


def normalize_identifier(raw: str) -> str:
    """
    Normalize a raw identifier for comparison.

    Args:
        raw: Identifier as typed by the user or stored in handle.id.

    Returns:
        The identifier with separators removed, lower-cased if it is an email.

    Examples:
        >>> normalize_identifier("+1 (555) 123-4567")
        '15551234567'
        >>> normalize_identifier("Jane.Doe@Example.com")
        'janedoe@examplecom'
        >>> normalize_identifier("Person 10")
        'Person10'
    """
    cleaned = raw.translate(_SEPARATOR_TABLE)
    if "@" in cleaned:
        return cleaned.lower()
    return cleaned


def is_numeric_identifier(value: str) -> bool:
    """Return True if value is non-empty and made only of ASCII digits."""
    return value.isascii() and value.isdigit()


def classify_identifier(raw: str) -> IdentifierShape:
    """
    Normalize an identifier and tag it with its shape.

    Args:
        raw: Raw or already normalized identifier.

    Returns:
        PhoneIdentifier, EmailIdentifier or OpaqueIdentifier.

    Examples:
        >>> classify_identifier("(555) 123-4567")
        PhoneIdentifier(digits='5551234567')
        >>> classify_identifier("USER@example.com")
        EmailIdentifier(value='user@examplecom')
    """
    normalized = normalize_identifier(raw)

    if "@" in normalized:
        return EmailIdentifier(normalized)
    if is_numeric_identifier(normalized):
        return PhoneIdentifier(normalized)
    return OpaqueIdentifier(normalized)
