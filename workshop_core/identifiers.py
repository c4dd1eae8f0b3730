"""
Identifier normalization.

The structured API returns ids as strings, clients send either strings or
numbers, and ids scraped from HTML are always strings. Every id is turned
into its canonical string form once, here, so the rest of the pipeline can
compare with plain `==`.
"""

from typing import List, Optional

from .errors import ClientInputError


def normalize_identifier(value) -> Optional[str]:
    """
    Return the canonical string form of an identifier, or None if invalid.

    Accepts non-empty strings (surrounding whitespace stripped), integers,
    and floats with no fractional part, since JSON decoders may hand a
    number back as `123.0`. Booleans, fractional floats, None and
    containers are rejected.

    Examples:
        >>> normalize_identifier(123)
        '123'
        >>> normalize_identifier(123.0)
        '123'
        >>> normalize_identifier(' 123 ')
        '123'
        >>> normalize_identifier(True) is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def parse_batch_request(payload) -> List[str]:
    """
    Validate a decoded batch request body and normalize its identifiers.

    Duplicates are kept; the request layer does not deduplicate.

    Raises:
        ClientInputError: payload is not a non-empty array of ids
    """
    if not isinstance(payload, list) or len(payload) == 0:
        raise ClientInputError('Payload must be a non-empty array of strings')

    identifiers = []
    for index, value in enumerate(payload):
        identifier = normalize_identifier(value)
        if identifier is None:
            raise ClientInputError(
                f'Invalid identifier at index {index}',
                details={'value': value}
            )
        identifiers.append(identifier)
    return identifiers


def record_identifier(record: dict) -> Optional[str]:
    """Canonical `publishedfileid` of an upstream record or child reference."""
    return normalize_identifier(record.get('publishedfileid'))
