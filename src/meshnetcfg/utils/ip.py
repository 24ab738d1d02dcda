"""IP address utility functions shared across the package."""

from __future__ import annotations


def strip_prefix(address: str) -> str:
    """Drop a '/len' suffix from an address in interface notation.

    >>> strip_prefix('10.60.10.90/24')
    '10.60.10.90'
    >>> strip_prefix('10.60.10.90')
    '10.60.10.90'
    """
    return address.split('/', 1)[0]


def is_dotted_quad(value: str) -> bool:
    """Check that a string is four dot-separated decimal octets in 0-255.

    Purely syntactic: network, broadcast and reserved addresses pass.

    >>> is_dotted_quad('10.55.10.94')
    True
    >>> is_dotted_quad('0.0.0.0')
    True
    >>> is_dotted_quad('10.55.10.256')
    False
    >>> is_dotted_quad('10.55.10')
    False
    >>> is_dotted_quad('abc.def.gha.b')
    False
    >>> is_dotted_quad('10.55.10.+9')
    False
    """
    parts = value.split('.')
    if len(parts) != 4:
        return False
    for part in parts:
        if not part or not part.isascii() or not part.isdigit():
            return False
        if int(part) > 255:
            return False
    return True
