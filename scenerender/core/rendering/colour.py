"""
Colour Parsing
==============

Hex colour text to RGBA conversion.

Accepted forms, each with an optional leading ``#``:

- ``RGB``      shorthand, every hexit doubled, opaque
- ``RGBA``     shorthand, every hexit doubled
- ``RRGGBB``   opaque
- ``RRGGBBAA``
"""

import string

from scenerender.core.errors import InvalidColorFormat
from scenerender.models.schemas import Colour

HEX_DIGITS = frozenset(string.hexdigits)


def parse_colour(text: str) -> Colour:
    """
    Parse hex colour text into a Colour.

    Args:
        text: Colour text such as ``#fff``, ``80ff0080`` or ``#1e90ff``

    Returns:
        Parsed colour

    Raises:
        InvalidColorFormat: If the text has a non-hex character or an
            unsupported length
    """
    if not isinstance(text, str):
        raise InvalidColorFormat(text, "colour must be a string")

    digits = text[1:] if text.startswith("#") else text

    if not set(digits) <= HEX_DIGITS:
        raise InvalidColorFormat(text, "non-hexadecimal character")

    if len(digits) in (3, 4):
        channels = [int(hexit, 16) * 0x11 for hexit in digits]
    elif len(digits) in (6, 8):
        channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
    else:
        raise InvalidColorFormat(text, f"expected 3, 4, 6 or 8 hex digits, got {len(digits)}")

    if len(channels) == 3:
        channels.append(0xFF)

    r, g, b, a = channels
    return Colour(r=r, g=g, b=b, a=a)


def format_colour(colour: Colour) -> str:
    """Format a colour as ``#rrggbbaa``."""
    return "#{:02x}{:02x}{:02x}{:02x}".format(*colour.as_tuple())
