"""
IFID (Interactive Fiction ID) generation and validation.

Twine stories use an uppercase UUID as their IFID, following the Treaty of
Babel (https://babel.ifarchive.org/babel.html).
"""

import re
import uuid

from .errors import InvalidArgumentError

IFID_PATTERN = re.compile(
    r'[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'
)


def generate_ifid() -> str:
    """Generate a new IFID: a random (version 4) UUID in uppercase."""
    return str(uuid.uuid4()).upper()


def is_valid_ifid(ifid: str) -> bool:
    """Check whether a string is a Twine IFID.

    Hex digits may be of either case. Anything else (wrong length, misplaced
    hyphens, surrounding whitespace) is rejected.

    Raises:
        InvalidArgumentError: if ifid is None
    """
    if ifid is None:
        raise InvalidArgumentError("IFID cannot be None.")

    return IFID_PATTERN.fullmatch(ifid) is not None
