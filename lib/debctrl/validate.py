""" Validation of package and field names

These checks follow the Debian Policy Manual, "Control files and their
fields": https://www.debian.org/doc/debian-policy/ch-controlfields.html
"""

import re

from typing import Optional

from debctrl.errors import Status


# From Policy 5.1:
#
#    The field name is composed of US-ASCII characters excluding control
#    characters, space, and colon (i.e., characters in the ranges U+0021
#    (!) through U+0039 (9), and U+003B (;) through U+007E (~),
#    inclusive). Field names must not begin with the comment character
#    (U+0023 #), nor with the hyphen character (U+002D -).
_RE_FIELD_NAME = re.compile(r'''
    ^
    [\x21\x22\x24-\x2C\x2E-\x39\x3B-\x7E]  # First character
    [\x21-\x39\x3B-\x7E]*                  # Subsequent characters (if any)
    $
''', re.VERBOSE)

_PACKAGE_NAME_FIRST = frozenset('abcdefghijklmnopqrstuvwxyz0123456789')
_PACKAGE_NAME_REST = _PACKAGE_NAME_FIRST | frozenset('+-.')


def check_package_name(name):
    # type: (Optional[str]) -> Status
    """Validate the name of a source or binary package (Policy 5.6.1)

    Package names must be at least two characters long, must start with a
    lowercase letter or a digit and may only contain lowercase letters,
    digits and the characters '+', '-' and '.'.

    >>> check_package_name('ab-c.1')
    <Status.OK: 0>
    >>> check_package_name('Abc')
    <Status.PACKAGE_BAD_PREFIX: 5>
    """
    if name is None or len(name) < 2:
        return Status.PACKAGE_TOO_SHORT
    if name[0] not in _PACKAGE_NAME_FIRST:
        return Status.PACKAGE_BAD_PREFIX
    for c in name[1:]:
        if c not in _PACKAGE_NAME_REST:
            return Status.PACKAGE_INVALID_CHAR
    return Status.OK


def valid_package_name(name):
    # type: (Optional[str]) -> bool
    return check_package_name(name) is Status.OK


def valid_field_name(name):
    # type: (str) -> bool
    """Whether name is a syntactically valid field name (Policy 5.1)"""
    return _RE_FIELD_NAME.match(name) is not None
