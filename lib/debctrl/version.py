""" Debian package version numbers

A package version has the form ``[epoch:]upstream_version[-debian_revision]``
(Debian Policy 5.6.12):

- the epoch is an optional unsigned integer, defaulting to 0.
- the upstream version is mandatory.  It may itself contain hyphens.
- the Debian revision is optional and never contains a hyphen, so the
  version is split on the *last* hyphen.

    >>> v = Version('1:2.3-4-5')
    >>> v.epoch, v.upstream_version, v.debian_revision
    (1, '2.3-4', '5')
    >>> Version('1.0~rc1') < Version('1.0')
    True

See https://www.debian.org/doc/debian-policy/ch-controlfields.html#version
"""

import functools
import re

from typing import List, Optional, Tuple, Union

from debctrl.errors import ParameterError


# dpkg only treats ASCII digits as digits
_re_digits = re.compile(r'^[0-9]+$')
_re_all_digits_or_not = re.compile(r'[0-9]+|[^0-9]+')


@functools.total_ordering
class Version:
    """A package version, split into epoch, upstream version and revision

    A Version can be reused: :meth:`set` discards the previous components
    before parsing the new string.

    :raises ParameterError: if the epoch contains anything but digits or the
      upstream version is empty.
    """

    __slots__ = ('epoch', 'upstream_version', 'debian_revision')

    def __init__(self, version=None):
        # type: (Optional[str]) -> None
        self.epoch = 0
        self.upstream_version = None  # type: Optional[str]
        self.debian_revision = None  # type: Optional[str]
        if version is not None:
            self.set(version)

    def _reset(self):
        # type: () -> None
        self.epoch = 0
        self.upstream_version = None
        self.debian_revision = None

    def set(self, version):
        # type: (str) -> None
        """Parse a version string into this object"""
        self._reset()
        if not isinstance(version, str):
            raise ParameterError("Version must be a string, not {type}"
                                 .format(type=type(version).__name__))

        epoch, sep, rest = version.partition(':')
        if sep:
            # str.isdigit() accepts non-ASCII digits, which dpkg does not
            if not epoch or not all('0' <= c <= '9' for c in epoch):
                raise ParameterError("Invalid epoch in version: {v!r}".format(v=version))
            epoch_value = int(epoch)
        else:
            rest = version
            epoch_value = 0

        upstream, sep, revision = rest.rpartition('-')
        if not sep:
            upstream = rest
            revision = None
        if not upstream:
            raise ParameterError("Missing upstream version in: {v!r}".format(v=version))

        self.epoch = epoch_value
        self.upstream_version = upstream
        self.debian_revision = revision

    @classmethod
    def parse(cls, version):
        # type: (str) -> Version
        return cls(version)

    # python-debian compatible alias
    @property
    def debian_version(self):
        # type: () -> Optional[str]
        return self.debian_revision

    @property
    def full_version(self):
        # type: () -> str
        if self.upstream_version is None:
            return ''
        version = self.upstream_version
        if self.epoch:
            version = "{epoch}:{version}".format(epoch=self.epoch, version=version)
        if self.debian_revision is not None:
            version = "{version}-{rev}".format(version=version, rev=self.debian_revision)
        return version

    def __str__(self):
        # type: () -> str
        return self.full_version

    def __repr__(self):
        # type: () -> str
        return "{clsname}('{version}')".format(clsname=self.__class__.__name__,
                                               version=self.full_version)

    def __eq__(self, other):
        # type: (object) -> bool
        try:
            return version_compare(self, other) == 0  # type: ignore
        except ParameterError:
            return NotImplemented

    def __lt__(self, other):
        # type: (object) -> bool
        try:
            return version_compare(self, other) < 0  # type: ignore
        except ParameterError:
            return NotImplemented

    def __hash__(self):
        # type: () -> int
        # Must not be changed with set() while used as a dict key
        return hash((self.epoch,
                     _cmp_key(self.upstream_version or ''),
                     _cmp_key(self.debian_revision or '0')))


def _cmp_key(part):
    # type: (str) -> Tuple[Union[int, str], ...]
    """Tuple that is equal for two parts exactly when they compare equal

    Digit runs compare numerically and a missing run counts as 0, so
    "1.01" and "1.1", or "a" and "a0", share the same key.
    """
    key = [int(t) if _re_digits.match(t) else t
           for t in _re_all_digits_or_not.findall(part)]  # type: List[Union[int, str]]
    while key and key[-1] == 0:
        key.pop()
    return tuple(key)


def _order(x):
    # type: (str) -> int
    """Return an integer value for character x

    '~' sorts before anything, even the end of the string; letters sort
    before non-letters.
    """
    if x == '~':
        return -1
    if '0' <= x <= '9':
        return int(x) + 1
    if x.isalpha():
        return ord(x)
    return ord(x) + 256


def _version_cmp_string(va, vb):
    # type: (str, str) -> int
    la = [_order(x) for x in va]
    lb = [_order(x) for x in vb]
    while la or lb:
        a = la.pop(0) if la else 0
        b = lb.pop(0) if lb else 0
        if a < b:
            return -1
        if a > b:
            return 1
    return 0


def _version_cmp_part(va, vb):
    # type: (str, str) -> int
    la = _re_all_digits_or_not.findall(va)  # type: List[str]
    lb = _re_all_digits_or_not.findall(vb)  # type: List[str]
    while la or lb:
        a = la.pop(0) if la else '0'
        b = lb.pop(0) if lb else '0'
        if _re_digits.match(a) and _re_digits.match(b):
            ia = int(a)
            ib = int(b)
            if ia < ib:
                return -1
            if ia > ib:
                return 1
        else:
            res = _version_cmp_string(a, b)
            if res != 0:
                return res
    return 0


def _as_version(v):
    # type: (Union[Version, str]) -> Version
    if isinstance(v, Version):
        return v
    if isinstance(v, str):
        return Version(v)
    raise ParameterError("Cannot compare a Version with {type}".format(type=type(v).__name__))


def version_compare(a, b):
    # type: (Union[Version, str], Union[Version, str]) -> int
    """Compare two versions the way dpkg does; returns <0, 0 or >0"""
    va = _as_version(a)
    vb = _as_version(b)
    if va.epoch != vb.epoch:
        return -1 if va.epoch < vb.epoch else 1
    res = _version_cmp_part(va.upstream_version or '', vb.upstream_version or '')
    if res != 0:
        return res
    return _version_cmp_part(va.debian_revision or '0', vb.debian_revision or '0')
