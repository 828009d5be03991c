""" Semantic view of debian/control (source package) files

This is the second step of reading a control file: :mod:`debctrl.parser`
turns the text into sections and fields, and :class:`ControlParser` extracts
the meaning of the fields it knows about into a :class:`ControlSource` record.

The first section of the file describes the source package, every further
section describes one binary package built from it::

    >>> from debctrl.parser import parse_control_lines
    >>> document = parse_control_lines('''\\
    ... Source: hello
    ... Maintainer: Jane Doe <jane@example.org>
    ...
    ... Package: hello
    ... Architecture: any
    ... Description: greets the world
    ... '''.splitlines(keepends=True))
    >>> source = ControlParser().parse(document)
    >>> source.name, [b.name for b in source.binaries]
    ('hello', ['hello'])

Problems with field values (such as an invalid package name) are reported as
warnings through the :class:`~debctrl.errors.ErrorHandler` and the field is
skipped; extraction never aborts because of them.

See "Control files and their fields", from the Debian Policy Manual:
https://www.debian.org/doc/debian-policy/ch-controlfields.html
"""

import logging
import re

from typing import Callable, Dict, List, Optional, Union

from debctrl.errors import ErrorHandler, Status
from debctrl.parser import ControlDocument, Field, Section, parse_control_file
from debctrl.validate import check_package_name


logger = logging.getLogger(__name__)

xbcs_re = re.compile('^X[BCS]+-', re.IGNORECASE)

_PACKAGE_NAME_PROBLEMS = {
    Status.PACKAGE_TOO_SHORT: "is too short, it must be at least two characters long",
    Status.PACKAGE_BAD_PREFIX: "must begin with a lowercase letter or a digit",
    Status.PACKAGE_INVALID_CHAR: "must only contain lowercase letters, digits, '+', '-' and '.'",
}

# Policy fields that are accepted but not interpreted
_KNOWN_SOURCE_FIELDS = frozenset(f.lower() for f in (
    'Uploaders', 'Build-Conflicts', 'Build-Conflicts-Indep', 'Build-Depends-Arch',
    'Build-Conflicts-Arch', 'Rules-Requires-Root', 'Testsuite', 'Testsuite-Triggers',
    'Dm-Upload-Allowed',
))
_KNOWN_BINARY_FIELDS = frozenset(f.lower() for f in (
    'Priority', 'Essential', 'Pre-Depends', 'Recommends', 'Suggests', 'Breaks',
    'Conflicts', 'Provides', 'Replaces', 'Enhances', 'Built-Using', 'Multi-Arch',
    'Package-Type', 'Build-Profiles', 'Homepage', 'Protected',
))


class ControlBinary:
    """Holds the information about one binary package paragraph"""

    def __init__(self, name=None, architecture=None, section=None,
                 depends=None, description=None):
        # type: (Optional[str], Optional[str], Optional[str], Optional[str], Optional[List[str]]) -> None
        self.name = name
        self.architecture = architecture
        self.section = section
        self.depends = depends
        self.description = description

    def __repr__(self):
        # type: () -> str
        return "ControlBinary({name!r})".format(name=self.name)


class ControlSource:
    """Holds the information about a source package and its binary packages"""

    def __init__(self, name=None, maintainer=None, section=None, priority=None,
                 standards_version=None, homepage=None, build_depends=None,
                 build_depends_indep=None, binaries=None):
        self.name = name  # type: Optional[str]
        self.maintainer = maintainer  # type: Optional[str]
        self.section = section  # type: Optional[str]
        self.priority = priority  # type: Optional[str]
        self.standards_version = standards_version  # type: Optional[str]
        self.homepage = homepage  # type: Optional[str]
        self.build_depends = build_depends  # type: Optional[str]
        self.build_depends_indep = build_depends_indep  # type: Optional[str]
        self.binaries = binaries or []  # type: List[ControlBinary]

    def __repr__(self):
        # type: () -> str
        return "ControlSource({name!r}, binaries={binaries!r})".format(
            name=self.name, binaries=self.binaries)


Record = Union[ControlSource, ControlBinary]
FieldHandler = Callable[['ControlParser', Record, Field], None]


def _single_line(field):
    # type: (Field) -> Optional[str]
    first = field.first_line
    return first.text if first is not None else None


def _relations(field):
    # type: (Field) -> str
    # Relation fields may be wrapped freely; only the words matter
    return ' '.join(field.value.split())


def _simple(attribute):
    # type: (str) -> FieldHandler
    def _handler(parser, record, field):
        # type: (ControlParser, Record, Field) -> None
        setattr(record, attribute, _single_line(field))
    return _handler


def _relation(attribute):
    # type: (str) -> FieldHandler
    def _handler(parser, record, field):
        # type: (ControlParser, Record, Field) -> None
        setattr(record, attribute, _relations(field))
    return _handler


def _package_name(parser, record, field):
    # type: (ControlParser, Record, Field) -> None
    name = _single_line(field)
    if parser.check_package_name(field, name):
        record.name = name


def _description(parser, record, field):
    # type: (ControlParser, Record, Field) -> None
    # One entry per line; the " ." separator lines become empty strings
    record.description = [v.text if v.text is not None else '' for v in field]  # type: ignore


_SOURCE_HANDLERS = {
    'source': _package_name,
    'maintainer': _simple('maintainer'),
    'section': _simple('section'),
    'priority': _simple('priority'),
    'standards-version': _simple('standards_version'),
    'homepage': _simple('homepage'),
    'build-depends': _relation('build_depends'),
    'build-depends-indep': _relation('build_depends_indep'),
}  # type: Dict[str, FieldHandler]

_BINARY_HANDLERS = {
    'package': _package_name,
    'architecture': _simple('architecture'),
    'section': _simple('section'),
    'depends': _relation('depends'),
    'description': _description,
}  # type: Dict[str, FieldHandler]


class ControlParser:
    """Extracts a :class:`ControlSource` record from a parsed debian/control file

    :param handler: Receives the warnings about unknown fields and invalid
      values.  Defaults to an ErrorHandler logging on "debctrl.errors".
    """

    def __init__(self, handler=None):
        # type: (Optional[ErrorHandler]) -> None
        self.handler = handler if handler is not None else ErrorHandler()

    def check_package_name(self, field, name):
        # type: (Field, Optional[str]) -> bool
        """Validate a package name, warning (and returning False) if it is invalid"""
        status = check_package_name(name)
        if status is Status.OK:
            return True
        context = field.first_line.context if field.first_line is not None else None
        self.handler.warn(context, "Package name {name!r} in field {field} {problem}"
                                   " (Sec. 5.6.1)".format(
                                       name=name if name is not None else '',
                                       field=field.name,
                                       problem=_PACKAGE_NAME_PROBLEMS[status]))
        return False

    def _dispatch(self, record, section, handlers, known_fields):
        # type: (Record, Section, Dict[str, FieldHandler], frozenset) -> None
        for field in section:
            key = field.name.lower()
            handler = handlers.get(key)
            if handler is not None:
                handler(self, record, field)
                continue
            if key in known_fields or key.startswith('vcs-') \
                    or xbcs_re.match(field.name) is not None:
                logger.debug("Ignoring field %s", field.name)
                continue
            first = field.first_line
            self.handler.warn(first.context if first is not None else None,
                              "Unknown field {name}".format(name=field.name))

    def parse_source(self, section):
        # type: (Section) -> ControlSource
        record = ControlSource()
        if 'Source' not in section:
            self._warn_missing(section, 'Source')
        self._dispatch(record, section, _SOURCE_HANDLERS, _KNOWN_SOURCE_FIELDS)
        return record

    def parse_binary(self, section):
        # type: (Section) -> ControlBinary
        record = ControlBinary()
        if 'Package' not in section:
            self._warn_missing(section, 'Package')
        self._dispatch(record, section, _BINARY_HANDLERS, _KNOWN_BINARY_FIELDS)
        return record

    def _warn_missing(self, section, name):
        # type: (Section, str) -> None
        first_field = next(iter(section), None)
        context = None
        if first_field is not None and first_field.first_line is not None:
            context = first_field.first_line.context
        self.handler.warn(context, "Paragraph has no {name} field".format(name=name))

    def parse(self, document):
        # type: (ControlDocument) -> ControlSource
        """Extract the source package and its binary packages from a document"""
        sections = [s for s in document if s]
        if not sections:
            self.handler.warn(None, "No paragraphs found in control file")
            return ControlSource()
        source = self.parse_source(sections[0])
        for section in sections[1:]:
            source.binaries.append(self.parse_binary(section))
        return source

    def parse_file(self, path):
        # type: (str) -> ControlSource
        """Read a debian/control file and extract its contents

        :raises ControlFileError: if the file cannot be read.
        :raises ControlSyntaxError: if the file is malformed.
        """
        return self.parse(parse_control_file(path, handler=self.handler))
