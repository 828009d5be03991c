# -*- coding: utf-8 -*- vim: fileencoding=utf-8 :

""" Line oriented parser for RFC822-like Debian control files

Processing Debian's package metadata ("control") files occurs in two steps:

1. Text is parsed into a data structure representation (syntax).  That is
   what this module does.
2. Specific data is extracted from the data structure (semantics).  See
   :mod:`debctrl.control`.

The parser is "dumb" in the sense that it does not know what any field means.
It reads a file into three levels of objects that can be modified and written
back out:

- :class:`ControlDocument` holds the :class:`Section` objects of a file.  A
  section is one paragraph; in ``debian/control`` the first section describes
  the source package and each further one a binary package.
- :class:`Section` holds :class:`Field` objects, one per field name.
- :class:`Field` holds :class:`ValueLine` objects, one per physical line of the
  value.  The first one is the text after the colon.

Example::

    >>> from debctrl.parser import parse_control_lines
    >>> document = parse_control_lines('''\\
    ... Source: foo
    ... Description: short
    ...  long text, which
    ...  wraps
    ...   fixed width
    ...  .
    ...  the end
    ... '''.splitlines(keepends=True))
    >>> field = document.sections[0]['description']
    >>> [v.line_type.name for v in field]
    ['FIXED', 'MERGE', 'MERGE', 'FIXED', 'EMPTY', 'MERGE']
    >>> print(field.convert_to_text(), end='')
    Description: short
     long text, which
     wraps
      fixed width
     .
     the end

Continuation lines
------------------

A line starting with a space or tab continues the previous field:

- one space means the text may be merged (re-wrapped) with the previous line.
- two spaces mean the line is fixed-format and must be reproduced as-is.
- a lone " ." is an intentionally empty line.  Any other line starting with
  " ." is an error, as these are reserved by Policy 5.6.13.

Comments (lines starting with "#") are dropped while reading.
"""

import collections
import enum
import io
import logging
import weakref

from typing import (
    IO, Iterable, Iterator, List, Optional, Union,
)

from debctrl._util import LinkedList, LinkedListNode, chomp, chug, resolve_ref
from debctrl.errors import (
    ControlFileError,
    ControlSyntaxError,
    DebctrlError,
    ErrorHandler,
    ParameterError,
    Status,
)
from debctrl.validate import valid_field_name


logger = logging.getLogger(__name__)


class ParserContext(collections.namedtuple('ParserContext', ['path', 'line'])):
    """Origin of a value line: the file path (may be None) and 1-based line number"""

    __slots__ = ()

    def __str__(self):
        # type: () -> str
        return "{path} line {line}".format(
            path=self.path if self.path is not None else '<input>',
            line=self.line,
        )


class ValueLineType(enum.Enum):
    """How a value line relates to the text before it"""

    #: An intentionally blank line (written as " .")
    EMPTY = 0
    #: Text that may be merged with the previous line (one leading space)
    MERGE = 1
    #: Fixed-format text to be reproduced exactly (two leading spaces)
    FIXED = 2


class ValueLine:
    """One physical line of a field value"""

    __slots__ = ('text', 'line_type', 'context', '_node', '_field', '__weakref__')

    def __init__(self,
                 text=None,  # type: Optional[str]
                 line_type=None,  # type: Optional[ValueLineType]
                 context=None,  # type: Optional[ParserContext]
                 ):
        # type: (...) -> None
        if text is None:
            line_type = ValueLineType.EMPTY
        elif line_type is None:
            line_type = ValueLineType.MERGE
        elif line_type is ValueLineType.EMPTY:
            raise ParameterError("Empty value lines cannot have text")
        self.text = text
        self.line_type = line_type
        self.context = context
        self._node = None  # type: Optional[weakref.ReferenceType[LinkedListNode[ValueLine]]]
        self._field = None  # type: Optional[weakref.ReferenceType[Field]]

    @property
    def field(self):
        # type: () -> Optional[Field]
        """The Field this line currently belongs to (if any)"""
        return resolve_ref(self._field)

    def convert_to_text(self):
        # type: () -> str
        """Render the line as a continuation line (without the newline)"""
        if self.line_type is ValueLineType.EMPTY:
            return ' .'
        if self.line_type is ValueLineType.FIXED:
            return '  ' + self.text
        return ' ' + self.text

    def __repr__(self):
        # type: () -> str
        return "{clsname}({text!r}, {line_type})".format(
            clsname=self.__class__.__name__,
            text=self.text,
            line_type=self.line_type.name,
        )


class Field:
    """A named field and the ordered lines of its value

    The name keeps its original case, but is compared case-insensitively (Policy
    5.1).  A field always has at least its first value line, which is the text
    on the same line as the field name.
    """

    __slots__ = ('name', '_lines', '__weakref__')

    def __init__(self, name, first_line=None):
        # type: (str, Optional[ValueLine]) -> None
        self.name = name
        self._lines = LinkedList()  # type: LinkedList[ValueLine]
        self.append(first_line if first_line is not None else ValueLine())

    def matches(self, name):
        # type: (str) -> bool
        return self.name.lower() == name.lower()

    def _adopt(self, value_line, node):
        # type: (ValueLine, LinkedListNode[ValueLine]) -> None
        value_line._node = weakref.ref(node)
        value_line._field = weakref.ref(self)

    def _check_unowned(self, value_line):
        # type: (ValueLine) -> None
        if value_line.field is not None:
            raise ParameterError("The value line already belongs to a field")

    def append(self, value_line):
        # type: (ValueLine) -> None
        self._check_unowned(value_line)
        self._adopt(value_line, self._lines.append(value_line))

    def prepend(self, value_line):
        # type: (ValueLine) -> None
        self._check_unowned(value_line)
        self._adopt(value_line, self._lines.prepend(value_line))

    def delete(self, value_line):
        # type: (ValueLine) -> None
        """Remove a value line from this field"""
        node = resolve_ref(value_line._node)
        if value_line.field is not self or node is None:
            raise ParameterError("The value line does not belong to this field")
        self._lines.remove_node(node)
        value_line._node = None
        value_line._field = None

    def clear(self):
        # type: () -> None
        """Remove all value lines (the field is unusable until one is added)"""
        for value_line in self._lines:
            value_line._node = None
            value_line._field = None
        self._lines.clear()

    @property
    def first_line(self):
        # type: () -> Optional[ValueLine]
        return self._lines.head

    @property
    def last_line(self):
        # type: () -> Optional[ValueLine]
        return self._lines.tail

    @property
    def value(self):
        # type: () -> str
        """The value as text: one line per value line, empty lines as ''"""
        return '\n'.join(v.text if v.text is not None else '' for v in self._lines)

    def __iter__(self):
        # type: () -> Iterator[ValueLine]
        return iter(self._lines)

    def __len__(self):
        # type: () -> int
        return len(self._lines)

    def convert_to_text(self):
        # type: () -> str
        """Flatten the field into its textual form, one line per value line"""
        buf = io.StringIO()
        lines = iter(self._lines)
        first = next(lines, None)
        buf.write(self.name)
        buf.write(':')
        if first is not None and first.text is not None:
            buf.write(' ')
            buf.write(first.text)
        buf.write('\n')
        for value_line in lines:
            buf.write(value_line.convert_to_text())
            buf.write('\n')
        return buf.getvalue()

    def __repr__(self):
        # type: () -> str
        return "{clsname}({name!r}, {count} lines)".format(
            clsname=self.__class__.__name__,
            name=self.name,
            count=len(self._lines),
        )


class Section:
    """A paragraph: the ordered fields between two blank lines"""

    __slots__ = ('_fields',)

    def __init__(self):
        # type: () -> None
        self._fields = LinkedList()  # type: LinkedList[Field]

    def append(self, field):
        # type: (Field) -> None
        self._fields.append(field)

    def find(self, name):
        # type: (str) -> Optional[Field]
        """Look up a field by (case-insensitive) name; None if absent"""
        for field in self._fields:
            if field.matches(name):
                return field
        return None

    def remove(self, name):
        # type: (str) -> Field
        for node in self._fields.iter_nodes():
            if node.value.matches(name):
                self._fields.remove_node(node)
                return node.value
        raise KeyError(name)

    def clear(self):
        # type: () -> None
        self._fields.clear()

    @property
    def last_field(self):
        # type: () -> Optional[Field]
        return self._fields.tail

    def __getitem__(self, name):
        # type: (str) -> Field
        field = self.find(name)
        if field is None:
            raise KeyError(name)
        return field

    def __contains__(self, name):
        # type: (object) -> bool
        return isinstance(name, str) and self.find(name) is not None

    def __iter__(self):
        # type: () -> Iterator[Field]
        return iter(self._fields)

    def __len__(self):
        # type: () -> int
        return len(self._fields)

    def __bool__(self):
        # type: () -> bool
        return bool(self._fields)

    def keys(self):
        # type: () -> List[str]
        return [f.name for f in self._fields]

    def convert_to_text(self):
        # type: () -> str
        return ''.join(f.convert_to_text() for f in self._fields)


class ControlDocument:
    """The sections of a control file, plus the state needed to parse one

    A new document holds one (empty) section, so lines can be fed to
    :meth:`consume_line` straight away.  Diagnostics go to the given
    :class:`~debctrl.errors.ErrorHandler`.

    :param handler: Receives warnings and critical errors.  Defaults to an
      ErrorHandler logging on the "debctrl.errors" logger.
    :param encoding: Used to decode lines given as bytes and to read files.
    """

    def __init__(self, handler=None, encoding='utf-8'):
        # type: (Optional[ErrorHandler], str) -> None
        self.handler = handler if handler is not None else ErrorHandler()
        self.encoding = encoding
        self.path = None  # type: Optional[str]
        self.line = 0
        self.status = Status.OK
        self._sections = LinkedList()  # type: LinkedList[Section]
        self.append_section(Section())

    @property
    def context(self):
        # type: () -> ParserContext
        """The current parse position"""
        return ParserContext(self.path, self.line)

    @property
    def sections(self):
        # type: () -> List[Section]
        return list(self._sections)

    @property
    def current_section(self):
        # type: () -> Section
        section = self._sections.tail
        assert section is not None
        return section

    def append_section(self, section):
        # type: (Section) -> None
        self._sections.append(section)

    def __iter__(self):
        # type: () -> Iterator[Section]
        return iter(self._sections)

    def __len__(self):
        # type: () -> int
        return len(self._sections)

    def _syntax_error(self, message):
        # type: (str) -> ControlSyntaxError
        context = self.context
        self.handler.critical(context, message)
        self.status = Status.SYNTAX_ERROR
        return ControlSyntaxError(message, context)

    def _check_status(self):
        # type: () -> None
        if self.status is not Status.OK:
            raise ParameterError("Cannot continue reading after a fatal error")

    def consume_line(self, raw_line):
        # type: (Union[str, bytes]) -> None
        """Parse a single line into the document

        :raises ControlSyntaxError: if the line is malformed.  The document
          keeps everything parsed before the line, but will not accept more
          input.
        """
        if raw_line is None:
            raise ParameterError("A line is required")
        self._check_status()
        self.line += 1

        if isinstance(raw_line, bytes):
            try:
                raw_line = raw_line.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise self._syntax_error("Line is not valid {encoding}: {reason}".format(
                    encoding=self.encoding, reason=e.reason)) from e

        if raw_line.startswith('#'):
            return

        line = chomp(raw_line)

        if not line:
            self._parse_blank()
        elif line[0] in ' \t':
            self._parse_continuation(line)
        else:
            self._parse_field(line)

    def _parse_blank(self):
        # type: () -> None
        if not self.current_section:
            self.handler.warn(self.context, "Multiple blank lines will be"
                              " transformed into a single blank line")
        else:
            self.append_section(Section())

    def _parse_continuation(self, line):
        # type: (str) -> None
        field = self.current_section.last_field
        if field is None:
            raise self._syntax_error("Attempted to continue previous statement,"
                                     " however, none have been opened yet.")

        if line[1:2] == '.':
            if len(line) != 2:
                raise self._syntax_error("Lines beginning with '.' are reserved"
                                         " for future use (Sec. 5.6.13)")
            value_line = ValueLine(None, context=self.context)
        elif line[1:2] in (' ', '\t'):
            value_line = ValueLine(line[2:], ValueLineType.FIXED, self.context)
        else:
            value_line = ValueLine(line[1:], ValueLineType.MERGE, self.context)

        field.append(value_line)

    def _parse_field(self, line):
        # type: (str) -> None
        name, sep, text = line.partition(':')
        if not sep:
            raise self._syntax_error("Expected pseudoheader/data pair (Sec. 5.1);"
                                     " if continuing a previous line, add a space")
        if not valid_field_name(name):
            self.handler.warn(self.context, "Invalid field name {name!r} (Sec. 5.1)"
                              .format(name=name))
        text = chug(text)

        if text:
            value_line = ValueLine(text, ValueLineType.FIXED, self.context)
        else:
            value_line = ValueLine(None, context=self.context)

        section = self.current_section
        field = section.find(name)
        if field is not None:
            self.handler.warn(self.context, "Duplicate field names are not permitted"
                              " (Sec. 5.1), contents will be merged together")
            field.append(value_line)
        else:
            section.append(Field(name, value_line))

    def read_lines(self, lines):
        # type: (Iterable[Union[str, bytes]]) -> None
        """Parse each line in order, stopping at the first fatal error"""
        for line in lines:
            self.consume_line(line)

    def read_file(self, path):
        # type: (str) -> None
        """Open a file and parse it into this document

        :raises ControlFileError: if the file cannot be opened or read.
        :raises ControlSyntaxError: on the first malformed line.
        """
        if path is None:
            raise ParameterError("A path is required")
        if self.path is not None or self.line:
            raise ParameterError("A document can only read a single file")
        self.path = str(path)
        try:
            # Decoded line by line so a bad byte is reported on its own line
            with open(path, 'rb') as fd:
                logger.debug("Reading %s", self.path)
                self.read_lines(fd)
        except DebctrlError:
            raise
        except OSError as e:
            message = "Can't open file '{path}': {error}".format(path=self.path,
                                                                 error=e.strerror)
            self.handler.critical(None, message)
            self.status = Status.FILE_ERROR
            raise ControlFileError(message, filename=self.path,
                                   strerror=e.strerror) from e

    def convert_to_text(self):
        # type: () -> str
        """Render the document; non-empty sections separated by a blank line"""
        return '\n'.join(s.convert_to_text() for s in self._sections if s)

    def dump(self, fd):
        # type: (IO[bytes]) -> None
        fd.write(self.convert_to_text().encode(self.encoding))


def parse_control_lines(lines,  # type: Iterable[Union[str, bytes]]
                        *,
                        handler=None,  # type: Optional[ErrorHandler]
                        path=None,  # type: Optional[str]
                        encoding='utf-8',  # type: str
                        ):
    # type: (...) -> ControlDocument
    """Parse lines (an open file will do) into a new ControlDocument

    :param path: Only used in diagnostics.
    """
    document = ControlDocument(handler=handler, encoding=encoding)
    document.path = path
    document.read_lines(lines)
    return document


def parse_control_file(path,  # type: str
                       *,
                       handler=None,  # type: Optional[ErrorHandler]
                       encoding='utf-8',  # type: str
                       ):
    # type: (...) -> ControlDocument
    document = ControlDocument(handler=handler, encoding=encoding)
    document.read_file(path)
    return document
