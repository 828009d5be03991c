import logging
import weakref
from weakref import ReferenceType

from typing import (
    Optional, Callable, TYPE_CHECKING, Generic, Iterator, TypeVar,
)

if TYPE_CHECKING:
    from debctrl.parser import ControlDocument


T = TypeVar('T')

_TRAILING_WHITESPACE = ' \t\r\n'
_LEADING_WHITESPACE = ' \t'


def chomp(text):
    # type: (str) -> str
    """Strip trailing space, tab, carriage return and line feed characters"""
    return text.rstrip(_TRAILING_WHITESPACE)


def chug(text):
    # type: (str) -> str
    """Strip leading space and tab characters"""
    return text.lstrip(_LEADING_WHITESPACE)


def strndup(text, n):
    # type: (str, int) -> str
    return text[:n]


def resolve_ref(ref):
    # type: (Optional[ReferenceType[T]]) -> Optional[T]
    return ref() if ref is not None else None


def print_document(document,  # type: ControlDocument
                   *,
                   output_function=None,  # type: Optional[Callable[[str], None]]
                   ):
    # type: (...) -> None
    """Debugging aid, which dumps the section/field/value line tree of a document

    :param document: The ControlDocument to dump.
    :param output_function: Callable that receives a single str argument and is responsible
      for "displaying" that line. The callable may be invoked multiple times (one per line
      of output).  Defaults to logging.info if omitted.
    """
    if output_function is None:
        output_function = logging.info
    for section_no, section in enumerate(document, start=1):
        output_function('Section {no} ({count} fields)'.format(no=section_no,
                                                              count=len(section)))
        for field in section:
            output_function('  Field {name!r}'.format(name=field.name))
            for value_line in field:
                output_function('    {type:<5} line {line}: {text!r}'.format(
                    type=value_line.line_type.name,
                    line=value_line.context.line if value_line.context else '?',
                    text=value_line.text,
                ))


class LinkedListNode(Generic[T]):
    """One link of a :class:`LinkedList`

    The list reaches its nodes through ``next_node``; ``previous_node`` is
    stored as a weak reference so a chain of nodes never refers back to
    itself.
    """

    __slots__ = ('_previous_node', 'value', 'next_node', '__weakref__')

    def __init__(self, value):
        # type: (T) -> None
        self._previous_node = None  # type: Optional[ReferenceType[LinkedListNode[T]]]
        self.next_node = None  # type: Optional[LinkedListNode[T]]
        self.value = value

    @property
    def previous_node(self):
        # type: () -> Optional[LinkedListNode[T]]
        return resolve_ref(self._previous_node)

    @previous_node.setter
    def previous_node(self, node):
        # type: (Optional[LinkedListNode[T]]) -> None
        self._previous_node = weakref.ref(node) if node is not None else None

    def unlink(self):
        # type: () -> None
        """Join the neighbours of this node and detach it from both"""
        _link(self.previous_node, self.next_node)
        self.previous_node = None
        self.next_node = None


def _link(before, after):
    # type: (Optional[LinkedListNode[T]], Optional[LinkedListNode[T]]) -> None
    if before is not None:
        before.next_node = after
    if after is not None:
        after.previous_node = before


class LinkedList(Generic[T]):
    """Ordered container behind fields, sections and documents

    Keeps both ends so that adding at either end is O(1), and hands out the
    node of every added value so that the value can later be dropped in O(1)
    with :meth:`remove_node`.
    """

    __slots__ = ('head_node', 'tail_node', '_size')

    def __init__(self):
        # type: () -> None
        self.head_node = None  # type: Optional[LinkedListNode[T]]
        self.tail_node = None  # type: Optional[LinkedListNode[T]]
        self._size = 0

    def __bool__(self):
        # type: () -> bool
        return self._size > 0

    def __len__(self):
        # type: () -> int
        return self._size

    @property
    def head(self):
        # type: () -> Optional[T]
        return self.head_node.value if self.head_node is not None else None

    @property
    def tail(self):
        # type: () -> Optional[T]
        return self.tail_node.value if self.tail_node is not None else None

    def iter_nodes(self):
        # type: () -> Iterator[LinkedListNode[T]]
        node = self.head_node
        while node is not None:
            # Read ahead, the caller may unlink the node it was given
            next_node = node.next_node
            yield node
            node = next_node

    def __iter__(self):
        # type: () -> Iterator[T]
        return (node.value for node in self.iter_nodes())

    def append(self, value):
        # type: (T) -> LinkedListNode[T]
        node = LinkedListNode(value)
        if self.tail_node is None:
            self.head_node = node
        else:
            _link(self.tail_node, node)
        self.tail_node = node
        self._size += 1
        return node

    def prepend(self, value):
        # type: (T) -> LinkedListNode[T]
        node = LinkedListNode(value)
        if self.head_node is None:
            self.tail_node = node
        else:
            _link(node, self.head_node)
        self.head_node = node
        self._size += 1
        return node

    def remove_node(self, node):
        # type: (LinkedListNode[T]) -> None
        """Drop a node previously returned by :meth:`append` or :meth:`prepend`"""
        if node is self.head_node:
            self.head_node = node.next_node
        if node is self.tail_node:
            self.tail_node = node.previous_node
        node.unlink()
        self._size -= 1

    def clear(self):
        # type: () -> None
        self.head_node = None
        self.tail_node = None
        self._size = 0
