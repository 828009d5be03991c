""" Status codes, exceptions and the warning/critical error handler

Problems found while reading a control file come in two flavours:

- warnings, which are reported and then ignored (e.g. duplicated fields, which
  are merged together).
- critical errors, which are reported and then abort the current operation by
  raising one of the :class:`DebctrlError` subclasses below.

Both are reported through an :class:`ErrorHandler`.  By default warnings and
critical errors are logged on the ``debctrl.errors`` logger, but callers can
replace either sink independently::

    >>> from debctrl.errors import ErrorHandler
    >>> seen = []
    >>> handler = ErrorHandler()
    >>> handler.set_warn(lambda ctx, msg: seen.append(msg))
    >>> handler.warn(None, "something odd")
    >>> seen
    ['something odd']
    >>> handler.set_warn(None)   # back to logging
"""

import enum
import logging

from typing import Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from debctrl.parser import ParserContext

    HandlerCallback = Callable[[Optional[ParserContext], str], None]


logger = logging.getLogger(__name__)


class Status(enum.Enum):
    """Result codes of the operations in this package"""

    OK = 0
    INVALID_PARAMETER = 1
    OUT_OF_MEMORY = 2
    FILE_ERROR = 3
    SYNTAX_ERROR = 4

    # Package name validation results (Policy 5.6.1)
    PACKAGE_BAD_PREFIX = 5
    PACKAGE_TOO_SHORT = 6
    PACKAGE_INVALID_CHAR = 7


class DebctrlError(Exception):
    """Base class of all errors raised by debctrl"""

    status = Status.INVALID_PARAMETER

    def __init__(self, message, context=None):
        # type: (str, Optional[ParserContext]) -> None
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self):
        # type: () -> str
        return _format_message(self.context, self.message)


class ParameterError(DebctrlError, ValueError):
    """An argument was missing or malformed (e.g. an invalid version string)"""

    status = Status.INVALID_PARAMETER


class ControlFileError(DebctrlError, OSError):
    """A file could not be opened or read

    ``strerror`` holds the operating system's description of the problem and
    ``filename`` the path involved.
    """

    status = Status.FILE_ERROR

    def __init__(self, message, filename=None, strerror=None):
        # type: (str, Optional[str], Optional[str]) -> None
        super().__init__(message)
        self.filename = filename
        self.strerror = strerror


class ControlSyntaxError(DebctrlError):
    """The input is not a well-formed control file

    The ``context`` attribute points at the offending line.
    """

    status = Status.SYNTAX_ERROR
    is_user_error = True


def _format_message(context, message):
    # type: (Optional[ParserContext], str) -> str
    if context is None:
        return message
    return "{message} at {context}".format(message=message, context=context)


def _default_warn(context, message):
    # type: (Optional[ParserContext], str) -> None
    logger.warning(_format_message(context, message))


def _default_critical(context, message):
    # type: (Optional[ParserContext], str) -> None
    logger.error(_format_message(context, message))


class ErrorHandler:
    """Pair of sinks for warnings and critical errors

    The context passed to the sinks is the :class:`ParserContext` of the line
    being processed, or None when the problem is not tied to a line (such as a
    file that cannot be opened).
    """

    __slots__ = ('_warn', '_critical')

    def __init__(self, warn=None, critical=None):
        # type: (Optional[HandlerCallback], Optional[HandlerCallback]) -> None
        self._warn = _default_warn  # type: HandlerCallback
        self._critical = _default_critical  # type: HandlerCallback
        self.set_warn(warn)
        self.set_critical(critical)

    def set_warn(self, warn):
        # type: (Optional[HandlerCallback]) -> None
        """Replace the warning sink; None restores the default (logging)"""
        self._warn = warn if warn is not None else _default_warn

    def set_critical(self, critical):
        # type: (Optional[HandlerCallback]) -> None
        """Replace the critical error sink; None restores the default (logging)"""
        self._critical = critical if critical is not None else _default_critical

    def warn(self, context, message):
        # type: (Optional[ParserContext], str) -> None
        self._warn(context, message)

    def critical(self, context, message):
        # type: (Optional[ParserContext], str) -> None
        self._critical(context, message)
