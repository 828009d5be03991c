""" Reading and validating Debian control files

The main entry points are :func:`parse_control_file` (text to sections, fields
and value lines), :class:`ControlParser` (fields to a source package record)
and :class:`Version` (package version numbers).
"""

# pylint: disable=useless-import-alias
from debctrl.control import (
    ControlBinary as ControlBinary,
    ControlParser as ControlParser,
    ControlSource as ControlSource,
)
from debctrl.errors import (
    ControlFileError as ControlFileError,
    ControlSyntaxError as ControlSyntaxError,
    DebctrlError as DebctrlError,
    ErrorHandler as ErrorHandler,
    ParameterError as ParameterError,
    Status as Status,
)
from debctrl.parser import (
    ControlDocument as ControlDocument,
    Field as Field,
    ParserContext as ParserContext,
    Section as Section,
    ValueLine as ValueLine,
    ValueLineType as ValueLineType,
    parse_control_file as parse_control_file,
    parse_control_lines as parse_control_lines,
)
from debctrl.validate import (
    check_package_name as check_package_name,
    valid_field_name as valid_field_name,
    valid_package_name as valid_package_name,
)
from debctrl.version import (
    Version as Version,
    version_compare as version_compare,
)

__all__ = [
    'ControlBinary',
    'ControlDocument',
    'ControlFileError',
    'ControlParser',
    'ControlSource',
    'ControlSyntaxError',
    'DebctrlError',
    'ErrorHandler',
    'Field',
    'ParameterError',
    'ParserContext',
    'Section',
    'Status',
    'ValueLine',
    'ValueLineType',
    'Version',
    'check_package_name',
    'parse_control_file',
    'parse_control_lines',
    'valid_field_name',
    'valid_package_name',
    'version_compare',
]
