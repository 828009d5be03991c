from typing import List, Optional, Tuple

import pytest

from debctrl.errors import ErrorHandler
from debctrl.parser import ParserContext


class RecordingErrorHandler(ErrorHandler):
    """ErrorHandler that remembers every diagnostic instead of logging it"""

    __slots__ = ('warnings', 'criticals')

    def __init__(self):
        # type: () -> None
        self.warnings = []  # type: List[Tuple[Optional[ParserContext], str]]
        self.criticals = []  # type: List[Tuple[Optional[ParserContext], str]]
        super().__init__(warn=lambda ctx, msg: self.warnings.append((ctx, msg)),
                         critical=lambda ctx, msg: self.criticals.append((ctx, msg)))


@pytest.fixture()
def recording_handler():
    # type: () -> RecordingErrorHandler
    return RecordingErrorHandler()

