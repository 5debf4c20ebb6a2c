"""Protocol layer: CI-V framing and BCD fields, ASCII commands and vendor dialects."""

from .framing import Frame, encode_frame, parse_frame
from .bcd import encode_decimal, decode_decimal
from .commands import Command
from .dialects import Dialect, DIALECTS
