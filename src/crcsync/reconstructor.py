"""Per-line validation and rewriting of macro invocations."""

import enum
import logging
from typing import Callable, Optional

from .common import LineTooLongError, compute_crc32, format_crc32
from .config import DEFAULT_MACRO_NAME, DEFAULT_MAX_LINE_LENGTH
from .escapes import decode_escapes
from .tokenizer import LineEnd, MacroMatch, ScanEvent, TextSpan

logger = logging.getLogger(__name__)


class ReconstructionMode(str, enum.Enum):
    """What the reconstructor does with each invocation."""
    VALIDATE = "validate"
    REWRITE = "rewrite"


def literal_checksum(match: MacroMatch) -> int:
    """CRC-32 of the decoded string literal of an invocation."""
    return compute_crc32(decode_escapes(match.contents))


def parse_hex_literal(raw: Optional[bytes]) -> Optional[int]:
    """Parse a ``0x...`` token; None when the argument is absent, 0 when unparseable."""
    if raw is None:
        return None
    try:
        return int(raw, 16)
    except ValueError:
        return 0


def render_invocation(macro_name: str, literal: bytes, checksum: int) -> bytes:
    """Canonical spelling: ``NAME("literal", 0xXXXXXXXX)``."""
    return b"%s(%s, %s)" % (
        macro_name.encode("ascii"),
        literal,
        format_crc32(checksum).encode("ascii"),
    )


class LineAccumulator:
    """Bounded buffer for the output text of one logical line."""

    def __init__(self, max_length: int = DEFAULT_MAX_LINE_LENGTH, source: str = "<input>") -> None:
        self.max_length = max_length
        self.source = source
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def append(self, data: bytes, line_number: int) -> None:
        if len(self._buffer) + len(data) > self.max_length:
            raise LineTooLongError(
                f"{self.source}:{line_number}: rewritten line exceeds {self.max_length} bytes",
                file=self.source,
                line=line_number,
                max_line_length=self.max_length,
            )
        self._buffer += data

    def flush(self) -> bytes:
        """Return the line followed by a newline and reset."""
        line = bytes(self._buffer) + b"\n"
        self._buffer.clear()
        return line


class LineReconstructor:
    """Consumes scan events for one file pass.

    In validate mode it counts discrepancies: invocations whose checksum
    argument is missing or differs from the CRC-32 of the decoded literal.
    In rewrite mode it re-emits every line through ``write``, with each
    invocation replaced by its canonical spelling.
    """

    def __init__(
        self,
        mode: ReconstructionMode,
        macro_name: str = DEFAULT_MACRO_NAME,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        write: Optional[Callable[[bytes], object]] = None,
        source: str = "<input>",
    ) -> None:
        if mode is ReconstructionMode.REWRITE and write is None:
            raise ValueError("rewrite mode needs a write callable")
        self.mode = mode
        self.macro_name = macro_name
        self.source = source
        self._write = write
        self._line = LineAccumulator(max_line_length, source)
        self._line_number = 1
        self.invocations = 0
        self.discrepancies = 0
        self.lines = 0

    def handle(self, event: ScanEvent) -> None:
        if isinstance(event, TextSpan):
            if self.mode is ReconstructionMode.REWRITE:
                self._line.append(event.data, self._line_number)
        elif isinstance(event, MacroMatch):
            self._line_number = event.line_number
            self._handle_match(event)
        elif isinstance(event, LineEnd):
            self.lines += 1
            if self.mode is ReconstructionMode.REWRITE:
                self._write(self._line.flush())
            self._line_number = event.line_number + 1
        else:
            raise TypeError(f"Unknown scan event: {event!r}")

    def _handle_match(self, match: MacroMatch) -> None:
        self.invocations += 1
        checksum = literal_checksum(match)

        if self.mode is ReconstructionMode.REWRITE:
            self._line.append(render_invocation(self.macro_name, match.literal, checksum), match.line_number)
            return

        found = parse_hex_literal(match.hex_literal)
        if found != checksum:
            self.discrepancies += 1
            logger.debug(
                f"Checksum discrepancy: {{'line': {match.line_number}, 'literal': {match.literal!r}, "
                f"'found': {match.hex_literal!r}, 'expected': {format_crc32(checksum)!r}}}"
            )
