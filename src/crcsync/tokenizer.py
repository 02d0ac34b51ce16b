"""Streaming scanner for ``NAME("literal"[, 0xHEX])`` macro invocations.

The scanner is fed raw bytes in arbitrary pieces and produces a stream of
events: runs of plain text, complete invocations, and line ends. Its state
(including a partially read invocation) lives on the object, so a piece may
end anywhere, even inside a string literal continued with a backslash-newline.

Grammar, case-sensitive::

    invocation := NAME '(' ws* string_lit (ws* ',' ws* hex_lit)? ws* ')'
    ws         := ' ' | '\\t' | '\\r'
    string_lit := '"' ( '\\' any | not('"' | '\\') )* '"'
    hex_lit    := '0' 'x' hexdigit+

Once ``NAME(`` has been seen the scanner is committed: anything that does not
follow the grammar raises :class:`MalformedInvocationError`.
"""

import enum
import re
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .common import LineTooLongError, MalformedInvocationError
from .config import DEFAULT_MACRO_NAME, DEFAULT_MAX_LINE_LENGTH

_WHITESPACE = frozenset(b" \t\r")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_NEWLINE = ord("\n")
_BACKSLASH = ord("\\")
_QUOTE = ord('"')
_STRING_RUN = re.compile(rb'[^"\\\n]+')


@dataclass(frozen=True)
class TextSpan:
    """Bytes outside any invocation, copied through unchanged."""
    data: bytes


@dataclass(frozen=True)
class MacroMatch:
    """One recognized invocation.

    Attributes:
        literal: Raw string literal, surrounding quotes included
        hex_literal: Raw hex argument (``0x...``) or None when absent
        start: Offset of the invocation within its logical line
        end: Offset just past the closing parenthesis
        line_number: Physical line (1-based) where the invocation starts
    """
    literal: bytes
    hex_literal: Optional[bytes]
    start: int
    end: int
    line_number: int

    @property
    def contents(self) -> bytes:
        """String literal without its quotes, escapes still encoded."""
        return self.literal[1:-1]


@dataclass(frozen=True)
class LineEnd:
    """End of a logical line.

    Attributes:
        line_number: Physical line number of the terminating newline
        terminated: False for a final line that has no trailing newline
    """
    line_number: int
    terminated: bool = True


ScanEvent = Union[TextSpan, MacroMatch, LineEnd]


class ScanState(enum.Enum):
    """Position of the scanner within the invocation grammar."""
    TEXT = "text"
    OPEN = "open"                  # after NAME(, expecting ws or '"'
    STRING = "string"              # inside the literal
    STRING_ESCAPE = "string_escape"  # after a backslash inside the literal
    AFTER_STRING = "after_string"  # expecting ws, ',' or ')'
    AFTER_COMMA = "after_comma"    # expecting ws or '0'
    HEX_PREFIX = "hex_prefix"      # after '0', expecting 'x'
    HEX_FIRST = "hex_first"        # after '0x', expecting a hex digit
    HEX_DIGITS = "hex_digits"      # expecting hex digit, ws or ')'
    AFTER_HEX = "after_hex"        # expecting ws or ')'


_EXPECTED = {
    ScanState.OPEN: "'\"' to open the string literal",
    ScanState.AFTER_STRING: "',' or ')' after the string literal",
    ScanState.AFTER_COMMA: "hex literal starting with '0x'",
    ScanState.HEX_PREFIX: "'x' after '0'",
    ScanState.HEX_FIRST: "hex digit after '0x'",
    ScanState.HEX_DIGITS: "hex digit or ')'",
    ScanState.AFTER_HEX: "')' after the hex literal",
}


class MacroTokenizer:
    """Incremental scanner over the bytes of one file pass.

    Call :meth:`feed` with successive pieces of input and :meth:`finish` once
    at end of input. Both return iterators of :data:`ScanEvent`.
    """

    def __init__(
        self,
        macro_name: str = DEFAULT_MACRO_NAME,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        source: str = "<input>",
    ) -> None:
        self.macro_name = macro_name.encode("ascii")
        self.max_line_length = max_line_length
        self.source = source
        self._opener = self.macro_name + b"("
        self._opener_pattern = re.compile(re.escape(self._opener) + b"|\n")

        self.state = ScanState.TEXT
        self.line_number = 1
        self._line_length = 0
        # Tail of the last piece that might be the start of an opener
        self._held = b""
        # In-progress invocation
        self._token = bytearray()
        self._token_start = 0
        self._token_line = 0
        self._literal_start = 0
        self._literal_end = 0
        self._hex_start: Optional[int] = None
        self._hex_end: Optional[int] = None

    def feed(self, data: bytes) -> Iterator[ScanEvent]:
        """Scan the next piece of input."""
        buf = self._held + data if self._held else data
        self._held = b""
        pos = 0
        end = len(buf)

        while pos < end:
            if self.state is ScanState.TEXT:
                match = self._opener_pattern.search(buf, pos)
                if match is None:
                    keep = self._partial_opener_length(buf, pos)
                    if end - keep > pos:
                        yield self._text(buf[pos:end - keep])
                    self._held = buf[end - keep:]
                    return
                if match.start() > pos:
                    yield self._text(buf[pos:match.start()])
                pos = match.end()
                if match.group() == b"\n":
                    yield self._end_line()
                else:
                    self._begin_invocation()
            elif self.state is ScanState.STRING:
                run = _STRING_RUN.match(buf, pos)
                if run is not None:
                    self._extend(buf[pos:run.end()])
                    pos = run.end()
                else:
                    self._step(buf[pos])
                    pos += 1
            else:
                result = self._step(buf[pos])
                pos += 1
                if result is not None:
                    yield result

    def finish(self) -> Iterator[ScanEvent]:
        """Signal end of input and flush whatever is pending.

        Raises:
            MalformedInvocationError: If input ends inside an invocation
        """
        if self.state is not ScanState.TEXT:
            raise self._malformed("end of input inside invocation")
        if self._held:
            yield self._text(self._held)
            self._held = b""
        if self._line_length:
            yield LineEnd(line_number=self.line_number, terminated=False)
            self._line_length = 0

    def _partial_opener_length(self, buf: bytes, pos: int) -> int:
        """Length of the longest tail of ``buf[pos:]`` that is a proper opener prefix."""
        longest = min(len(self._opener) - 1, len(buf) - pos)
        for size in range(longest, 0, -1):
            if buf.endswith(self._opener[:size]):
                return size
        return 0

    def _text(self, data: bytes) -> TextSpan:
        self._grow_line(len(data))
        return TextSpan(data)

    def _end_line(self) -> LineEnd:
        event = LineEnd(line_number=self.line_number)
        self.line_number += 1
        self._line_length = 0
        return event

    def _grow_line(self, size: int) -> None:
        self._line_length += size
        if self._line_length > self.max_line_length:
            raise LineTooLongError(
                f"{self.source}:{self.line_number}: line exceeds {self.max_line_length} bytes",
                file=self.source,
                line=self.line_number,
                max_line_length=self.max_line_length,
            )

    def _begin_invocation(self) -> None:
        self._token = bytearray()
        self._token_start = self._line_length
        self._token_line = self.line_number
        self._hex_start = None
        self._hex_end = None
        self.state = ScanState.OPEN
        self._extend(self._opener)

    def _extend(self, data: bytes) -> None:
        self._grow_line(len(data))
        self._token += data

    def _malformed(self, problem: str) -> MalformedInvocationError:
        return MalformedInvocationError(
            f"{self.source}:{self.line_number}: malformed {self.macro_name.decode()} invocation: {problem}",
            file=self.source,
            line=self.line_number,
            invocation_line=self._token_line,
            partial=bytes(self._token),
        )

    def _unexpected(self, byte: int) -> MalformedInvocationError:
        found = "newline" if byte == _NEWLINE else repr(chr(byte))
        return self._malformed(f"expected {_EXPECTED[self.state]}, found {found}")

    def _step(self, byte: int) -> Optional[MacroMatch]:
        """Advance the invocation grammar by one byte."""
        state = self.state

        if state is ScanState.STRING:
            if byte == _QUOTE:
                self._extend(b'"')
                self._literal_end = len(self._token)
                self.state = ScanState.AFTER_STRING
            elif byte == _BACKSLASH:
                self._extend(b"\\")
                self.state = ScanState.STRING_ESCAPE
            else:
                raise self._malformed("newline inside string literal")
            return None

        if state is ScanState.STRING_ESCAPE:
            self._extend(bytes([byte]))
            if byte == _NEWLINE:
                self.line_number += 1
            self.state = ScanState.STRING
            return None

        if byte in _WHITESPACE and state in (
            ScanState.OPEN, ScanState.AFTER_STRING, ScanState.AFTER_COMMA, ScanState.AFTER_HEX
        ):
            self._extend(bytes([byte]))
            return None

        if state is ScanState.OPEN and byte == _QUOTE:
            self._literal_start = len(self._token)
            self._extend(b'"')
            self.state = ScanState.STRING
        elif state is ScanState.AFTER_STRING and byte == ord(","):
            self._extend(b",")
            self.state = ScanState.AFTER_COMMA
        elif state is ScanState.AFTER_COMMA and byte == ord("0"):
            self._hex_start = len(self._token)
            self._extend(b"0")
            self.state = ScanState.HEX_PREFIX
        elif state is ScanState.HEX_PREFIX and byte == ord("x"):
            self._extend(b"x")
            self.state = ScanState.HEX_FIRST
        elif state in (ScanState.HEX_FIRST, ScanState.HEX_DIGITS) and byte in _HEX_DIGITS:
            self._extend(bytes([byte]))
            self.state = ScanState.HEX_DIGITS
        elif state is ScanState.HEX_DIGITS and byte in _WHITESPACE:
            self._hex_end = len(self._token)
            self._extend(bytes([byte]))
            self.state = ScanState.AFTER_HEX
        elif byte == ord(")") and state in (ScanState.AFTER_STRING, ScanState.HEX_DIGITS, ScanState.AFTER_HEX):
            if state is ScanState.HEX_DIGITS:
                self._hex_end = len(self._token)
            self._extend(b")")
            return self._complete()
        else:
            raise self._unexpected(byte)
        return None

    def _complete(self) -> MacroMatch:
        token = bytes(self._token)
        hex_literal = None
        if self._hex_start is not None:
            hex_literal = token[self._hex_start:self._hex_end]
        match = MacroMatch(
            literal=token[self._literal_start:self._literal_end],
            hex_literal=hex_literal,
            start=self._token_start,
            end=self._token_start + len(token),
            line_number=self._token_line,
        )
        self._token = bytearray()
        self.state = ScanState.TEXT
        return match
