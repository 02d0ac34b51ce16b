"""Decoding of C-style escape sequences in string literal bytes."""

import re

_ESCAPE = re.compile(rb'\\(?:([0-7]{3})|x([0-9A-Fa-f]{2})|(.))', re.DOTALL)

_SIMPLE_ESCAPES = {
    ord('n'): b'\n',
    ord('r'): b'\r',
    ord('f'): b'\f',
    ord('t'): b'\t',
    ord('a'): b'\a',
    ord('v'): b'\v',
    ord('\n'): b'',  # line splice
}


def _replace(match: 're.Match[bytes]') -> bytes:
    octal, hexa, other = match.groups()
    if octal is not None:
        return bytes([int(octal, 8) & 0xFF])
    if hexa is not None:
        return bytes([int(hexa, 16)])
    code = other[0]
    return _SIMPLE_ESCAPES.get(code, other)


def decode_escapes(raw: bytes) -> bytes:
    """Return the bytes denoted by the contents of a string literal.

    At each backslash the first matching rule applies: three octal digits,
    ``x`` plus exactly two hex digits, one of ``n r f t a v``, a newline
    (removed), or any other byte (kept as is). Unknown escapes never raise.
    A backslash at the very end is copied verbatim. Quote characters are not
    special, so callers may pass the literal with or without its quotes.

    Examples:
        >>> decode_escapes(rb'\\101\\102')
        b'AB'
        >>> decode_escapes(b'a\\\\\\nb')
        b'ab'
    """
    return _ESCAPE.sub(_replace, raw)
