"""Tests for line validation and rewriting."""

import zlib

import pytest

from crcsync.common import LineTooLongError
from crcsync.reconstructor import (
    LineAccumulator,
    LineReconstructor,
    ReconstructionMode,
    parse_hex_literal,
    render_invocation,
)
from crcsync.tokenizer import MacroTokenizer

ABC_CRC = 0x352441C2


def run(data, mode, **kwargs):
    """Feed ``data`` through tokenizer and reconstructor; return (reconstructor, output)."""
    output = []
    reconstructor = LineReconstructor(
        mode, write=output.append if mode is ReconstructionMode.REWRITE else None, **kwargs
    )
    tokenizer = MacroTokenizer(**{k: v for k, v in kwargs.items() if k in ("macro_name", "max_line_length")})
    for event in tokenizer.feed(data):
        reconstructor.handle(event)
    for event in tokenizer.finish():
        reconstructor.handle(event)
    return reconstructor, b"".join(output)


class TestHelpers:
    """Tests for rendering and hex parsing."""

    def test_render_invocation(self):
        """Test the canonical spelling."""
        assert render_invocation("CRC", b'"abc"', ABC_CRC) == b'CRC("abc", 0x352441C2)'

    def test_render_pads_checksum(self):
        """Test zero padding of small checksums."""
        assert render_invocation("H", b'""', 0xAB) == b'H("", 0x000000AB)'

    def test_parse_hex_literal(self):
        """Test parsing of present, absent and mixed-case hex literals."""
        assert parse_hex_literal(b"0x352441c2") == ABC_CRC
        assert parse_hex_literal(b"0x352441C2") == ABC_CRC
        assert parse_hex_literal(None) is None


class TestLineAccumulator:
    """Tests for the bounded line buffer."""

    def test_flush_appends_newline_and_resets(self):
        """Test that flushing returns the line and empties the buffer."""
        line = LineAccumulator(max_length=10)
        line.append(b"abc", 1)

        assert line.flush() == b"abc\n"
        assert len(line) == 0

    def test_overflow_raises(self):
        """Test that exceeding the bound raises LineTooLongError."""
        line = LineAccumulator(max_length=4)
        line.append(b"abcd", 1)

        with pytest.raises(LineTooLongError):
            line.append(b"e", 1)


class TestValidateMode:
    """Counting discrepancies."""

    def test_correct_checksum(self):
        """Test that a matching checksum is not a discrepancy."""
        reconstructor, output = run(b'CRC("abc", 0x352441C2)\n', ReconstructionMode.VALIDATE)

        assert reconstructor.invocations == 1
        assert reconstructor.discrepancies == 0
        assert output == b""

    def test_lower_case_hex_matches(self):
        """Test that hex digits compare numerically."""
        reconstructor, _ = run(b'CRC("abc", 0x352441c2)\n', ReconstructionMode.VALIDATE)
        assert reconstructor.discrepancies == 0

    def test_missing_checksum(self):
        """Test that an absent checksum is a discrepancy."""
        reconstructor, _ = run(b'CRC("abc")\n', ReconstructionMode.VALIDATE)
        assert reconstructor.discrepancies == 1

    def test_wrong_checksum(self):
        """Test that a zero checksum for a nonzero CRC is a discrepancy."""
        reconstructor, _ = run(b'CRC("abc", 0x00000000)\n', ReconstructionMode.VALIDATE)
        assert reconstructor.discrepancies == 1

    def test_checksum_of_decoded_string(self):
        """Test that escapes are decoded before checksumming."""
        crc = zlib.crc32(b"AB\n") & 0xFFFFFFFF
        data = b'CRC("\\101\\x42\\n", 0x%08X)\n' % crc

        reconstructor, _ = run(data, ReconstructionMode.VALIDATE)
        assert reconstructor.discrepancies == 0

    def test_counts_each_invocation(self):
        """Test N invocations with K mismatches yield K discrepancies."""
        data = (
            b'CRC("abc", 0x352441C2) CRC("abc", 0x1)\n'
            b'CRC("abc")\n'
            b'none here\n'
            b'CRC("abc", 0x352441C2)\n'
        )
        reconstructor, _ = run(data, ReconstructionMode.VALIDATE)

        assert reconstructor.invocations == 4
        assert reconstructor.discrepancies == 2
        assert reconstructor.lines == 4

    def test_logs_discrepancy(self, caplog):
        """Test that discrepancies are logged at DEBUG with the expected value."""
        with caplog.at_level("DEBUG", logger="crcsync.reconstructor"):
            run(b'CRC("abc")\n', ReconstructionMode.VALIDATE)

        assert any("0x352441C2" in record.getMessage() for record in caplog.records)


class TestRewriteMode:
    """Producing corrected lines."""

    def test_inserts_missing_checksum(self):
        """Test that an absent checksum is added in canonical form."""
        _, output = run(b'int h = CRC("abc");\n', ReconstructionMode.REWRITE)
        assert output == b'int h = CRC("abc", 0x352441C2);\n'

    def test_replaces_wrong_checksum_only(self):
        """Test that only the hex argument changes, the literal is kept."""
        _, output = run(b'x(CRC("abc", 0x00000000));\n', ReconstructionMode.REWRITE)
        assert output == b'x(CRC("abc", 0x352441C2));\n'

    def test_canonicalizes_spacing(self):
        """Test that spacing inside the invocation is normalized."""
        _, output = run(b'CRC(  "abc"  ,0x352441c2 )\n', ReconstructionMode.REWRITE)
        assert output == b'CRC("abc", 0x352441C2)\n'

    def test_keeps_original_escapes(self):
        """Test that the literal is written with its original spelling."""
        crc = zlib.crc32(b"A\t") & 0xFFFFFFFF
        _, output = run(b'CRC("\\101\\t")\n', ReconstructionMode.REWRITE)
        assert output == b'CRC("\\101\\t", 0x%08X)\n' % crc

    def test_keeps_splice_inside_literal(self):
        """Test that a continued literal is rewritten across both lines."""
        crc = zlib.crc32(b"abcd") & 0xFFFFFFFF
        _, output = run(b'CRC("ab\\\ncd");\n', ReconstructionMode.REWRITE)
        assert output == b'CRC("ab\\\ncd", 0x%08X);\n' % crc

    def test_text_passes_through(self):
        """Test that lines without invocations are unchanged, CRLF included."""
        data = b"alpha\r\n\nCRCX beta\n"
        _, output = run(data, ReconstructionMode.REWRITE)
        assert output == data

    def test_final_line_gets_newline(self):
        """Test that a last line without newline is terminated."""
        _, output = run(b'end CRC("abc")', ReconstructionMode.REWRITE)
        assert output == b'end CRC("abc", 0x352441C2)\n'

    def test_custom_macro_name(self):
        """Test rewriting with a configured macro name."""
        _, output = run(b'HASH("abc")\n', ReconstructionMode.REWRITE, macro_name="HASH")
        assert output == b'HASH("abc", 0x352441C2)\n'

    def test_rewritten_line_too_long(self):
        """Test that canonicalization beyond the limit raises."""
        data = b'CRC("' + b"a" * 20 + b'")\n'
        with pytest.raises(LineTooLongError):
            run(data, ReconstructionMode.REWRITE, max_line_length=30)

    def test_rewrite_requires_writer(self):
        """Test that rewrite mode without a write callable is rejected."""
        with pytest.raises(ValueError):
            LineReconstructor(ReconstructionMode.REWRITE)
