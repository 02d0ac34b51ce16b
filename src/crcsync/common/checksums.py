"""Checksum utilities for string-hash constants."""

import zlib

CRC32_MASK = 0xFFFFFFFF


def compute_crc32(data: bytes) -> int:
    """
    Compute the standard CRC-32 of a byte sequence.

    Args:
        data: Bytes to checksum

    Returns:
        CRC32 checksum as unsigned 32-bit integer
    """
    # Return as unsigned 32-bit integer
    return zlib.crc32(data) & CRC32_MASK


def format_crc32(checksum: int) -> str:
    """
    Format a checksum the way it appears in a macro invocation.

    Args:
        checksum: Unsigned 32-bit checksum

    Returns:
        8-character upper-case hex string with 0x prefix (e.g., "0xA1B2C3D4")
    """
    return f"0x{checksum & CRC32_MASK:08X}"
