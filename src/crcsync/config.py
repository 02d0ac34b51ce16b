"""Configuration models for crcsync."""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from .common import LoggingConfig

DEFAULT_MACRO_NAME = "CRC"
DEFAULT_MAX_LINE_LENGTH = 256 * 1024 - 2
MIN_LINE_LENGTH = 16


class ScannerConfig(BaseModel):
    """Macro scanning and rewrite configuration."""

    model_config = ConfigDict(extra='forbid')

    macro_name: str = Field(
        default=DEFAULT_MACRO_NAME,
        description="Name of the two-argument macro whose checksum argument is maintained"
    )
    max_line_length: int = Field(
        default=DEFAULT_MAX_LINE_LENGTH,
        ge=MIN_LINE_LENGTH,
        description="Longest line (in bytes, without the newline) the scanner accepts"
    )
    write_through: bool = Field(
        default=True,
        description="fsync the rewritten file and its directory around the replace"
    )

    @field_validator('macro_name')
    @classmethod
    def validate_macro_name(cls, v: str) -> str:
        """Macro name must be a plain ASCII identifier."""
        if not v.isascii() or not v.isidentifier():
            raise ValueError(f"macro_name must be an ASCII identifier, got {v!r}")
        return v

    @property
    def read_buffer_size(self) -> int:
        """Capacity of the scan buffer: room for a carried line plus a full line."""
        return 2 * self.max_line_length


class CrcSyncConfig(BaseModel):
    """Root configuration for crcsync."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
