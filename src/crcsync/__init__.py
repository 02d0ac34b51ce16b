"""Keep CRC-32 constants of ``CRC("string", 0xHEX)`` macro invocations in sync with their strings."""

from .config import CrcSyncConfig, ScannerConfig
from .escapes import decode_escapes
from .tokenizer import MacroTokenizer, MacroMatch, TextSpan, LineEnd
from .reconstructor import LineReconstructor, LineAccumulator, ReconstructionMode, render_invocation
from .reader import ChunkedReader, ScanBuffer
from .synchronizer import MacroSynchronizer, SyncResult, SyncPhase, PassResult

__version__ = "0.1.0"

__all__ = [
    'CrcSyncConfig',
    'ScannerConfig',
    'decode_escapes',
    'MacroTokenizer',
    'MacroMatch',
    'TextSpan',
    'LineEnd',
    'LineReconstructor',
    'LineAccumulator',
    'ReconstructionMode',
    'render_invocation',
    'ChunkedReader',
    'ScanBuffer',
    'MacroSynchronizer',
    'SyncResult',
    'SyncPhase',
    'PassResult',
]
