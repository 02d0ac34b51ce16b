"""Two-pass checksum synchronization of one file.

Pass 1 scans the file and counts discrepancies without writing anything.
Only when it finds some does pass 2 re-read the original from the start,
write every line to a temporary file with invocations corrected, and move
that file over the original::

    VALIDATE -> DONE
    VALIDATE -> REWRITE -> REPLACE -> DONE
"""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional

from .common import InputUnavailableError, LogContext, OutputUnavailableError, ScanError
from .config import ScannerConfig
from .fileops import atomic_write, open_input
from .reader import ChunkedReader
from .reconstructor import LineReconstructor, ReconstructionMode
from .tokenizer import MacroTokenizer

logger = logging.getLogger(__name__)


class SyncPhase(str, enum.Enum):
    """Steps of the synchronization workflow."""
    VALIDATE = "validate"
    REWRITE = "rewrite"
    REPLACE = "replace"
    DONE = "done"


@dataclass
class PassResult:
    """Counters collected during one pass over a file."""
    mode: ReconstructionMode
    invocations: int = 0
    discrepancies: int = 0
    lines: int = 0
    chunks: int = 0


@dataclass
class SyncResult:
    """Outcome of synchronizing one file.

    Attributes:
        path: File that was processed
        invocations: Invocations found by pass 1
        discrepancies: Invocations with a missing or wrong checksum
        rewritten: Whether the file was replaced
        phases: Phases entered, in order
    """
    path: Path
    invocations: int
    discrepancies: int
    rewritten: bool
    phases: List[SyncPhase] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return self.discrepancies == 0


class MacroSynchronizer:
    """Keeps the checksum argument of every invocation in a file up to date."""

    def __init__(self, config: Optional[ScannerConfig] = None) -> None:
        self.config = config or ScannerConfig()

    def run_pass(
        self,
        stream: BinaryIO,
        mode: ReconstructionMode,
        write: Optional[Callable[[bytes], object]] = None,
        source: str = "<input>",
    ) -> PassResult:
        """Run reader, tokenizer and reconstructor over ``stream`` once."""
        reader = ChunkedReader(stream, self.config.read_buffer_size)
        tokenizer = MacroTokenizer(
            macro_name=self.config.macro_name,
            max_line_length=self.config.max_line_length,
            source=source,
        )
        reconstructor = LineReconstructor(
            mode,
            macro_name=self.config.macro_name,
            max_line_length=self.config.max_line_length,
            write=write,
            source=source,
        )

        try:
            for chunk in reader:
                for event in tokenizer.feed(chunk):
                    reconstructor.handle(event)
        except OSError as e:
            raise InputUnavailableError(f"Cannot read {source}: {e.strerror or e}", file=source) from e

        for event in tokenizer.finish():
            reconstructor.handle(event)

        return PassResult(
            mode=mode,
            invocations=reconstructor.invocations,
            discrepancies=reconstructor.discrepancies,
            lines=reconstructor.lines,
            chunks=reader.chunks_read,
        )

    def validate(self, path: Path) -> PassResult:
        """Pass 1: count discrepancies in ``path`` without writing."""
        with open_input(path) as stream:
            return self.run_pass(stream, ReconstructionMode.VALIDATE, source=str(path))

    def rewrite(self, path: Path, expected_invocations: Optional[int] = None) -> PassResult:
        """Pass 2: rewrite ``path`` with every invocation in canonical form.

        When ``expected_invocations`` is given and pass 2 sees a different
        number, the file changed since pass 1 and nothing is replaced.
        """
        with open_input(path) as stream:
            with atomic_write(path, write_through=self.config.write_through) as output:
                def write(data: bytes) -> None:
                    try:
                        output.write(data)
                    except OSError as e:
                        raise OutputUnavailableError(
                            f"Cannot write replacement for {path}: {e.strerror or e}", file=str(path)
                        ) from e

                result = self.run_pass(stream, ReconstructionMode.REWRITE, write=write, source=str(path))
                if expected_invocations is not None and result.invocations != expected_invocations:
                    # Raising inside the block discards the temporary file
                    raise ScanError(
                        f"{path}: file changed between passes "
                        f"({expected_invocations} invocations, then {result.invocations})",
                        file=str(path),
                    )
        return result

    def sync(self, path: Path, check_only: bool = False) -> SyncResult:
        """Validate ``path`` and rewrite it only if a discrepancy exists.

        Args:
            path: File to process
            check_only: Stop after pass 1 even when discrepancies exist

        Returns:
            SyncResult describing what was found and done

        Raises:
            CrcSyncError: On any failure; the original file is then unmodified
        """
        path = Path(path)
        with LogContext(logger, file=str(path)):
            phases = [SyncPhase.VALIDATE]
            logger.info(f"Validating: {{'path': {str(path)!r}}}")
            validation = self.validate(path)
            logger.info(
                f"Validation complete: {{'invocations': {validation.invocations}, "
                f"'discrepancies': {validation.discrepancies}, 'lines': {validation.lines}}}"
            )

            if validation.discrepancies == 0 or check_only:
                phases.append(SyncPhase.DONE)
                return SyncResult(path, validation.invocations, validation.discrepancies, False, phases)

            phases.append(SyncPhase.REWRITE)
            logger.info(f"Rewriting: {{'path': {str(path)!r}, 'discrepancies': {validation.discrepancies}}}")
            rewrite = self.rewrite(path, expected_invocations=validation.invocations)
            phases.extend([SyncPhase.REPLACE, SyncPhase.DONE])
            logger.info(f"Rewrite complete: {{'invocations': {rewrite.invocations}, 'lines': {rewrite.lines}}}")

            return SyncResult(path, validation.invocations, validation.discrepancies, True, phases)

