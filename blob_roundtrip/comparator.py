from dataclasses import dataclass
from typing import Optional
from logging import getLogger

from .payload import Artifact

logger = getLogger(__name__)


DIAGNOSTIC_WINDOW = 10
SCAN_CHUNK_SIZE = 64 * 1024


def hex_window(data, offset: int, size: int = DIAGNOSTIC_WINDOW) -> str:
    return " ".join(f"{b:02x}" for b in data[offset:offset + size])


@dataclass(frozen=True)
class ComparisonOutcome:
    passed: bool
    # None when the column came back NULL
    retrieved_length: Optional[int]
    reference_length: int
    mismatch_offset: Optional[int] = None
    retrieved_window: str = ""
    reference_window: str = ""

    def __bool__(self):
        return self.passed

    @property
    def length_mismatch(self):
        return self.retrieved_length != self.reference_length

    def describe(self) -> str:
        if self.passed:
            return f"{self.retrieved_length} bytes match"
        if self.retrieved_length is None:
            return f"retrieved NULL, reference length ({self.reference_length})"
        if self.length_mismatch:
            return f"retrieved length ({self.retrieved_length}) != reference length ({self.reference_length})"
        return (
            f"byte pattern differed at position {self.mismatch_offset}: "
            f"retrieved [{self.retrieved_window}] != reference [{self.reference_window}]"
        )


def _iter_reference_chunks(reference, chunk_size):
    if isinstance(reference, Artifact):
        with reference.open() as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    return
                yield chunk
    else:
        view = memoryview(reference)
        for start in range(0, len(view), chunk_size):
            yield view[start:start + chunk_size]


def _reference_window(reference, offset):
    if isinstance(reference, Artifact):
        with reference.open() as f:
            f.seek(offset)
            return hex_window(f.read(DIAGNOSTIC_WINDOW), 0)
    return hex_window(memoryview(reference), offset)


def _reference_length(reference):
    if isinstance(reference, Artifact):
        return reference.size_on_disk()
    return len(reference)


def compare(retrieved, reference, chunk_size: int = SCAN_CHUNK_SIZE) -> ComparisonOutcome:
    """Compare retrieved bytes against the reference payload.

    ``reference`` is either a bytes-like object or an ``Artifact`` read from
    disk. Lengths are checked first; the scan stops at the first differing
    byte and records a short hex window from that offset on both sides.
    """
    reference_length = _reference_length(reference)
    if retrieved is None:
        outcome = ComparisonOutcome(
            passed=False,
            retrieved_length=None,
            reference_length=reference_length,
        )
        logger.warning(outcome.describe())
        return outcome

    retrieved_length = len(retrieved)

    if retrieved_length != reference_length:
        outcome = ComparisonOutcome(
            passed=False,
            retrieved_length=retrieved_length,
            reference_length=reference_length,
        )
        logger.warning(outcome.describe())
        return outcome

    retrieved_view = memoryview(retrieved)
    start = 0
    for ref_chunk in _iter_reference_chunks(reference, chunk_size):
        end = start + len(ref_chunk)
        got_chunk = retrieved_view[start:end]
        if got_chunk != ref_chunk:
            offset = start + next(
                i for i in range(len(ref_chunk)) if got_chunk[i] != ref_chunk[i]
            )
            outcome = ComparisonOutcome(
                passed=False,
                retrieved_length=retrieved_length,
                reference_length=reference_length,
                mismatch_offset=offset,
                retrieved_window=hex_window(retrieved_view, offset),
                reference_window=_reference_window(reference, offset),
            )
            logger.warning(outcome.describe())
            return outcome
        start = end

    return ComparisonOutcome(
        passed=True,
        retrieved_length=retrieved_length,
        reference_length=reference_length,
    )
