"""Reference payload generation.

The payload is the ground truth of the round-trip check: a file of a fixed
size filled with uniformly distributed bytes. Files are written to a
temporary name in the target directory and renamed into place once flushed,
so an artifact path never points at a partially written file.
"""

import os
import random
import tempfile
from dataclasses import dataclass
from logging import getLogger
from typing import Optional

logger = getLogger(__name__)


DEFAULT_PREFIX = "testblob"
ARTIFACT_SUFFIX = ".dat"
PARTIAL_SUFFIX = ".partial"
WRITE_CHUNK_SIZE = 1024 * 1024

PATTERNS = ("random", "zeros")


@dataclass(frozen=True)
class Artifact:
    path: str
    length: int
    seed: Optional[int] = None
    pattern: str = "random"

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def size_on_disk(self) -> int:
        return os.path.getsize(self.path)

    def is_valid_for(self, required_size: int) -> bool:
        """An artifact is reusable only if its stored length matches exactly"""
        try:
            return self.size_on_disk() == required_size
        except OSError:
            return False

    def open(self):
        return open(self.path, "rb")

    def read_bytes(self) -> bytes:
        with self.open() as f:
            return f.read()


def _chunks(size: int, pattern: str, seed):
    rng = random.Random(seed)
    remaining = size
    while remaining > 0:
        n = min(WRITE_CHUNK_SIZE, remaining)
        if pattern == "zeros":
            yield bytes(n)
        else:
            yield rng.randbytes(n)
        remaining -= n


def generate_artifact(
    required_size: int,
    directory: Optional[str] = None,
    prefix: str = DEFAULT_PREFIX,
    seed: Optional[int] = None,
    pattern: str = "random",
) -> Artifact:
    """Write ``required_size`` payload bytes to a new file and return it.

    Args:
        required_size: Exact payload length in bytes
        directory: Target directory (system temp dir when None)
        prefix: File name prefix
        seed: Seed for the byte generator; None draws from system entropy
        pattern: "random" for uniform bytes, "zeros" for an all-zero payload

    Returns:
        Artifact: the durable, fully written payload file
    """
    if required_size < 0:
        raise ValueError(f"payload size should be non-negative, got {required_size}")
    if pattern not in PATTERNS:
        raise ValueError(f"unknown payload pattern {pattern}")

    fd, partial_path = tempfile.mkstemp(
        prefix=prefix, suffix=ARTIFACT_SUFFIX + PARTIAL_SUFFIX, dir=directory
    )
    final_path = partial_path[: -len(PARTIAL_SUFFIX)]
    try:
        with os.fdopen(fd, "wb") as f:
            for chunk in _chunks(required_size, pattern, seed):
                f.write(chunk)
            f.flush()
            os.fsync(f.fileno())
        os.replace(partial_path, final_path)
    except BaseException:
        try:
            os.remove(partial_path)
        except FileNotFoundError:
            pass
        raise

    logger.info(f"Generated {pattern} payload of {required_size} bytes at {final_path}")
    return Artifact(path=final_path, length=required_size, seed=seed, pattern=pattern)


def delete_artifact(artifact: Artifact):
    try:
        os.remove(artifact.path)
    except FileNotFoundError:
        pass


def ensure_artifact(current: Artifact, required_size: int, **kwargs) -> Artifact:
    """Return ``current`` if still valid for ``required_size``, else a new artifact.

    A stale artifact is deleted before the replacement is generated.
    """
    if current is not None and current.is_valid_for(required_size):
        logger.debug(f"Reusing payload {current.path} ({required_size} bytes)")
        return current

    if current is not None:
        logger.info(
            f"Payload {current.path} does not match required size {required_size}, regenerating"
        )
        delete_artifact(current)

    return generate_artifact(required_size, **kwargs)
