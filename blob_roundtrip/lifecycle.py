import os
from logging import getLogger

from .payload import DEFAULT_PREFIX, Artifact, ensure_artifact

logger = getLogger(__name__)


class ArtifactManager:
    """Owns the reference payload for the lifetime of a test session.

    The payload is generated on first use and reused by later runs as long as
    the required size does not change. ``close()`` removes the file, retrying
    a bounded number of times; a file that cannot be removed is left behind.
    """

    DEFAULT_CLEANUP_ATTEMPTS = 5

    def __init__(
        self,
        directory: str = None,
        prefix: str = DEFAULT_PREFIX,
        seed: int = None,
        pattern: str = "random",
        cleanup_attempts: int = DEFAULT_CLEANUP_ATTEMPTS,
    ):
        self.directory = directory
        self.prefix = prefix
        self.seed = seed
        self.pattern = pattern
        self.cleanup_attempts = cleanup_attempts
        self.artifact: Artifact = None
        self.closed = False

    @classmethod
    def from_settings(cls, blob_check_settings):
        return cls(
            directory=blob_check_settings.artifact_dir,
            prefix=blob_check_settings.artifact_prefix,
            seed=blob_check_settings.seed,
            pattern=blob_check_settings.payload_pattern,
            cleanup_attempts=blob_check_settings.cleanup_attempts,
        )

    def ensure(self, required_size: int) -> Artifact:
        if self.closed:
            raise RuntimeError("artifact manager is closed")
        self.artifact = ensure_artifact(
            self.artifact,
            required_size,
            directory=self.directory,
            prefix=self.prefix,
            seed=self.seed,
            pattern=self.pattern,
        )
        return self.artifact

    def close(self):
        if self.closed:
            return
        self.closed = True
        artifact, self.artifact = self.artifact, None
        if artifact is None:
            return

        for attempt in range(1, self.cleanup_attempts + 1):
            try:
                os.remove(artifact.path)
                logger.debug(f"Removed payload {artifact.path}")
                return
            except FileNotFoundError:
                return
            except OSError as e:
                logger.debug(
                    f"Attempt {attempt}/{self.cleanup_attempts} to remove {artifact.path} failed: {e}"
                )
        logger.warning(
            f"Giving up removing payload {artifact.path} after {self.cleanup_attempts} attempts"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
