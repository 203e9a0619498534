from logging import getLogger

from .payload import Artifact

logger = getLogger(__name__)


class StreamingInserter:
    """Writes a payload file into the test table with one streamed INSERT"""

    def __init__(self, api, table: str, column: str):
        self.api = api
        self.table = table
        self.column = column

    @property
    def statement(self):
        return f"INSERT INTO `{self.table}` (`{self.column}`) VALUES (%s)"

    def insert(self, artifact: Artifact):
        logger.info(f"Streaming {artifact.length} bytes from {artifact.path} into `{self.table}`")
        with artifact.open() as stream:
            with self.api.prepare(self.statement) as prepared:
                prepared.set_binary_stream(0, stream, artifact.length)
                prepared.execute()
                prepared.clear_parameters()
        logger.debug(f"Insert into `{self.table}` complete")
