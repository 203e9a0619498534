"""Independent read paths for the stored BLOB.

Every mode re-runs the SELECT on a fresh connection and rebuilds the value
through a different accessor of the result row. Stream modes read one unit
at a time until end of stream.
"""

from enum import Enum
from logging import getLogger

from .mysql_api import BYTE_TRANSPARENT_ENCODING

logger = getLogger(__name__)


class RetrievalMode(Enum):
    BYTES = "bytes"
    BLOB = "blob"
    BINARY_STREAM = "binary_stream"
    ASCII_STREAM = "ascii_stream"
    UNICODE_STREAM = "unicode_stream"

    @property
    def legacy(self) -> bool:
        return self is RetrievalMode.UNICODE_STREAM

    @property
    def accessor(self) -> str:
        return _ACCESSORS[self]

    @classmethod
    def parse(cls, modes):
        return [m if isinstance(m, cls) else cls(m) for m in modes]


_ACCESSORS = {
    RetrievalMode.BYTES: "get_bytes()",
    RetrievalMode.BLOB: "get_blob()",
    RetrievalMode.BINARY_STREAM: "get_binary_stream()",
    RetrievalMode.ASCII_STREAM: "get_ascii_stream()",
    RetrievalMode.UNICODE_STREAM: "get_unicode_stream()",
}

ALL_MODES = list(RetrievalMode)


def read_byte_stream(stream, read_size=1) -> bytes:
    out = bytearray()
    while True:
        b = stream.read(read_size)
        if not b:
            break
        out += b
    return bytes(out)


def read_char_stream(stream, read_size=1) -> bytes:
    out = bytearray()
    while True:
        c = stream.read(read_size)
        if not c:
            break
        out += c.encode(BYTE_TRANSPARENT_ENCODING)
    return bytes(out)


def _read_bytes(row, column, read_size):
    return row.get_bytes(column)


def _read_blob(row, column, read_size):
    handle = row.get_blob(column)
    if handle is None:
        return None
    return handle.get_bytes(0, handle.length())


def _read_binary_stream(row, column, read_size):
    stream = row.get_binary_stream(column)
    if stream is None:
        return None
    with stream:
        return read_byte_stream(stream, read_size)


def _read_ascii_stream(row, column, read_size):
    stream = row.get_ascii_stream(column)
    if stream is None:
        return None
    with stream:
        return read_char_stream(stream, read_size)


def _read_unicode_stream(row, column, read_size):
    stream = row.get_unicode_stream(column)
    if stream is None:
        return None
    with stream:
        return read_char_stream(stream, read_size)


_READERS = {
    RetrievalMode.BYTES: _read_bytes,
    RetrievalMode.BLOB: _read_blob,
    RetrievalMode.BINARY_STREAM: _read_binary_stream,
    RetrievalMode.ASCII_STREAM: _read_ascii_stream,
    RetrievalMode.UNICODE_STREAM: _read_unicode_stream,
}


class MultiModeRetriever:
    def __init__(self, api, table: str, column: str, read_size: int = 1):
        self.api = api
        self.table = table
        self.column = column
        # Stream modes rebuild the value from reads of this many units
        self.read_size = read_size

    @property
    def query(self):
        return f"SELECT `{self.column}` FROM `{self.table}` LIMIT 1"

    def retrieve(self, mode: RetrievalMode) -> bytes:
        mode = RetrievalMode(mode)
        with self.api.query_row(self.query) as row:
            data = _READERS[mode](row, self.column, self.read_size)
        logger.debug(
            f"Retrieved {None if data is None else len(data)} bytes via {mode.accessor}"
        )
        return data

    def retrieve_all(self, modes=None) -> dict:
        modes = ALL_MODES if modes is None else RetrievalMode.parse(modes)
        return {mode: self.retrieve(mode) for mode in modes}
