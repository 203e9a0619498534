import codecs
import io
import warnings
from contextlib import contextmanager
from logging import getLogger

import mysql.connector
from mysql.connector import Error as MySQLError

from .config import MysqlSettings

logger = getLogger(__name__)


# Single-byte codec that maps every byte value to exactly one character and back.
BYTE_TRANSPARENT_ENCODING = "latin-1"


class BoundedReader(io.RawIOBase):
    """Read-only stream exposing at most ``length`` bytes of ``raw``.

    The driver recognises any ``io.IOBase`` parameter of a prepared statement
    as long data and sends it in chunks, so the payload is never copied into
    one buffer on the client side.
    """

    def __init__(self, raw, length: int):
        if length < 0:
            raise ValueError(f"stream length should be non-negative, got {length}")
        self._raw = raw
        self._remaining = length
        self.length = length

    def readable(self):
        return True

    def readinto(self, buffer):
        if self._remaining <= 0:
            return 0
        view = memoryview(buffer)
        size = min(len(view), self._remaining)
        data = self._raw.read(size)
        if not data:
            return 0
        view[: len(data)] = data
        self._remaining -= len(data)
        return len(data)

    @property
    def remaining(self):
        return self._remaining


class BlobHandle:
    """Object handle over a LONGBLOB column value"""

    def __init__(self, data: bytes):
        self._data = data

    def length(self) -> int:
        return len(self._data)

    def get_bytes(self, offset: int, length: int) -> bytes:
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise ValueError(
                f"range [{offset}, {offset + length}) is outside blob of length {len(self._data)}"
            )
        return bytes(memoryview(self._data)[offset:offset + length])


class ResultRow:
    """A fetched row with JDBC-style accessors for one binary column.

    Streams handed out by the row are closed when the owning ``query_row``
    block exits, whether or not the caller closed them first.
    """

    def __init__(self, column_names, values):
        self.column_names = list(column_names)
        self.values = tuple(values)
        self._open_streams = []

    def _column_value(self, column):
        if isinstance(column, int):
            value = self.values[column]
        else:
            try:
                value = self.values[self.column_names.index(column)]
            except ValueError:
                raise KeyError(f"column {column} not in result set {self.column_names}")
        if value is None:
            return None
        if isinstance(value, str):
            # Character columns come back decoded
            try:
                return value.encode(BYTE_TRANSPARENT_ENCODING)
            except UnicodeEncodeError as e:
                raise IOError(
                    f"column {column} returned text outside the {BYTE_TRANSPARENT_ENCODING} range "
                    f"at position {e.start}, expected a binary column"
                ) from e
        return bytes(value)

    def _track(self, stream):
        self._open_streams.append(stream)
        return stream

    def get_bytes(self, column) -> bytes:
        return self._column_value(column)

    def get_blob(self, column) -> BlobHandle:
        data = self._column_value(column)
        if data is None:
            return None
        return BlobHandle(data)

    def get_binary_stream(self, column):
        data = self._column_value(column)
        if data is None:
            return None
        return self._track(io.BufferedReader(io.BytesIO(data)))

    def get_ascii_stream(self, column):
        data = self._column_value(column)
        if data is None:
            return None
        # newline="" keeps \r and \r\n untranslated
        return self._track(
            io.TextIOWrapper(io.BytesIO(data), encoding=BYTE_TRANSPARENT_ENCODING, newline="")
        )

    def get_unicode_stream(self, column):
        warnings.warn(
            "get_unicode_stream() is a legacy access mode, use get_binary_stream()",
            DeprecationWarning,
            stacklevel=2,
        )
        data = self._column_value(column)
        if data is None:
            return None
        reader_cls = codecs.getreader(BYTE_TRANSPARENT_ENCODING)
        return self._track(reader_cls(io.BytesIO(data)))

    def close(self):
        while self._open_streams:
            stream = self._open_streams.pop()
            stream.close()


class PreparedStatement:
    """Server-side prepared statement with positional parameters"""

    def __init__(self, connection, statement: str):
        self.connection = connection
        self.statement = statement
        self.parameters = {}

    def set_parameter(self, index: int, value):
        self.parameters[index] = value

    def set_binary_stream(self, index: int, stream, length: int):
        self.parameters[index] = BoundedReader(stream, length)

    def clear_parameters(self):
        self.parameters.clear()

    def _bound_parameters(self):
        expected = list(range(len(self.parameters)))
        if sorted(self.parameters) != expected:
            raise ValueError(
                f"parameters should be bound at positions {expected}, got {sorted(self.parameters)}"
            )
        return tuple(self.parameters[i] for i in expected)

    def execute(self, commit=True):
        params = self._bound_parameters()
        cursor = self.connection.cursor(prepared=True)
        try:
            cursor.execute(self.statement, params)
            rowcount = cursor.rowcount
        except MySQLError as e:
            logger.error(f"Prepared statement failed: {self.statement}")
            logger.error(f"Error details: {e}")
            raise
        finally:
            cursor.close()
        if commit:
            self.connection.commit()
        return rowcount


class MySQLBlobApi:
    """
    MySQL access used by the round-trip check.

    This class uses direct connections (no connection pooling): every call
    opens its own connection so that each retrieval reads from a fresh result
    set, and the streamed insert never shares session state with readers.
    """

    def __init__(self, mysql_settings: MysqlSettings, database: str = None):
        self.mysql_settings = mysql_settings
        self.database = database if database is not None else mysql_settings.database
        logger.info(
            f"MySQLBlobApi initialized with database '{self.database}' using direct connections"
        )

    @contextmanager
    def get_connection(self):
        """Get a direct MySQL connection with automatic cleanup"""
        config = self.mysql_settings.get_connection_config(
            database=self.database, autocommit=False
        )
        connection = mysql.connector.connect(**config)
        try:
            cursor = connection.cursor()
            try:
                yield connection, cursor
            finally:
                cursor.close()
        finally:
            connection.close()

    def set_database(self, database):
        self.database = database

    def execute(self, command, commit=False, args=None):
        with self.get_connection() as (connection, cursor):
            if args:
                cursor.execute(command, args)
            else:
                cursor.execute(command)
            if cursor.with_rows:
                cursor.fetchall()
            if commit:
                connection.commit()

    def fetch_all(self, query, args=None):
        with self.get_connection() as (connection, cursor):
            if args:
                cursor.execute(query, args)
            else:
                cursor.execute(query)
            return cursor.fetchall()

    def fetch_one(self, query, args=None):
        rows = self.fetch_all(query, args)
        return rows[0] if rows else None

    def get_variable(self, name):
        """Read a server variable through the ``name, value`` result shape"""
        row = self.fetch_one("SHOW VARIABLES LIKE %s", (name,))
        if row is None:
            return None
        return row[1]

    def get_server_version(self) -> tuple:
        with self.get_connection() as (connection, cursor):
            return tuple(connection.get_server_version())

    def get_server_info(self) -> str:
        with self.get_connection() as (connection, cursor):
            return connection.get_server_info()

    @contextmanager
    def prepare(self, statement):
        with self.get_connection() as (connection, cursor):
            prepared = PreparedStatement(connection, statement)
            try:
                yield prepared
            finally:
                prepared.clear_parameters()

    @contextmanager
    def query_row(self, query):
        """Run ``query`` and yield its first row as a ``ResultRow``"""
        with self.get_connection() as (connection, cursor):
            try:
                cursor.execute(query)
                values = cursor.fetchone()
                if cursor.with_rows:
                    cursor.fetchall()
            except MySQLError as e:
                logger.error(f"Query execution failed: {query}")
                logger.error(f"Error details: {e}")
                raise
            if values is None:
                raise LookupError(f"query returned no rows: {query}")
            row = ResultRow(cursor.column_names, values)
            try:
                yield row
            finally:
                row.close()
