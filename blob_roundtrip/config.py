"""
MySQL BLOB Round-Trip Harness Configuration Management

This module provides configuration classes for the BLOB round-trip check:
the database connection used as the collaborator, and the parameters of the
payload, target table and retrieval modes.

Classes:
    MysqlSettings: MySQL database connection configuration
    BlobCheckSettings: Payload, table and retrieval mode configuration
    Settings: Main configuration class that orchestrates all settings

Key Features:
    - YAML-based configuration loading
    - Environment variable overrides for connection settings
    - Type validation and error handling
"""

import os
from dataclasses import dataclass, field

import yaml


def stype(obj):
    """Get the simple type name of an object.

    Args:
        obj: Any object to get type name for

    Returns:
        str: Simple class name of the object's type

    Example:
        >>> stype([1, 2, 3])
        'list'
        >>> stype("hello")
        'str'
    """
    return type(obj).__name__


@dataclass
class MysqlSettings:
    """MySQL database connection configuration.

    Supports MySQL 5.6+, MySQL 8.0+, MariaDB 10.x, and Percona Server.

    Attributes:
        host: MySQL server hostname or IP address
        port: MySQL server port (default: 3306)
        user: MySQL username for authentication
        password: MySQL password for authentication
        database: Schema that holds the test table
        charset: Character set for connection (MariaDB compatibility, optional)
        collation: Collation for connection (MariaDB compatibility, optional)
        use_pure: Use the pure Python protocol implementation, which streams
            file-like parameters with COM_STMT_SEND_LONG_DATA

    Example:
        mysql_config = MysqlSettings(
            host="mysql.example.com",
            port=3306,
            user="tester",
            password="secure_password",
            database="blob_roundtrip",
        )
    """
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = None
    # Optional charset specification (critical for MariaDB compatibility)
    charset: str = None
    # Optional collation specification (critical for MariaDB compatibility)
    collation: str = None
    use_pure: bool = True

    ENV_OVERRIDES = {
        "MYSQL_HOST": ("host", str),
        "MYSQL_PORT": ("port", int),
        "MYSQL_USER": ("user", str),
        "MYSQL_PASSWORD": ("password", str),
        "MYSQL_DATABASE": ("database", str),
        "MYSQL_CHARSET": ("charset", str),
    }

    def apply_env_overrides(self, environ=None):
        environ = os.environ if environ is None else environ
        for env_name, (attr, cast) in MysqlSettings.ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value is None:
                continue
            try:
                setattr(self, attr, cast(value))
            except ValueError:
                raise ValueError(f"{env_name} should be {cast.__name__} and not {value!r}")

    def validate(self):
        if not isinstance(self.host, str):
            raise ValueError(f"mysql host should be string and not {stype(self.host)}")

        if not isinstance(self.port, int):
            raise ValueError(f"mysql port should be int and not {stype(self.port)}")

        if not isinstance(self.user, str):
            raise ValueError(f"mysql user should be string and not {stype(self.user)}")

        if not isinstance(self.password, str):
            raise ValueError(
                f"mysql password should be string and not {stype(self.password)}"
            )

        if self.database is not None and not isinstance(self.database, str):
            raise ValueError(
                f"mysql database should be string or None and not {stype(self.database)}"
            )

        if self.charset is not None and not isinstance(self.charset, str):
            raise ValueError(
                f"mysql charset should be string or None and not {stype(self.charset)}"
            )

        if self.collation is not None and not isinstance(self.collation, str):
            raise ValueError(
                f"mysql collation should be string or None and not {stype(self.collation)}"
            )

        if not isinstance(self.use_pure, bool):
            raise ValueError(
                f"mysql use_pure should be bool and not {stype(self.use_pure)}"
            )

    def get_connection_config(self, database=None, autocommit=True):
        """Build standardized MySQL connection configuration"""
        config = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "autocommit": autocommit,
            "use_pure": self.use_pure,
        }

        database = database if database is not None else self.database
        if database is not None:
            config["database"] = database

        # Add charset if specified (important for MariaDB compatibility)
        if self.charset is not None:
            config["charset"] = self.charset

        # Add collation if specified (important for MariaDB compatibility)
        if self.collation is not None:
            config["collation"] = self.collation

        return config


DEFAULT_MODES = [
    "bytes",
    "blob",
    "binary_stream",
    "ascii_stream",
    "unicode_stream",
]


@dataclass
class BlobCheckSettings:
    required_size: int = 32 * 1024 * 1024
    table: str = "BLOBTEST"
    column: str = "blobdata"
    artifact_dir: str = None
    artifact_prefix: str = "testblob"
    payload_pattern: str = "random"
    seed: int = None
    cleanup_attempts: int = 5
    stream_read_size: int = 1
    modes: list = field(default_factory=lambda: list(DEFAULT_MODES))

    def validate(self):
        if not isinstance(self.required_size, int) or isinstance(self.required_size, bool):
            raise ValueError(
                f"blob_check required_size should be int and not {stype(self.required_size)}"
            )

        if self.required_size < 0:
            raise ValueError("blob_check required_size should be non-negative")

        for key in ("table", "column", "artifact_prefix"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value:
                raise ValueError(
                    f"blob_check {key} should be non-empty string and not {stype(value)}"
                )

        if self.artifact_dir is not None and not isinstance(self.artifact_dir, str):
            raise ValueError(
                f"blob_check artifact_dir should be string or None and not {stype(self.artifact_dir)}"
            )

        if self.payload_pattern not in ("random", "zeros"):
            raise ValueError(f"wrong payload pattern {self.payload_pattern}")

        if self.seed is not None and not isinstance(self.seed, int):
            raise ValueError(
                f"blob_check seed should be int or None and not {stype(self.seed)}"
            )

        if not isinstance(self.cleanup_attempts, int) or self.cleanup_attempts < 1:
            raise ValueError(
                f"blob_check cleanup_attempts should be positive integer and not {stype(self.cleanup_attempts)}"
            )

        if not isinstance(self.stream_read_size, int) or self.stream_read_size < 1:
            raise ValueError(
                f"blob_check stream_read_size should be positive integer and not {stype(self.stream_read_size)}"
            )

        if not isinstance(self.modes, list) or not self.modes:
            raise ValueError(
                f"blob_check modes should be non-empty list and not {stype(self.modes)}"
            )

        for mode in self.modes:
            if mode not in DEFAULT_MODES:
                raise ValueError(f"unknown retrieval mode {mode}")


class Settings:
    DEFAULT_LOG_LEVEL = "info"

    def __init__(self):
        self.mysql = MysqlSettings()
        self.blob_check = BlobCheckSettings()
        self.settings_file = ""
        self.log_level = Settings.DEFAULT_LOG_LEVEL
        self.debug_log_level = False

    def load(self, settings_file):
        with open(settings_file, "r") as f:
            data = yaml.safe_load(f.read()) or {}

        self.settings_file = settings_file
        self.mysql = MysqlSettings(**data.pop("mysql", {}))
        self.blob_check = BlobCheckSettings(**data.pop("blob_check", {}))
        self.log_level = data.pop("log_level", Settings.DEFAULT_LOG_LEVEL)

        if data:
            raise Exception(f"Unsupported config options: {list(data.keys())}")

        self.mysql.apply_env_overrides()
        self.validate()

    def validate_log_level(self):
        if self.log_level not in ["critical", "error", "warning", "info", "debug"]:
            raise ValueError(f"wrong log level {self.log_level}")
        if self.log_level == "debug":
            self.debug_log_level = True

    def validate(self):
        self.mysql.validate()
        self.blob_check.validate()
        self.validate_log_level()
