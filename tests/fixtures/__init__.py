"""Test fixtures for mysql-blob-roundtrip tests"""

from .fake_api import FakeBlobApi
from .payloads import flip_byte, patterned

__all__ = [
    "FakeBlobApi",
    "flip_byte",
    "patterned",
]
