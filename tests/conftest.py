"""Shared test fixtures and utilities for mysql-blob-roundtrip tests"""

import dataclasses
import os

import pytest

from blob_roundtrip import config
from blob_roundtrip.lifecycle import ArtifactManager
from blob_roundtrip.mysql_api import MySQLBlobApi

# Constants
CONFIG_FILE = os.path.join(os.path.dirname(__file__), "configs", "tests_config.yaml")


def load_test_config(config_file=CONFIG_FILE):
    cfg = config.Settings()
    cfg.load(config_file)
    return cfg


# Pytest fixtures
@pytest.fixture
def test_config():
    """Load the integration test configuration"""
    return load_test_config()


@pytest.fixture(scope="session")
def session_artifacts():
    """Payload manager shared by every test of the session, removed at teardown"""
    manager = ArtifactManager()
    yield manager
    manager.close()


@pytest.fixture
def artifact_manager(tmp_path):
    """Payload manager writing into the test's temporary directory"""
    with ArtifactManager(directory=str(tmp_path)) as manager:
        yield manager


@pytest.fixture
def mysql_blob_api(test_config):
    """MySQL API for the database named in the test configuration"""
    database = test_config.mysql.database
    api = MySQLBlobApi(mysql_settings=dataclasses.replace(test_config.mysql, database=None))
    api.execute(f"CREATE DATABASE IF NOT EXISTS `{database}`", commit=True)
    api.set_database(database)
    return api


# Pytest markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "optional: mark test as optional (may be skipped in CI)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
