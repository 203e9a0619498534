"""Unit tests for the command line entry point"""

import argparse
import importlib
import logging

import pytest

from blob_roundtrip.config import Settings
from tests.fixtures import FakeBlobApi, flip_byte

main_module = importlib.import_module("blob_roundtrip.main")

pytestmark = pytest.mark.filterwarnings("ignore::DeprecationWarning")


def make_args(**overrides):
    args = dict(size=2048, mode=None, read_size=None, keep_artifact=False)
    args.update(overrides)
    return argparse.Namespace(**args)


@pytest.fixture
def settings(tmp_path):
    cfg = Settings()
    cfg.blob_check.artifact_dir = str(tmp_path)
    return cfg


@pytest.fixture
def install_api(monkeypatch):
    def install(api):
        monkeypatch.setattr(main_module, "MySQLBlobApi", lambda mysql_settings: api)
        return api
    return install


@pytest.mark.unit
def test_run_check_passes(settings, install_api, tmp_path, capsys):
    install_api(FakeBlobApi())
    assert main_module.run_check(make_args(), settings) == 0
    out = capsys.readouterr().out
    assert out.count("OK") == 5
    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_run_check_fails_on_corruption(settings, install_api, capsys):
    api = install_api(FakeBlobApi())
    api.on_read = lambda value: flip_byte(value, 7)
    assert main_module.run_check(make_args(mode=["bytes"]), settings) == 1
    assert "position 7" in capsys.readouterr().out


@pytest.mark.unit
def test_run_check_skip_is_not_a_failure(settings, install_api, caplog):
    install_api(FakeBlobApi(max_allowed_packet=1024))
    with caplog.at_level(logging.WARNING):
        assert main_module.run_check(make_args(), settings) == 0
    assert "max_allowed_packet" in caplog.text


@pytest.mark.unit
def test_keep_artifact(settings, install_api, tmp_path):
    install_api(FakeBlobApi())
    main_module.run_check(make_args(keep_artifact=True, read_size=512), settings)
    assert len(list(tmp_path.iterdir())) == 1
    assert settings.blob_check.stream_read_size == 512


@pytest.mark.unit
def test_invalid_size_rejected(settings, install_api):
    install_api(FakeBlobApi())
    with pytest.raises(ValueError):
        main_module.run_check(make_args(size=-5), settings)
