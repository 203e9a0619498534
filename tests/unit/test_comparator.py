"""Unit tests for the byte comparator"""

import logging

import pytest

from blob_roundtrip.comparator import DIAGNOSTIC_WINDOW, SCAN_CHUNK_SIZE, compare, hex_window
from blob_roundtrip.payload import generate_artifact
from tests.fixtures import flip_byte, patterned


@pytest.mark.unit
def test_identical_buffers_pass():
    data = patterned(4096)
    outcome = compare(bytes(data), data)
    assert outcome
    assert outcome.passed
    assert outcome.mismatch_offset is None
    assert outcome.describe() == "4096 bytes match"


@pytest.mark.unit
def test_all_zero_payload_matches():
    outcome = compare(bytes(1024), b"\x00" * 1024)
    assert outcome.passed
    assert outcome.retrieved_length == outcome.reference_length == 1024


@pytest.mark.unit
def test_length_mismatch_fails_without_scanning():
    outcome = compare(b"\x00" * 10, b"\x01" * 11)
    assert not outcome
    assert outcome.length_mismatch
    assert outcome.mismatch_offset is None
    assert outcome.retrieved_window == ""
    assert "retrieved length (10) != reference length (11)" in outcome.describe()


@pytest.mark.unit
def test_flipped_byte_at_500_is_reported():
    reference = bytes(1024)
    outcome = compare(flip_byte(reference, 500), reference)
    assert not outcome
    assert outcome.mismatch_offset == 500
    assert outcome.retrieved_window.split()[0] == "ff"
    assert outcome.reference_window.split()[0] == "00"


@pytest.mark.unit
@pytest.mark.parametrize("offset", [0, 1, 65535, 65536, 65537, 200000, 262143])
def test_first_divergence_across_chunk_boundaries(offset):
    reference = patterned(256 * 1024)
    outcome = compare(flip_byte(reference, offset), reference)
    assert outcome.mismatch_offset == offset


@pytest.mark.unit
def test_only_first_mismatch_is_reported():
    reference = patterned(1000)
    retrieved = flip_byte(flip_byte(reference, 900), 42)
    outcome = compare(retrieved, reference, chunk_size=16)
    assert outcome.mismatch_offset == 42


@pytest.mark.unit
def test_diagnostic_window_is_bounded():
    reference = patterned(1000)
    outcome = compare(flip_byte(reference, 10), reference)
    assert len(outcome.retrieved_window.split()) == DIAGNOSTIC_WINDOW
    tail = compare(flip_byte(reference, 998), reference)
    assert len(tail.retrieved_window.split()) == 2


@pytest.mark.unit
def test_mismatch_is_logged(caplog):
    reference = patterned(64)
    with caplog.at_level(logging.WARNING, logger="blob_roundtrip.comparator"):
        compare(flip_byte(reference, 7), reference)
    assert "differed at position 7" in caplog.text


@pytest.mark.unit
def test_compare_against_artifact_on_disk(tmp_path):
    artifact = generate_artifact(300000, directory=str(tmp_path), seed=7)
    data = artifact.read_bytes()

    assert compare(data, artifact).passed

    outcome = compare(flip_byte(data, 123456), artifact)
    assert outcome.mismatch_offset == 123456
    assert compare(data[:-1], artifact).length_mismatch


@pytest.mark.unit
def test_null_never_matches_empty_payload():
    outcome = compare(None, b"")
    assert not outcome
    assert outcome.retrieved_length is None
    assert outcome.describe() == "retrieved NULL, reference length (0)"
    assert not compare(None, b"x")


@pytest.mark.unit
def test_reference_window_spans_chunk_edge(tmp_path):
    offset = SCAN_CHUNK_SIZE - 2
    reference = patterned(4 * SCAN_CHUNK_SIZE)
    outcome = compare(flip_byte(reference, offset), reference)
    assert outcome.mismatch_offset == offset
    assert outcome.reference_window == hex_window(reference, offset)
    assert len(outcome.reference_window.split()) == DIAGNOSTIC_WINDOW

    artifact = generate_artifact(4 * SCAN_CHUNK_SIZE, directory=str(tmp_path), seed=3)
    data = artifact.read_bytes()
    outcome = compare(flip_byte(data, offset), artifact)
    assert outcome.mismatch_offset == offset
    assert outcome.reference_window == hex_window(data, offset)
    assert len(outcome.retrieved_window.split()) == len(outcome.reference_window.split()) == DIAGNOSTIC_WINDOW


@pytest.mark.unit
def test_hex_window():
    assert hex_window(bytes([0, 1, 0xAB, 0xFF]), 1, 2) == "01 ab"
