"""Tests for random short ID drawing."""

from skyview.core.short_id import (
    BASE62_ALPHABET, SHORT_ID_LENGTH, is_short_id, random_short_id,
)


def test_random_short_id_has_length_and_alphabet():
    for _ in range(50):
        value = random_short_id()
        assert len(value) == SHORT_ID_LENGTH
        assert set(value) <= set(BASE62_ALPHABET)


def test_random_short_id_custom_length():
    assert len(random_short_id(12)) == 12


def test_random_short_ids_vary():
    assert len({random_short_id() for _ in range(100)}) > 90


def test_is_short_id():
    assert is_short_id("aB3dE5gH")
    assert not is_short_id("aB3dE5g")
    assert not is_short_id("aB3dE5g-")
