"""Tests for handle generation from display names."""

from __future__ import annotations

import re

import pytest

from cyclo.services.auth.usernames import (
    SUFFIX_ALPHABET,
    generate_username,
    normalize_base,
    random_suffix,
)

SUFFIX_RE = re.compile(r"[a-z0-9]{4}")


@pytest.mark.parametrize(
    ("display_name", "expected"),
    [
        ("Alice Smith", "AliceSmith"),
        ("  Jean-Luc  Picard ", "JeanLucPicard"),
        ("o'brien!!", "obrien"),
        ("under_score", "under_score"),
        ("A" * 30, "A" * 20),
    ],
)
def test_normalize_base(display_name, expected):
    assert normalize_base(display_name) == expected


def test_normalize_base_falls_back_to_email_local_part():
    assert normalize_base("!!!", email="fast.rider@example.com") == "fastrider"


def test_normalize_base_last_resort():
    assert normalize_base("   ") == "user"


def test_random_suffix_alphabet():
    suffix = random_suffix()
    assert len(suffix) == 4
    assert set(suffix) <= set(SUFFIX_ALPHABET)


def test_generate_username_pair():
    pair = generate_username("Alice Smith")

    assert pair.username.startswith("alicesmith")
    assert pair.display_username.startswith("AliceSmith")
    assert pair.username == pair.display_username.lower()
    assert SUFFIX_RE.fullmatch(pair.username[-4:])
    assert len(pair.username) == len("alicesmith") + 4
