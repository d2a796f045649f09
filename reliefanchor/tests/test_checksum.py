"""Tests for deterministic field signing."""

import pytest

from reliefanchor.features.checksum.service import (
    DJB2_SEED,
    canonical_field,
    canonical_payload,
    djb2,
    sign,
    signatures_match,
    to_base36,
)
from reliefanchor.models.entitlement import PlanType, Region


def test_sign_is_deterministic():
    fields = ("a@x.com", True, "2099-12-31", Region.GLOBAL, "pay_1", PlanType.YEARLY)
    assert sign(fields, "salt") == sign(fields, "salt")


def test_sign_is_order_sensitive():
    assert sign(("a", "b"), "salt") != sign(("b", "a"), "salt")


def test_sign_depends_on_secret():
    assert sign(("a@x.com", False), "salt-1") != sign(("a@x.com", False), "salt-2")


def test_absent_values_share_one_sentinel():
    assert canonical_field(None) == ""
    assert sign((None, "x"), "salt") == sign(("", "x"), "salt")


@pytest.mark.parametrize(
    "value,expected",
    [
        (True, "true"),
        (False, "false"),
        (Region.INDIA, "INDIA"),
        (PlanType.MONTHLY, "MONTHLY"),
        ("2099-12-31", "2099-12-31"),
        (3, "3"),
    ],
)
def test_canonical_field(value, expected):
    assert canonical_field(value) == expected


def test_canonical_payload_appends_secret():
    assert canonical_payload(("a", None, True), "s") == "a||true|s"


def test_djb2_known_values():
    assert djb2("") == DJB2_SEED
    assert djb2("a") == DJB2_SEED * 33 + 97


def test_djb2_hashes_utf16_code_units():
    # Non-BMP characters contribute both surrogate halves
    expected = ((DJB2_SEED * 33 + 0xD83D) * 33 + 0xDE00) & 0xFFFFFFFF
    assert djb2("\U0001F600") == expected


def test_djb2_stays_within_32_bits():
    assert 0 <= djb2("x" * 1000) <= 0xFFFFFFFF


@pytest.mark.parametrize("value,expected", [(0, "0"), (35, "z"), (36, "10"), (1295, "zz")])
def test_to_base36(value, expected):
    assert to_base36(value) == expected


def test_to_base36_rejects_negative():
    with pytest.raises(ValueError):
        to_base36(-1)


def test_signatures_match_requires_non_empty_equal_strings():
    assert signatures_match("abc", "abc")
    assert not signatures_match("abc", "abd")
    assert not signatures_match("", "")
    assert not signatures_match(None, "abc")
