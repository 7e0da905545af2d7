"""Unit tests for c32check address encoding and validation."""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import c32check  # noqa: E402

MAINNET_ADDR = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"
MAINNET_HASH = bytes.fromhex("a46ff88886c2ef9762d970b4d2c63678835bd39d")
ZERO_MAINNET = "SP000000000000000000002Q6VF78"
ZERO_TESTNET = "ST000000000000000000002AMW42H"


# ---------------------------------------------------------------------------
# c32 encoding
# ---------------------------------------------------------------------------


def test_c32_encode_keeps_leading_zero_bytes():
    assert c32check.c32_encode(b"\x00\x01") == "01"
    assert c32check.c32_encode(b"") == ""


def test_c32_decode_normalizes_ambiguous_characters():
    assert c32check.c32_decode("O1") == c32check.c32_decode("01")
    assert c32check.c32_decode("L") == c32check.c32_decode("1")
    assert c32check.c32_decode("i") == c32check.c32_decode("1")


def test_c32_decode_rejects_invalid_character():
    with pytest.raises(ValueError, match="Invalid c32 character"):
        c32check.c32_decode("0U")


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


def test_c32_address_known_vectors():
    assert c32check.c32_address(22, MAINNET_HASH) == MAINNET_ADDR
    assert c32check.c32_address(22, bytes(20)) == ZERO_MAINNET
    assert c32check.c32_address(26, bytes(20)) == ZERO_TESTNET


def test_c32_address_decode_known_vectors():
    assert c32check.c32_address_decode(MAINNET_ADDR) == (22, MAINNET_HASH)
    assert c32check.c32_address_decode(ZERO_TESTNET) == (26, bytes(20))


def test_c32_address_rejects_bad_inputs():
    with pytest.raises(ValueError):
        c32check.c32_address(32, bytes(20))
    with pytest.raises(ValueError):
        c32check.c32_address(22, bytes(19))


def test_c32_address_decode_rejects_bad_checksum():
    with pytest.raises(ValueError, match="checksum"):
        c32check.c32_address_decode(MAINNET_ADDR[:-1] + "8")


def test_c32_address_decode_rejects_wrong_length():
    with pytest.raises(ValueError):
        c32check.c32_address_decode("SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKN")


def test_is_valid_stacks_address():
    assert c32check.is_valid_stacks_address(MAINNET_ADDR)
    assert c32check.is_valid_stacks_address(ZERO_TESTNET)
    assert not c32check.is_valid_stacks_address("")
    assert not c32check.is_valid_stacks_address("bc1qxyz")
    # Same payload under a different version fails the checksum
    assert not c32check.is_valid_stacks_address("SM" + MAINNET_ADDR[2:])


# ---------------------------------------------------------------------------
# Contract identifiers
# ---------------------------------------------------------------------------


def test_is_valid_contract_name():
    assert c32check.is_valid_contract_name("pox-4")
    assert c32check.is_valid_contract_name("a" * 40)
    assert not c32check.is_valid_contract_name("a" * 41)
    assert not c32check.is_valid_contract_name("pox!")
    assert not c32check.is_valid_contract_name("")
    assert not c32check.is_valid_contract_name(None)


def test_is_valid_contract_id():
    assert c32check.is_valid_contract_id(f"{MAINNET_ADDR}.my-token")
    assert not c32check.is_valid_contract_id(MAINNET_ADDR)
    assert not c32check.is_valid_contract_id(f"{MAINNET_ADDR}.1token")
    assert not c32check.is_valid_contract_id(f"{MAINNET_ADDR}.a.b")
    assert not c32check.is_valid_contract_id(f"{MAINNET_ADDR}.{'a' * 41}")


def test_parse_contract_id():
    parts = c32check.parse_contract_id(f"{ZERO_MAINNET}.pox")
    assert parts == {"address": ZERO_MAINNET, "name": "pox"}


def test_parse_contract_id_invalid():
    with pytest.raises(ValueError, match="Invalid contract identifier"):
        c32check.parse_contract_id("not-a-contract")
