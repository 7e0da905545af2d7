"""Unit tests for the Clarity value codec."""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import clarity_codec as cc  # noqa: E402
from clarity_codec import (  # noqa: E402
    ClarityDecodeError,
    ClarityEncodeError,
    ClarityRangeError,
    UnsupportedClarityTypeError,
    decode_clarity_value,
    encode_clarity_value,
)

ZERO_MAINNET = "SP000000000000000000002Q6VF78"
MAINNET_ADDR = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"

UINT_1 = "01" + "00" * 15 + "01"
INT_1 = "00" + "00" * 15 + "01"


# ---------------------------------------------------------------------------
# Encoding primitives
# ---------------------------------------------------------------------------


def test_reference_vectors():
    assert encode_clarity_value("uint", 42) == "010000000000000000000000000000002a"
    assert decode_clarity_value("0x010000000000000000000000000000002a") == "42"
    assert encode_clarity_value("string-ascii", "hi") == "0d000000026869"
    assert encode_clarity_value("buff", "0xdead") == "0200000002dead"
    assert decode_clarity_value(encode_clarity_value("int", -1)) == "-1"


def test_encode_int_and_uint():
    assert encode_clarity_value("int", 1) == INT_1
    assert encode_clarity_value("uint", "1") == UINT_1
    assert encode_clarity_value("uint", 0) == "01" + "00" * 16
    assert encode_clarity_value("uint", "0x2a") == "01" + "00" * 15 + "2a"


def test_encode_negative_int_is_twos_complement():
    assert encode_clarity_value("int", -1) == "00" + "ff" * 16
    assert encode_clarity_value("int", "-1") == "00" + "ff" * 16
    assert encode_clarity_value("int", -(2**127)) == "00" + "80" + "00" * 15


def test_encode_integer_range_limits():
    assert encode_clarity_value("uint", 2**128 - 1) == "01" + "ff" * 16
    with pytest.raises(ClarityRangeError):
        encode_clarity_value("uint", 2**128)
    with pytest.raises(ClarityRangeError):
        encode_clarity_value("uint", -1)
    with pytest.raises(ClarityRangeError):
        encode_clarity_value("int", 2**127)


def test_encode_integer_rejects_non_integers():
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("uint", "1.5")
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("int", "abc")
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("int", 1.5)
    assert encode_clarity_value("uint", 1.0) == UINT_1


def test_encode_bool():
    assert encode_clarity_value("bool", True) == "03"
    assert encode_clarity_value("bool", False) == "04"
    assert encode_clarity_value("bool", "TRUE") == "03"
    assert encode_clarity_value("bool", "false") == "04"
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("bool", "yes")


def test_encode_buffer():
    assert encode_clarity_value("buff", "0xdeadbeef") == "0200000004deadbeef"
    assert encode_clarity_value("buffer", "DEADBEEF") == "0200000004deadbeef"
    assert encode_clarity_value("buff", "") == "0200000000"
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("buff", "abc")
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("buff", "zz")


def test_encode_strings():
    assert encode_clarity_value("string-ascii", "hello") == "0d0000000568656c6c6f"
    assert encode_clarity_value("string-utf8", "é") == "0e00000002c3a9"
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("string-ascii", "héllo")


def test_encode_none_and_some():
    assert encode_clarity_value("none") == "09"
    assert encode_clarity_value("some", "hi") == "0a" + "0e00000002" + "6869"
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("some", 5)


def test_encode_principals():
    assert encode_clarity_value("principal", ZERO_MAINNET) == "05" + "16" + "00" * 20
    assert (
        encode_clarity_value("principal", f"{ZERO_MAINNET}.pox")
        == "06" + "16" + "00" * 20 + "03" + "706f78"
    )
    assert encode_clarity_value("principal", MAINNET_ADDR) == (
        "0516a46ff88886c2ef9762d970b4d2c63678835bd39d"
    )


def test_encode_principal_rejects_bad_address():
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("principal", MAINNET_ADDR[:-1] + "8")
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("principal", f"{ZERO_MAINNET}.")
    with pytest.raises(ClarityEncodeError, match="Invalid contract name"):
        encode_clarity_value("principal", f"{ZERO_MAINNET}.pox!")
    with pytest.raises(ClarityEncodeError, match="Invalid contract name"):
        encode_clarity_value("principal", f"{ZERO_MAINNET}.{'a' * 41}")


def test_encode_unsupported_type():
    with pytest.raises(UnsupportedClarityTypeError, match="Unsupported Clarity type: float"):
        encode_clarity_value("float", 1)


# ---------------------------------------------------------------------------
# Encoding compound values
# ---------------------------------------------------------------------------


def test_encode_tuple_sorts_fields():
    value = {"b": {"type": "uint", "value": 1}, "a": {"type": "bool", "value": True}}
    expected = "0c00000002" + "0161" + "03" + "0162" + UINT_1
    assert encode_clarity_value("tuple", value) == expected


def test_encode_tuple_from_json_text():
    value = '{"a": {"type": "bool", "value": false}}'
    assert encode_clarity_value("tuple", value) == "0c00000001016104"


def test_encode_list():
    value = [{"type": "int", "value": 1}, {"type": "int", "value": 1}]
    assert encode_clarity_value("list", value) == "0b00000002" + INT_1 + INT_1
    assert encode_clarity_value("list", []) == "0b00000000"


def test_encode_response_and_optional():
    assert encode_clarity_value("response", {"ok": {"type": "bool", "value": True}}) == "0703"
    assert encode_clarity_value("response", {"err": {"type": "uint", "value": 1}}) == "08" + UINT_1
    assert encode_clarity_value("optional", None) == "09"
    assert encode_clarity_value("optional", {"type": "uint", "value": 1}) == "0a" + UINT_1
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("response", {"ok": {"type": "bool", "value": True}, "err": {"type": "none"}})


def test_encode_compound_rejects_untyped_items():
    with pytest.raises(ClarityEncodeError):
        encode_clarity_value("list", [1, 2])


def test_serialize_rejects_excessive_depth():
    value = cc.OptionalNone()
    for _ in range(33):
        value = cc.OptionalSome(value)
    with pytest.raises(ClarityEncodeError):
        cc.serialize_clarity_value(value)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def test_decode_integers():
    assert decode_clarity_value("0x" + "00" + "ff" * 16) == "-1"
    assert decode_clarity_value("01" + "00" * 15 + "2a") == "42"
    assert decode_clarity_value("01" + "ff" * 16) == str(2**128 - 1)


def test_decode_simple_values():
    assert decode_clarity_value("03") is True
    assert decode_clarity_value("04") is False
    assert decode_clarity_value("09") is None
    assert decode_clarity_value("0200000002abcd") == "0xabcd"
    assert decode_clarity_value("0d0000000568656c6c6f") == "hello"
    assert decode_clarity_value("0e00000002c3a9") == "é"


def test_decode_wrappers():
    assert decode_clarity_value("0a" + UINT_1) == {"some": "1"}
    assert decode_clarity_value("07" + UINT_1) == {"ok": "1"}
    assert decode_clarity_value("08" + "03") == {"err": True}


def test_decode_principals():
    assert decode_clarity_value("05" + "16" + "00" * 20) == ZERO_MAINNET
    assert decode_clarity_value("06" + "16" + "00" * 20 + "03" + "706f78") == f"{ZERO_MAINNET}.pox"


def test_decode_list_and_tuple():
    assert decode_clarity_value("0b00000002" + INT_1 + "03") == ["1", True]
    assert decode_clarity_value("0c00000002" + "0161" + "03" + "0162" + UINT_1) == {"a": True, "b": "1"}


def test_decode_unknown_type_passes_through():
    assert decode_clarity_value("0xff0102") == {"raw": "ff0102", "type": "ff"}
    assert decode_clarity_value("0aff01") == {"some": {"raw": "ff01", "type": "ff"}}


@pytest.mark.parametrize(
    "hex_value",
    [
        "",
        "0x",
        "abc",
        "zz",
        "0100",
        "0200000005ab",
        "0300",
        "0e00000001ff",
        "0c00000001",
        "05" + "16" + "00" * 19,
    ],
)
def test_decode_malformed_input(hex_value):
    with pytest.raises(ClarityDecodeError):
        decode_clarity_value(hex_value)


def test_decode_depth_limit():
    assert decode_clarity_value("0a" * 32 + "09") is not None
    with pytest.raises(ClarityDecodeError):
        decode_clarity_value("0a" * 33 + "09")


def test_decode_rejects_non_string():
    with pytest.raises(ClarityDecodeError):
        decode_clarity_value(None)


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "clarity_type,value,expected",
    [
        ("int", -170141183460469231731687303715884105728, "-170141183460469231731687303715884105728"),
        ("uint", "340282366920938463463374607431768211455", "340282366920938463463374607431768211455"),
        ("bool", "true", True),
        ("string-ascii", "", ""),
        ("string-ascii", "Hello, Stacks! ~0x2a", "Hello, Stacks! ~0x2a"),
        ("string-utf8", "stacks ₿", "stacks ₿"),
        ("none", None, None),
        ("buff", "0xCAFE", "0xcafe"),
        ("principal", MAINNET_ADDR, MAINNET_ADDR),
    ],
)
def test_round_trip(clarity_type, value, expected):
    assert decode_clarity_value(encode_clarity_value(clarity_type, value)) == expected


def test_deserialize_returns_dataclasses():
    value = cc.deserialize_clarity_value(bytes.fromhex("06" + "16" + "00" * 20 + "03" + "706f78"))
    assert value == cc.ContractPrincipal(22, bytes(20), "pox")
    assert value.contract_id == f"{ZERO_MAINNET}.pox"
