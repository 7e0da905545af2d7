"""
Clarity value codec for Stacks contract calls.

Implements:
- Clarity value types (int, uint, bool, principal, buffer, strings,
  optionals, responses, lists, tuples)
- Binary serialization/deserialization in the consensus wire format
- Hex encode/decode helpers used by the read-only call and map-entry
  endpoints (values travel as hex strings inside JSON bodies)

Wire format: one type-prefix byte followed by the payload. Integers are
16 bytes big-endian (int is two's complement), buffers and strings carry a
4-byte big-endian length prefix, principals are version byte + hash160
(+ 1-byte name length and name for contract principals).
"""

from __future__ import annotations

import json
import re
import struct
from dataclasses import dataclass, field
from typing import Any, Union

from c32check import c32_address, c32_address_decode, is_valid_contract_name

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TYPE_INT = 0x00
TYPE_UINT = 0x01
TYPE_BUFFER = 0x02
TYPE_BOOL_TRUE = 0x03
TYPE_BOOL_FALSE = 0x04
TYPE_PRINCIPAL_STANDARD = 0x05
TYPE_PRINCIPAL_CONTRACT = 0x06
TYPE_RESPONSE_OK = 0x07
TYPE_RESPONSE_ERR = 0x08
TYPE_OPTIONAL_NONE = 0x09
TYPE_OPTIONAL_SOME = 0x0A
TYPE_LIST = 0x0B
TYPE_TUPLE = 0x0C
TYPE_STRING_ASCII = 0x0D
TYPE_STRING_UTF8 = 0x0E

INT_WIDTH = 16
HASH160_WIDTH = 20
MAX_DEPTH = 32
CLARITY_NAME_MAX_BYTES = 128

INT_MIN = -(1 << 127)
INT_MAX = (1 << 127) - 1
UINT_MAX = (1 << 128) - 1

# Type names accepted by encode_clarity_value
CLARITY_TYPES = (
    "int",
    "uint",
    "bool",
    "principal",
    "buff",
    "buffer",
    "string-ascii",
    "string-utf8",
    "none",
    "some",
    "optional",
    "list",
    "tuple",
    "response",
)

CLARITY_NAME_RE = re.compile(r"^[a-zA-Z]([a-zA-Z0-9]|[-_!?+<>=/*])*$")
HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ClarityError(ValueError):
    """Base error for Clarity encoding and decoding."""

    pass


class UnsupportedClarityTypeError(ClarityError):
    """Raised when asked to encode a type the codec does not know."""

    pass


class ClarityEncodeError(ClarityError):
    """Raised when a value cannot be converted to the requested Clarity type."""

    pass


class ClarityRangeError(ClarityEncodeError):
    """Raised when an integer does not fit the 128-bit Clarity range."""

    pass


class ClarityDecodeError(ClarityError):
    """Raised on malformed or truncated Clarity hex."""

    pass


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClarityInt:
    value: int


@dataclass(frozen=True)
class ClarityUInt:
    value: int


@dataclass(frozen=True)
class ClarityBool:
    value: bool


@dataclass(frozen=True)
class ClarityBuffer:
    data: bytes


@dataclass(frozen=True)
class StringAscii:
    value: str


@dataclass(frozen=True)
class StringUtf8:
    value: str


@dataclass(frozen=True)
class StandardPrincipal:
    version: int
    hash160: bytes

    @property
    def address(self) -> str:
        return c32_address(self.version, self.hash160)


@dataclass(frozen=True)
class ContractPrincipal:
    version: int
    hash160: bytes
    contract_name: str

    @property
    def address(self) -> str:
        return c32_address(self.version, self.hash160)

    @property
    def contract_id(self) -> str:
        return f"{self.address}.{self.contract_name}"


@dataclass(frozen=True)
class OptionalNone:
    pass


@dataclass(frozen=True)
class OptionalSome:
    value: "ClarityValue"


@dataclass(frozen=True)
class ResponseOk:
    value: "ClarityValue"


@dataclass(frozen=True)
class ResponseErr:
    value: "ClarityValue"


@dataclass(frozen=True)
class ClarityList:
    items: tuple = ()


@dataclass(frozen=True)
class ClarityTuple:
    fields: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ClarityUnknown:
    """
    A value whose type prefix this codec does not understand.

    raw holds every byte from the type prefix to the end of the input, since
    the payload length of an unknown type cannot be determined.
    """

    type_id: int
    raw: bytes


ClarityValue = Union[
    ClarityInt,
    ClarityUInt,
    ClarityBool,
    ClarityBuffer,
    StringAscii,
    StringUtf8,
    StandardPrincipal,
    ContractPrincipal,
    OptionalNone,
    OptionalSome,
    ResponseOk,
    ResponseErr,
    ClarityList,
    ClarityTuple,
    ClarityUnknown,
]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _length_prefixed(payload: bytes) -> bytes:
    return struct.pack(">I", len(payload)) + payload


def _clarity_name_bytes(name: str, what: str) -> bytes:
    if not isinstance(name, str) or not CLARITY_NAME_RE.match(name):
        raise ClarityEncodeError(f"Invalid {what}: {name!r}")
    encoded = name.encode("ascii")
    if len(encoded) > CLARITY_NAME_MAX_BYTES:
        raise ClarityEncodeError(
            f"Invalid {what}: longer than {CLARITY_NAME_MAX_BYTES} bytes"
        )
    return struct.pack("B", len(encoded)) + encoded


def _principal_bytes(version: int, hash160: bytes) -> bytes:
    if not 0 <= version < 32:
        raise ClarityEncodeError(f"Invalid principal version: {version}")
    if len(hash160) != HASH160_WIDTH:
        raise ClarityEncodeError(
            f"Principal hash160 must be {HASH160_WIDTH} bytes, got {len(hash160)}"
        )
    return struct.pack("B", version) + hash160


def _serialize(cv: ClarityValue, depth: int) -> bytes:
    if depth > MAX_DEPTH:
        raise ClarityEncodeError(f"Clarity value nested deeper than {MAX_DEPTH}")

    if isinstance(cv, ClarityInt):
        if not INT_MIN <= cv.value <= INT_MAX:
            raise ClarityRangeError(f"int value out of 128-bit range: {cv.value}")
        return bytes([TYPE_INT]) + cv.value.to_bytes(INT_WIDTH, "big", signed=True)

    if isinstance(cv, ClarityUInt):
        if cv.value < 0:
            raise ClarityRangeError(f"uint value cannot be negative: {cv.value}")
        if cv.value > UINT_MAX:
            raise ClarityRangeError(f"uint value out of 128-bit range: {cv.value}")
        return bytes([TYPE_UINT]) + cv.value.to_bytes(INT_WIDTH, "big")

    if isinstance(cv, ClarityBool):
        return bytes([TYPE_BOOL_TRUE if cv.value else TYPE_BOOL_FALSE])

    if isinstance(cv, ClarityBuffer):
        return bytes([TYPE_BUFFER]) + _length_prefixed(bytes(cv.data))

    if isinstance(cv, StringAscii):
        try:
            encoded = cv.value.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ClarityEncodeError(
                f"string-ascii value contains non-ASCII characters: {cv.value!r}"
            ) from exc
        return bytes([TYPE_STRING_ASCII]) + _length_prefixed(encoded)

    if isinstance(cv, StringUtf8):
        return bytes([TYPE_STRING_UTF8]) + _length_prefixed(cv.value.encode("utf-8"))

    if isinstance(cv, StandardPrincipal):
        return bytes([TYPE_PRINCIPAL_STANDARD]) + _principal_bytes(cv.version, cv.hash160)

    if isinstance(cv, ContractPrincipal):
        return (
            bytes([TYPE_PRINCIPAL_CONTRACT])
            + _principal_bytes(cv.version, cv.hash160)
            + _clarity_name_bytes(cv.contract_name, "contract name")
        )

    if isinstance(cv, OptionalNone):
        return bytes([TYPE_OPTIONAL_NONE])

    if isinstance(cv, OptionalSome):
        return bytes([TYPE_OPTIONAL_SOME]) + _serialize(cv.value, depth + 1)

    if isinstance(cv, ResponseOk):
        return bytes([TYPE_RESPONSE_OK]) + _serialize(cv.value, depth + 1)

    if isinstance(cv, ResponseErr):
        return bytes([TYPE_RESPONSE_ERR]) + _serialize(cv.value, depth + 1)

    if isinstance(cv, ClarityList):
        out = bytes([TYPE_LIST]) + struct.pack(">I", len(cv.items))
        for item in cv.items:
            out += _serialize(item, depth + 1)
        return out

    if isinstance(cv, ClarityTuple):
        out = bytes([TYPE_TUPLE]) + struct.pack(">I", len(cv.fields))
        # Fields are serialized in name order
        for name in sorted(cv.fields):
            out += _clarity_name_bytes(name, "tuple field name")
            out += _serialize(cv.fields[name], depth + 1)
        return out

    if isinstance(cv, ClarityUnknown):
        return bytes(cv.raw)

    raise UnsupportedClarityTypeError(f"Unsupported Clarity value: {cv!r}")


def serialize_clarity_value(cv: ClarityValue) -> bytes:
    """Serialize a Clarity value to its consensus byte representation."""
    return _serialize(cv, 0)


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------


class _Reader:
    """Bounds-checked cursor over a byte string."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, size: int, what: str) -> bytes:
        if size > self.remaining:
            raise ClarityDecodeError(
                f"Truncated {what}: need {size} bytes at offset {self.offset}, "
                f"only {self.remaining} available"
            )
        chunk = self.data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def read_u8(self, what: str) -> int:
        return self.read(1, what)[0]

    def read_u32(self, what: str) -> int:
        return struct.unpack(">I", self.read(4, what))[0]


def _read_text(reader: _Reader, size: int, encoding: str, what: str) -> str:
    raw = reader.read(size, what)
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as exc:
        raise ClarityDecodeError(f"Invalid {encoding} bytes in {what}") from exc


def _read_principal(reader: _Reader) -> tuple[int, bytes]:
    version = reader.read_u8("principal version")
    if version >= 32:
        raise ClarityDecodeError(f"Invalid principal version: {version}")
    return version, reader.read(HASH160_WIDTH, "principal hash160")


def _read_value(reader: _Reader, depth: int) -> ClarityValue:
    if depth > MAX_DEPTH:
        raise ClarityDecodeError(f"Clarity value nested deeper than {MAX_DEPTH}")

    start = reader.offset
    type_id = reader.read_u8("type prefix")

    if type_id == TYPE_INT:
        return ClarityInt(int.from_bytes(reader.read(INT_WIDTH, "int payload"), "big", signed=True))

    if type_id == TYPE_UINT:
        return ClarityUInt(int.from_bytes(reader.read(INT_WIDTH, "uint payload"), "big"))

    if type_id == TYPE_BOOL_TRUE:
        return ClarityBool(True)

    if type_id == TYPE_BOOL_FALSE:
        return ClarityBool(False)

    if type_id == TYPE_BUFFER:
        length = reader.read_u32("buffer length")
        return ClarityBuffer(reader.read(length, "buffer payload"))

    if type_id == TYPE_STRING_ASCII:
        length = reader.read_u32("string-ascii length")
        return StringAscii(_read_text(reader, length, "ascii", "string-ascii payload"))

    if type_id == TYPE_STRING_UTF8:
        length = reader.read_u32("string-utf8 length")
        return StringUtf8(_read_text(reader, length, "utf-8", "string-utf8 payload"))

    if type_id == TYPE_PRINCIPAL_STANDARD:
        version, hash160 = _read_principal(reader)
        return StandardPrincipal(version, hash160)

    if type_id == TYPE_PRINCIPAL_CONTRACT:
        version, hash160 = _read_principal(reader)
        name_length = reader.read_u8("contract name length")
        name = _read_text(reader, name_length, "ascii", "contract name")
        return ContractPrincipal(version, hash160, name)

    if type_id == TYPE_OPTIONAL_NONE:
        return OptionalNone()

    if type_id == TYPE_OPTIONAL_SOME:
        return OptionalSome(_read_value(reader, depth + 1))

    if type_id == TYPE_RESPONSE_OK:
        return ResponseOk(_read_value(reader, depth + 1))

    if type_id == TYPE_RESPONSE_ERR:
        return ResponseErr(_read_value(reader, depth + 1))

    if type_id == TYPE_LIST:
        count = reader.read_u32("list length")
        return ClarityList(tuple(_read_value(reader, depth + 1) for _ in range(count)))

    if type_id == TYPE_TUPLE:
        count = reader.read_u32("tuple length")
        fields = {}
        for _ in range(count):
            name_length = reader.read_u8("tuple field name length")
            name = _read_text(reader, name_length, "ascii", "tuple field name")
            fields[name] = _read_value(reader, depth + 1)
        return ClarityTuple(fields)

    # Unknown type: keep the rest of the input so callers can inspect it
    raw = reader.data[start:]
    reader.offset = len(reader.data)
    return ClarityUnknown(type_id, raw)


def deserialize_clarity_value(data: bytes) -> ClarityValue:
    """Deserialize exactly one Clarity value from bytes."""
    if not data:
        raise ClarityDecodeError("Empty Clarity value")
    reader = _Reader(bytes(data))
    value = _read_value(reader, 0)
    if reader.remaining:
        raise ClarityDecodeError(
            f"Unexpected {reader.remaining} trailing bytes after Clarity value"
        )
    return value


# ---------------------------------------------------------------------------
# Conversion to plain Python data
# ---------------------------------------------------------------------------


def clarity_value_to_python(cv: ClarityValue) -> Any:
    """
    Convert a decoded Clarity value to JSON-friendly Python data.

    Integers become decimal strings (they can exceed JSON number precision),
    buffers become 0x-prefixed hex and principals become c32check addresses.
    """
    if isinstance(cv, (ClarityInt, ClarityUInt)):
        return str(cv.value)
    if isinstance(cv, ClarityBool):
        return cv.value
    if isinstance(cv, OptionalNone):
        return None
    if isinstance(cv, OptionalSome):
        return {"some": clarity_value_to_python(cv.value)}
    if isinstance(cv, (StringAscii, StringUtf8)):
        return cv.value
    if isinstance(cv, ClarityBuffer):
        return "0x" + cv.data.hex()
    if isinstance(cv, StandardPrincipal):
        return cv.address
    if isinstance(cv, ContractPrincipal):
        return cv.contract_id
    if isinstance(cv, ResponseOk):
        return {"ok": clarity_value_to_python(cv.value)}
    if isinstance(cv, ResponseErr):
        return {"err": clarity_value_to_python(cv.value)}
    if isinstance(cv, ClarityList):
        return [clarity_value_to_python(item) for item in cv.items]
    if isinstance(cv, ClarityTuple):
        return {name: clarity_value_to_python(value) for name, value in cv.fields.items()}
    if isinstance(cv, ClarityUnknown):
        return {"raw": cv.raw.hex(), "type": f"{cv.type_id:02x}"}
    raise UnsupportedClarityTypeError(f"Unsupported Clarity value: {cv!r}")


# ---------------------------------------------------------------------------
# Construction from (type, value) input
# ---------------------------------------------------------------------------


def _parse_integer(value: Any, kind: str) -> int:
    if isinstance(value, bool):
        raise ClarityEncodeError(f"Invalid {kind} value: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ClarityEncodeError(f"Invalid {kind} value: {value!r} is not an integer")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().lstrip("+-").startswith("0x"):
                return int(text, 16)
            return int(text, 10)
        except ValueError as exc:
            raise ClarityEncodeError(f"Invalid {kind} value: {value!r}") from exc
    raise ClarityEncodeError(f"Invalid {kind} value: {value!r}")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1"):
            return True
        if text in ("false", "0"):
            return False
    raise ClarityEncodeError(f"Invalid bool value: {value!r}")


def _parse_principal(value: Any) -> ClarityValue:
    if not isinstance(value, str) or not value.strip():
        raise ClarityEncodeError(f"Invalid principal value: {value!r}")
    text = value.strip()

    address, _, contract_name = text.partition(".")
    try:
        version, hash160 = c32_address_decode(address)
    except ValueError as exc:
        raise ClarityEncodeError(str(exc)) from exc

    if "." in text:
        if not is_valid_contract_name(contract_name):
            raise ClarityEncodeError(f"Invalid contract name: {contract_name!r}")
        return ContractPrincipal(version, hash160, contract_name)
    return StandardPrincipal(version, hash160)


def _parse_buffer(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise ClarityEncodeError(f"Invalid buffer value: {value!r}")
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not HEX_RE.match(text) or len(text) % 2:
        raise ClarityEncodeError(f"Invalid buffer hex: {value!r}")
    return bytes.fromhex(text)


def _require_str(value: Any, kind: str) -> str:
    if not isinstance(value, str):
        raise ClarityEncodeError(f"Invalid {kind} value: {value!r} (expected a string)")
    return value


def _load_json(value: Any, kind: str) -> Any:
    # Host parameters arrive as text, so compound values may be JSON strings
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ClarityEncodeError(f"Invalid {kind} value: not valid JSON") from exc


def _from_typed_value(typed: Any, depth: int) -> ClarityValue:
    typed = _load_json(typed, "typed value")
    if not isinstance(typed, dict) or "type" not in typed:
        raise ClarityEncodeError(
            f"Expected a typed value like {{'type': 'uint', 'value': 1}}, got {typed!r}"
        )
    return _build_value(typed["type"], typed.get("value"), depth)


def _build_value(clarity_type: Any, value: Any, depth: int) -> ClarityValue:
    if depth > MAX_DEPTH:
        raise ClarityEncodeError(f"Clarity value nested deeper than {MAX_DEPTH}")

    kind = str(clarity_type or "").strip().lower()

    if kind == "int":
        return ClarityInt(_parse_integer(value, kind))
    if kind == "uint":
        return ClarityUInt(_parse_integer(value, kind))
    if kind == "bool":
        return ClarityBool(_parse_bool(value))
    if kind == "principal":
        return _parse_principal(value)
    if kind in ("buff", "buffer"):
        return ClarityBuffer(_parse_buffer(value))
    if kind == "string-ascii":
        return StringAscii(_require_str(value, kind))
    if kind == "string-utf8":
        return StringUtf8(_require_str(value, kind))
    if kind == "none":
        return OptionalNone()
    if kind == "some":
        if not isinstance(value, str):
            raise ClarityEncodeError(
                "some requires a string inner value; use 'optional' for typed values"
            )
        return OptionalSome(StringUtf8(value))

    if kind == "optional":
        if isinstance(value, str) and value.strip().lower() in ("", "none", "null"):
            return OptionalNone()
        value = _load_json(value, kind)
        if value is None:
            return OptionalNone()
        return OptionalSome(_from_typed_value(value, depth + 1))

    if kind == "list":
        value = _load_json(value, kind)
        if not isinstance(value, (list, tuple)):
            raise ClarityEncodeError(f"Invalid list value: {value!r}")
        return ClarityList(tuple(_from_typed_value(item, depth + 1) for item in value))

    if kind == "tuple":
        value = _load_json(value, kind)
        if not isinstance(value, dict):
            raise ClarityEncodeError(f"Invalid tuple value: {value!r}")
        fields = {}
        for name, item in value.items():
            _clarity_name_bytes(name, "tuple field name")
            fields[name] = _from_typed_value(item, depth + 1)
        return ClarityTuple(fields)

    if kind == "response":
        value = _load_json(value, kind)
        if not isinstance(value, dict) or len(value) != 1 or not ({"ok", "err"} & set(value)):
            raise ClarityEncodeError(
                "response requires exactly one of {'ok': <typed value>} or {'err': <typed value>}"
            )
        if "ok" in value:
            return ResponseOk(_from_typed_value(value["ok"], depth + 1))
        return ResponseErr(_from_typed_value(value["err"], depth + 1))

    raise UnsupportedClarityTypeError(f"Unsupported Clarity type: {clarity_type}")


def clarity_value_from_type(clarity_type: str, value: Any = None) -> ClarityValue:
    """Build a Clarity value from a type name and loosely-typed input."""
    return _build_value(clarity_type, value, 0)


# ---------------------------------------------------------------------------
# Hex API
# ---------------------------------------------------------------------------


def _hex_to_bytes(hex_value: Any) -> bytes:
    if not isinstance(hex_value, str):
        raise ClarityDecodeError(f"Clarity hex must be a string, got {type(hex_value).__name__}")
    text = hex_value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text:
        raise ClarityDecodeError("Empty Clarity value")
    if not HEX_RE.match(text):
        raise ClarityDecodeError(f"Invalid hex characters in Clarity value: {hex_value!r}")
    if len(text) % 2:
        raise ClarityDecodeError(f"Odd-length hex in Clarity value: {hex_value!r}")
    return bytes.fromhex(text)


def encode_clarity_value(clarity_type: str, value: Any = None) -> str:
    """
    Encode a value as Clarity hex.

    Returns lowercase hex without a 0x prefix; callers add the prefix where
    the API expects one.
    """
    return serialize_clarity_value(clarity_value_from_type(clarity_type, value)).hex()


def decode_clarity_value(hex_value: str) -> Any:
    """Decode Clarity hex (with or without 0x) to plain Python data."""
    return clarity_value_to_python(deserialize_clarity_value(_hex_to_bytes(hex_value)))
