"""
c32check address encoding for Stacks.

Implements:
- c32 (Crockford base32 variant) encoding/decoding
- c32check address encoding with double-SHA256 checksum
- Stacks address and contract identifier validation
"""

from __future__ import annotations

import hashlib
import re

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Stacks address versions
ADDRESS_VERSION_MAINNET_SINGLE_SIG = 22  # 'SP'
ADDRESS_VERSION_TESTNET_SINGLE_SIG = 26  # 'ST'
ADDRESS_VERSION_MAINNET_MULTI_SIG = 20  # 'SM'
ADDRESS_VERSION_TESTNET_MULTI_SIG = 21  # 'SN'

VALID_ADDRESS_PREFIXES = ("SP", "SM", "ST", "SN")

# c32 alphabet (Crockford base32 variant)
C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

HASH160_LENGTH = 20
CHECKSUM_LENGTH = 4

CONTRACT_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]*$")
CONTRACT_NAME_MAX_LENGTH = 40


# ---------------------------------------------------------------------------
# c32 encoding
# ---------------------------------------------------------------------------


def c32_encode(data: bytes) -> str:
    """Encode bytes to c32 string."""
    if not data:
        return ""
    num = int.from_bytes(data, "big")

    result = []
    while num > 0:
        num, remainder = divmod(num, 32)
        result.append(C32_ALPHABET[remainder])
    # Each leading zero byte becomes one '0' character
    for b in data:
        if b == 0:
            result.append(C32_ALPHABET[0])
        else:
            break
    return "".join(reversed(result))


def _normalize(c32_str: str) -> str:
    return c32_str.upper().replace("O", "0").replace("L", "1").replace("I", "1")


def c32_decode(c32_str: str) -> bytes:
    """Decode a c32 string to bytes."""
    c32_str = _normalize(c32_str)
    if not c32_str:
        return b""

    leading_zeros = 0
    for ch in c32_str:
        if ch == C32_ALPHABET[0]:
            leading_zeros += 1
        else:
            break

    num = 0
    for ch in c32_str:
        idx = C32_ALPHABET.find(ch)
        if idx < 0:
            raise ValueError(f"Invalid c32 character: {ch!r}")
        num = num * 32 + idx

    body = b""
    if num > 0:
        body = num.to_bytes((num.bit_length() + 7) // 8, "big")
    return b"\x00" * leading_zeros + body


def c32_checksum(version: int, data: bytes) -> bytes:
    """Compute c32check checksum (double SHA256 of version + data)."""
    payload = bytes([version]) + data
    h1 = hashlib.sha256(payload).digest()
    h2 = hashlib.sha256(h1).digest()
    return h2[:CHECKSUM_LENGTH]


# ---------------------------------------------------------------------------
# c32check addresses
# ---------------------------------------------------------------------------


def c32_address(version: int, hash160_bytes: bytes) -> str:
    """
    Encode a Stacks address from version byte and hash160.

    Returns a c32check-encoded address string like 'SP...' or 'ST...'.
    """
    if not 0 <= version < 32:
        raise ValueError(f"Invalid address version: {version}")
    if len(hash160_bytes) != HASH160_LENGTH:
        raise ValueError(
            f"hash160 must be {HASH160_LENGTH} bytes, got {len(hash160_bytes)}"
        )
    checksum = c32_checksum(version, hash160_bytes)
    return "S" + C32_ALPHABET[version] + c32_encode(hash160_bytes + checksum)


def c32_address_decode(address: str) -> tuple[int, bytes]:
    """Decode a c32check address into version byte and hash160 bytes."""
    if not isinstance(address, str) or len(address) < 5 or address[0] != "S":
        raise ValueError(f"Invalid Stacks address: {address}")

    version = C32_ALPHABET.find(_normalize(address[1]))
    if version < 0:
        raise ValueError(f"Invalid Stacks address version character: {address}")

    try:
        decoded = c32_decode(address[2:])
    except ValueError as exc:
        raise ValueError(f"Invalid Stacks address: {address}: {exc}") from exc

    if len(decoded) != HASH160_LENGTH + CHECKSUM_LENGTH:
        raise ValueError(f"Invalid Stacks address length: {address}")

    hash160_bytes = decoded[:-CHECKSUM_LENGTH]
    checksum = decoded[-CHECKSUM_LENGTH:]
    if checksum != c32_checksum(version, hash160_bytes):
        raise ValueError(f"Invalid Stacks address checksum: {address}")

    return version, hash160_bytes


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def is_valid_stacks_address(address: str) -> bool:
    """Return True for a well-formed SP/SM/ST/SN address with a valid checksum."""
    if not address or not isinstance(address, str):
        return False
    if address[:2].upper() not in VALID_ADDRESS_PREFIXES:
        return False
    try:
        c32_address_decode(address)
    except ValueError:
        return False
    return True


def is_valid_contract_name(name: str) -> bool:
    if not name or not isinstance(name, str) or len(name) > CONTRACT_NAME_MAX_LENGTH:
        return False
    return bool(CONTRACT_NAME_RE.match(name))


def is_valid_contract_id(contract_id: str) -> bool:
    if not contract_id or not isinstance(contract_id, str):
        return False

    parts = contract_id.split(".")
    if len(parts) != 2:
        return False

    address, name = parts
    return is_valid_stacks_address(address) and is_valid_contract_name(name)


def parse_contract_id(contract_id: str) -> dict[str, str]:
    """Split 'address.contract-name' into its parts, validating both."""
    if not is_valid_contract_id(contract_id):
        raise ValueError(f"Invalid contract identifier: {contract_id}")
    address, name = contract_id.split(".")
    return {"address": address, "name": name}
