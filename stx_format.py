"""
Response shaping for host items and STX amount conversion.

A host item is {"json": <object>, "pairedItem": {"item": <input index>}}.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

MICRO_STX_PER_STX = Decimal("1000000")
STX_DECIMALS = Decimal("0.000001")


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def _to_decimal(value: Any, what: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Invalid {what}: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid {what}: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid {what}: {value!r}")
    return amount


def micro_stx_to_stx(micro_stx: Any) -> str:
    """Convert microSTX to an STX string with exactly 6 decimals."""
    amount = _to_decimal(micro_stx, "microSTX amount")
    if amount != amount.to_integral_value():
        raise ValueError(f"microSTX amount must be an integer: {micro_stx!r}")
    return str((amount / MICRO_STX_PER_STX).quantize(STX_DECIMALS))


def stx_to_micro_stx(stx: Any) -> int:
    """Convert an STX amount to integer microSTX, rounding half up."""
    amount = _to_decimal(stx, "STX amount")
    return int((amount * MICRO_STX_PER_STX).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Host items
# ---------------------------------------------------------------------------


def format_response(data: Any, item_index: int = 0) -> list[dict[str, Any]]:
    """Wrap a response (or each element of a list response) as host items."""
    if isinstance(data, list):
        return [{"json": item, "pairedItem": {"item": item_index}} for item in data]
    return [{"json": data, "pairedItem": {"item": item_index}}]


def format_paginated_response(data: dict, item_index: int = 0) -> list[dict[str, Any]]:
    """
    Emit one item per element of data["results"].

    When the response reports a total, the first item carries a
    "_pagination" object with total, limit, offset and hasMore.
    """
    results = data.get("results") or []
    items = [{"json": result, "pairedItem": {"item": item_index}} for result in results]

    total = data.get("total")
    if items and total is not None:
        offset = data.get("offset") or 0
        first = dict(items[0]["json"]) if isinstance(items[0]["json"], dict) else {"value": items[0]["json"]}
        first["_pagination"] = {
            "total": total,
            "limit": data.get("limit"),
            "offset": data.get("offset"),
            "hasMore": offset + len(results) < total,
        }
        items[0]["json"] = first

    return items


def empty_response(item_index: int = 0) -> list[dict[str, Any]]:
    return [{"json": {"success": True, "message": "No results found"}, "pairedItem": {"item": item_index}}]


# ---------------------------------------------------------------------------
# Record formatting
# ---------------------------------------------------------------------------


def format_balance(balance: dict) -> dict[str, Any]:
    """Summarize an /extended/v1/address/{address}/balances response."""
    formatted: dict[str, Any] = {}

    stx = balance.get("stx") or {}
    if stx.get("balance"):
        formatted["stx"] = {
            "balance": stx["balance"],
            "balanceFormatted": f"{micro_stx_to_stx(stx['balance'])} STX",
        }

    if balance.get("fungible_tokens"):
        formatted["fungibleTokens"] = balance["fungible_tokens"]

    return formatted


def format_transaction(tx: dict) -> dict[str, Any]:
    """Copy a transaction record, adding feeFormatted and timestampFormatted."""
    formatted = dict(tx)

    if tx.get("fee_rate"):
        formatted["feeFormatted"] = f"{micro_stx_to_stx(tx['fee_rate'])} STX"

    if tx.get("burn_block_time"):
        timestamp = datetime.fromtimestamp(int(tx["burn_block_time"]), tz=timezone.utc)
        formatted["timestampFormatted"] = (
            timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        )

    return formatted
