"""
Polling trigger for Stacks chain activity.

The host owns the polling schedule and the persisted state: it passes the
state dict from the previous poll and stores it again afterwards.
poll_trigger updates that dict in place and returns new items, or None
when nothing new happened.
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from urllib.parse import quote

from c32check import parse_contract_id
from stx_config import HiroConfig
from stx_format import format_response
from stx_transport import api_request

logger = logging.getLogger(__name__)

MEMPOOL_SEEN_LIMIT = 50


def _results(cfg: HiroConfig, path: str, limit: int) -> list[dict]:
    response = api_request(cfg, "GET", path, params={"limit": limit})
    return (response or {}).get("results") or []


def _require(value: str | None, name: str, event: str) -> str:
    if not value:
        raise ValueError(f"{name} is required for the {event} event")
    return value


def _newer_than(records: list[dict], last_id: str | None, key: str = "tx_id") -> list[dict]:
    """Records before the first one whose key equals last_id (newest first)."""
    fresh = []
    for record in records:
        if record.get(key) == last_id:
            break
        fresh.append(record)
    return fresh


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _new_block(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    blocks = _results(cfg, "/extended/v2/blocks", 1)
    if not blocks:
        return []
    latest = blocks[0]
    height = latest.get("height")
    if not isinstance(height, int):
        logger.debug("Latest block has no height, skipping")
        return []
    last_height = state.get("last_block_height")
    if last_height is not None and height <= last_height:
        return []
    state["last_block_height"] = height
    return [latest]


def _new_microblock(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    microblocks = _results(cfg, "/extended/v1/microblock", 1)
    if not microblocks:
        return []
    latest = microblocks[0]
    if latest.get("microblock_hash") == state.get("last_microblock_hash"):
        return []
    state["last_microblock_hash"] = latest.get("microblock_hash")
    return [latest]


def _address_transaction(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    address = _require(address, "address", "address_transaction")
    transactions = _results(cfg, f"/extended/v1/address/{quote(address, safe='')}/transactions", 5)
    fresh = _newer_than(transactions, state.get("last_tx_id"))
    if fresh:
        state["last_tx_id"] = transactions[0].get("tx_id")
    return fresh


def _contract_event(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    contract_id = _require(contract_id, "contract_id", "contract_event")
    parse_contract_id(contract_id)
    events = _results(cfg, f"/extended/v1/contract/{contract_id}/events", 5)

    last_index = state.get("last_event_index")
    fresh = []
    for event in events:
        if last_index is not None and event.get("event_index", 0) <= last_index:
            break
        fresh.append(event)

    if fresh:
        state["last_event_index"] = events[0].get("event_index")
    return fresh


def _stx_transfer(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    address = _require(address, "address", "stx_transfer")
    transactions = _results(cfg, f"/extended/v1/address/{quote(address, safe='')}/transactions", 10)
    transfers = [tx for tx in transactions if tx.get("tx_type") == "token_transfer"]
    fresh = _newer_than(transfers, state.get("last_transfer_id"))
    if fresh:
        state["last_transfer_id"] = transfers[0].get("tx_id")
    return fresh


def _mempool_activity(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    transactions = _results(cfg, "/extended/v1/tx/mempool", 10)
    seen = list(state.get("seen_mempool_tx_ids") or [])
    fresh = [tx for tx in transactions if tx.get("tx_id") not in seen]
    if fresh:
        current = [tx.get("tx_id") for tx in transactions]
        seen = current + [tx_id for tx_id in seen if tx_id not in current]
        state["seen_mempool_tx_ids"] = seen[:MEMPOOL_SEEN_LIMIT]
    return fresh


def _stacking_event(cfg: HiroConfig, state: dict, address: str | None, contract_id: str | None) -> list[dict]:
    pox = api_request(cfg, "GET", "/v2/pox") or {}
    cycle_id = (pox.get("current_cycle") or {}).get("id")
    if cycle_id is None or cycle_id == state.get("last_cycle_id"):
        return []
    state["last_cycle_id"] = cycle_id
    return [pox]


TRIGGER_EVENTS: dict[str, Callable[..., list[dict]]] = {
    "new_block": _new_block,
    "new_microblock": _new_microblock,
    "address_transaction": _address_transaction,
    "contract_event": _contract_event,
    "stx_transfer": _stx_transfer,
    "mempool_activity": _mempool_activity,
    "stacking_event": _stacking_event,
}


def poll_trigger(
    cfg: HiroConfig,
    event: str,
    state: dict,
    address: str | None = None,
    contract_id: str | None = None,
) -> list[dict[str, Any]] | None:
    """
    Evaluate one trigger event.

    Returns host items for new activity, or None when there is nothing new.
    state is updated in place.
    """
    handler = TRIGGER_EVENTS.get(event)
    if handler is None:
        raise ValueError(f"Unknown event type: {event}")

    fresh = handler(cfg, state, address, contract_id)
    logger.debug("Trigger %s produced %d new records", event, len(fresh))
    if not fresh:
        return None
    return format_response(fresh)
