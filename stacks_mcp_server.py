#!/usr/bin/env python3
"""
MCP server for Stacks and Bitcoin blockchain queries.

One tool per resource (accounts, transactions, tokens, NFTs, contracts,
Clarity encoding, stacking, sBTC, blocks, BNS names, ordinals, search,
network info, Rosetta, utilities) plus btc_explorer for the Esplora API
and stx_trigger_poll for polling triggers whose state the client keeps.

Wraps stx_resources.py and stx_trigger.py as MCP tools. Every tool returns
{"success": true, ...} or {"success": false, "error": ...}.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List

from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

# Load .env from current directory or parent directories
SERVER_DIR = Path(__file__).resolve().parent
load_dotenv(SERVER_DIR / ".env")
load_dotenv(SERVER_DIR.parent / ".env")

from stx_config import BitcoinConfig, HiroConfig  # noqa: E402
from stx_resources import (  # noqa: E402
    API_BITCOIN,
    API_HIRO,
    PARAMETERS,
    RESOURCES,
    execute_operation,
    get_endpoint,
)
from stx_trigger import TRIGGER_EVENTS, poll_trigger  # noqa: E402

logger = logging.getLogger(__name__)

app = Server("stacks_explorer")

# Tool name -> (resource, description)
RESOURCE_TOOLS: dict[str, tuple[str, str]] = {
    "stx_account": ("account", "Query a Stacks account: balances, STX balance, transactions, assets, nonces, pending transactions."),
    "stx_transaction": ("transaction", "Look up, list or broadcast Stacks transactions and browse the mempool."),
    "stx_token_transfer": ("token_transfer", "STX transfer helpers: balance, transfer history and a static fee estimate."),
    "stx_fungible_token": ("fungible_token", "SIP-10 fungible tokens: holdings, metadata and holders."),
    "stx_nft": ("nft", "SIP-9 NFTs: holdings by address, ownership history and mints."),
    "stx_contract": (
        "contract",
        "Smart contracts: info, source, ABI, events, deployed contracts, read-only calls and map entries "
        "(call and map results are decoded from Clarity hex).",
    ),
    "stx_clarity": ("clarity", "Encode values to Clarity hex or decode Clarity hex locally."),
    "stx_stacking": ("stacking", "Proof of Transfer: PoX info, cycles and stacker details."),
    "stx_sbtc": ("sbtc", "sBTC balances of an address."),
    "stx_block": ("block", "Stacks blocks by hash or height, recent blocks, block transactions and the latest block."),
    "stx_burn_block": ("burn_block", "Bitcoin anchor (burn) blocks as seen by the Stacks API."),
    "stx_microblock": ("microblock", "Microblocks and unanchored transactions."),
    "stx_mempool": ("mempool", "Mempool statistics, pending and dropped transactions."),
    "stx_names": ("names", "BNS names and namespaces: lookups, zone files, prices and subdomains."),
    "stx_ordinals": ("ordinals", "Bitcoin ordinals and BRC-20 tokens via the Hiro Ordinals API."),
    "stx_search": ("search", "Search by block hash, transaction id, contract id or address."),
    "stx_info": ("info", "Network info: core API info, block times, STX supply, fee rate and PoX info."),
    "stx_rosetta": ("rosetta", "Rosetta Data API: networks, status, options, blocks, balances and mempool."),
    "stx_utility": ("utility", "Validate addresses and contract ids and convert between STX and microSTX."),
    "btc_explorer": ("bitcoin", "Bitcoin explorer (Blockstream or Mempool.space): tip height, blocks, addresses, UTXOs, transactions and fees."),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ok_response(data: dict[str, Any]) -> List[TextContent]:
    data["success"] = True
    return [TextContent(type="text", text=json.dumps(data, default=str))]


def _error_response(message: str) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps({"success": False, "error": message}))]


def _input_schema(resource: str) -> dict[str, Any]:
    operations = RESOURCES[resource]
    properties: dict[str, Any] = {
        "operation": {
            "type": "string",
            "enum": list(operations),
            "description": "; ".join(f"{name}: {ep.description}" for name, ep in operations.items()),
        }
    }
    for endpoint in operations.values():
        for name in endpoint.params:
            properties.setdefault(name, dict(PARAMETERS[name]))
    properties["split_results"] = {
        "type": "boolean",
        "description": "Return one item per result for list responses (default false).",
    }
    return {"type": "object", "properties": properties, "required": ["operation"]}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


@app.list_tools()
async def list_tools() -> List[Tool]:
    tools = [
        Tool(name=name, description=description, inputSchema=_input_schema(resource))
        for name, (resource, description) in RESOURCE_TOOLS.items()
    ]
    tools.append(
        Tool(
            name="stx_trigger_poll",
            description=(
                "Poll for new Stacks activity since the last call. Pass back the returned "
                "state on the next poll; triggered is false when nothing new happened."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "event": {"type": "string", "enum": list(TRIGGER_EVENTS)},
                    "state": {"type": "object", "description": "State returned by the previous poll."},
                    "address": {"type": "string", "description": "Address for address_transaction and stx_transfer."},
                    "contract_id": {"type": "string", "description": "Contract id for contract_event."},
                },
                "required": ["event"],
            },
        )
    )
    return tools


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> List[TextContent]:
    if not isinstance(arguments, dict):
        return _error_response("Invalid arguments. Expected an object.")

    try:
        if name == "stx_trigger_poll":
            return await _handle_trigger_poll(arguments)
        if name in RESOURCE_TOOLS:
            return await _handle_resource(RESOURCE_TOOLS[name][0], arguments)

    except Exception as exc:  # noqa: BLE001
        logger.warning("Tool %s failed: %s", name, exc)
        return _error_response(str(exc))

    return _error_response(f"Unknown tool: {name}")


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _load_config(api: str):
    if api == API_HIRO:
        return await asyncio.to_thread(HiroConfig.from_env)
    if api == API_BITCOIN:
        return await asyncio.to_thread(BitcoinConfig.from_env)
    return None


async def _handle_resource(resource: str, arguments: dict[str, Any]) -> List[TextContent]:
    operation = arguments.get("operation")
    if not operation:
        return _error_response("Missing 'operation' parameter.")

    endpoint = get_endpoint(resource, operation)
    cfg = await _load_config(endpoint.api)
    params = {key: value for key, value in arguments.items() if key not in ("operation", "split_results")}
    items = await asyncio.to_thread(
        execute_operation,
        cfg,
        resource,
        operation,
        params,
        split_results=bool(arguments.get("split_results", False)),
    )
    return _ok_response({"resource": resource, "operation": operation, "items": items})


async def _handle_trigger_poll(arguments: dict[str, Any]) -> List[TextContent]:
    event = arguments.get("event")
    if not event:
        return _error_response("Missing 'event' parameter.")

    state = arguments.get("state") or {}
    if isinstance(state, str):
        state = json.loads(state)
    if not isinstance(state, dict):
        return _error_response("Invalid 'state' parameter. Expected an object.")

    cfg = await asyncio.to_thread(HiroConfig.from_env)
    items = await asyncio.to_thread(
        poll_trigger,
        cfg,
        event,
        state,
        address=arguments.get("address"),
        contract_id=arguments.get("contract_id"),
    )
    return _ok_response({"event": event, "triggered": items is not None, "items": items or [], "state": state})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _log_level() -> int:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "WARNING").strip().upper())
    return level if isinstance(level, int) else logging.WARNING


async def main() -> None:
    # stdout carries the MCP protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
