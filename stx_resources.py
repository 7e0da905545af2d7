"""
Resource/operation table for the Stacks and Bitcoin explorer tools.

Every operation is an Endpoint: either a REST call described by method,
path template and query mapping, or a local handler. execute_operation
validates parameters, performs the call and shapes the result into host
items.
"""

from __future__ import annotations

import json
import logging
import string
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import quote

from c32check import is_valid_contract_id, is_valid_stacks_address, parse_contract_id
from clarity_codec import (
    CLARITY_TYPES,
    ClarityError,
    decode_clarity_value,
    encode_clarity_value,
)
from stx_format import (
    empty_response,
    format_balance,
    format_paginated_response,
    format_response,
    format_transaction,
    micro_stx_to_stx,
    stx_to_micro_stx,
)
from stx_transport import api_request

logger = logging.getLogger(__name__)

API_HIRO = "hiro"
API_BITCOIN = "bitcoin"
API_LOCAL = "local"

ESTIMATED_TRANSFER_FEE_STX = "0.001"

# Placeholders that are filled from a "contract_id" parameter
_CONTRACT_PARTS = ("contract_address", "contract_name")


@dataclass(frozen=True)
class Endpoint:
    """
    One operation of a resource.

    path is a str.format template; its placeholders are required parameters.
    optional parameters (and any listed in query) are sent as query string
    values for plain GET calls; query maps a parameter name to the API's key.
    body builds a JSON body, handler replaces the HTTP call entirely and
    transform post-processes the decoded response.
    """

    path: str = ""
    method: str = "GET"
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    query: dict[str, str] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)
    body: Callable[[Any, dict], Any] | None = None
    handler: Callable[[Any, dict], Any] | None = None
    transform: Callable[[Any, dict], Any] | None = None
    text: bool = False
    api: str = API_HIRO
    description: str = ""

    @property
    def path_params(self) -> tuple[str, ...]:
        names = []
        for _, name, _, _ in string.Formatter().parse(self.path):
            if not name:
                continue
            if name in _CONTRACT_PARTS:
                name = "contract_id"
            if name not in names:
                names.append(name)
        return tuple(names)

    @property
    def required_params(self) -> tuple[str, ...]:
        names = list(self.path_params)
        names.extend(name for name in self.required if name not in names)
        return tuple(names)

    @property
    def params(self) -> tuple[str, ...]:
        names = list(self.required_params)
        names.extend(name for name in self.optional if name not in names)
        return tuple(names)


# ---------------------------------------------------------------------------
# Parameter descriptions (shared by every resource)
# ---------------------------------------------------------------------------

PARAMETERS: dict[str, dict[str, Any]] = {
    "address": {"type": "string", "description": "Stacks (or Bitcoin, for btc_explorer) address"},
    "tx_id": {"type": "string", "description": "Stacks transaction id (0x-prefixed hex)"},
    "tx_hex": {"type": "string", "description": "Signed transaction in hex format"},
    "tx_type": {"type": "string", "description": "Filter by transaction type (e.g. token_transfer, contract_call)"},
    "limit": {"type": "integer", "description": "Maximum number of results"},
    "offset": {"type": "integer", "description": "Number of results to skip"},
    "contract_id": {"type": "string", "description": "Contract identifier (address.contract-name)"},
    "function_name": {"type": "string", "description": "Read-only function name"},
    "sender_address": {"type": "string", "description": "Sender address for the read-only call (defaults to the contract address)"},
    "function_args": {
        "type": ["array", "string"],
        "description": "Function arguments: Clarity hex strings or typed values like {\"type\": \"uint\", \"value\": 1}, as a list or JSON text",
    },
    "map_name": {"type": "string", "description": "Data map name"},
    "map_key": {
        "type": ["string", "object"],
        "description": "Map key as Clarity hex or a typed value like {\"type\": \"principal\", \"value\": \"SP...\"}",
    },
    "asset_identifier": {"type": "string", "description": "NFT asset identifier (contract_id::asset-name)"},
    "nft_value": {"type": "string", "description": "NFT value as Clarity hex"},
    "clarity_type": {"type": "string", "enum": list(CLARITY_TYPES), "description": "Clarity type to encode"},
    "value": {"description": "Value to encode"},
    "hex_value": {"type": "string", "description": "Clarity hex value to decode"},
    "cycle_number": {"type": "integer", "description": "PoX cycle number"},
    "block_hash_or_height": {"type": "string", "description": "Block hash or height"},
    "block_height": {"type": "integer", "description": "Block height"},
    "height_or_hash": {"type": "string", "description": "Burn block height or hash"},
    "hash": {"type": "string", "description": "Microblock hash"},
    "name": {"type": "string", "description": "BNS name (e.g. muneeb.btc)"},
    "namespace": {"type": "string", "description": "BNS namespace (e.g. btc)"},
    "page": {"type": "integer", "description": "Page number"},
    "inscription_id": {"type": "string", "description": "Inscription id or number"},
    "address_filter": {"type": "string", "description": "Only inscriptions owned by this Bitcoin address"},
    "mime_type": {"type": "string", "description": "Only inscriptions with this MIME type"},
    "satoshi_ordinal": {"type": "string", "description": "Satoshi ordinal number"},
    "brc20_ticker": {"type": "string", "description": "BRC-20 ticker"},
    "ticker": {"type": "string", "description": "Filter activity by BRC-20 ticker"},
    "search_term": {"type": "string", "description": "Block hash, transaction id, contract id or address"},
    "block_identifier": {"type": "string", "description": "Block index (digits) or block hash"},
    "stx_amount": {"type": ["number", "string"], "description": "Amount in STX"},
    "micro_stx_amount": {"type": ["integer", "string"], "description": "Amount in microSTX"},
    "block_hash": {"type": "string", "description": "Bitcoin block hash"},
    "txid": {"type": "string", "description": "Bitcoin transaction id"},
}


# ---------------------------------------------------------------------------
# Transforms and body builders
# ---------------------------------------------------------------------------


def _with_formatted_balance(data: dict, params: dict) -> dict:
    return {**data, "formatted": format_balance(data)}


def _format_tx(data: dict, params: dict) -> dict:
    return format_transaction(data)


def _decode_hex_field(key: str) -> Callable[[Any, dict], Any]:
    def transform(data: Any, params: dict) -> Any:
        if not isinstance(data, dict) or not data.get(key):
            return data
        return {**data, "decoded": decode_clarity_value(data[key])}

    return transform


def _wrap(key: str) -> Callable[[Any, dict], dict]:
    def transform(data: Any, params: dict) -> dict:
        return {key: data}

    return transform


def _rosetta_network(cfg) -> dict[str, str]:
    return {"blockchain": "stacks", "network": cfg.network}


def _rosetta_network_body(cfg, params: dict) -> dict:
    return {"network_identifier": _rosetta_network(cfg)}


def _rosetta_block_body(cfg, params: dict) -> dict:
    identifier = str(params["block_identifier"]).strip()
    block = {"index": int(identifier)} if identifier.isdigit() else {"hash": identifier}
    return {"network_identifier": _rosetta_network(cfg), "block_identifier": block}


def _rosetta_balance_body(cfg, params: dict) -> dict:
    return {
        "network_identifier": _rosetta_network(cfg),
        "account_identifier": {"address": params["address"]},
    }


def _clarity_hex_arg(arg: Any) -> str:
    """Accept Clarity hex (with or without 0x) or a typed value and return 0x hex."""
    if isinstance(arg, str) and not arg.strip().startswith("{"):
        text = arg.strip()
        return text if text[:2].lower() == "0x" else f"0x{text}"
    if isinstance(arg, str):
        arg = json.loads(arg)
    if not isinstance(arg, dict) or "type" not in arg:
        raise ClarityError(f"Expected Clarity hex or a typed value, got {arg!r}")
    return "0x" + encode_clarity_value(arg["type"], arg.get("value"))


def _read_only_body(cfg, params: dict) -> dict:
    raw_args = params.get("function_args") or []
    if isinstance(raw_args, str):
        try:
            raw_args = json.loads(raw_args)
        except json.JSONDecodeError as exc:
            raise ValueError("function_args must be a JSON array") from exc
    if not isinstance(raw_args, list):
        raise ValueError("function_args must be a JSON array")
    return {
        "sender": params.get("sender_address") or params["contract_address"],
        "arguments": [_clarity_hex_arg(arg) for arg in raw_args],
    }


def _map_entry_body(cfg, params: dict) -> str:
    return _clarity_hex_arg(params["map_key"])


# ---------------------------------------------------------------------------
# Handlers (calls that are not a single plain request)
# ---------------------------------------------------------------------------


def _broadcast_transaction(cfg, params: dict) -> dict:
    tx_hex = str(params["tx_hex"]).strip()
    if tx_hex[:2].lower() == "0x":
        tx_hex = tx_hex[2:]
    try:
        tx_bytes = bytes.fromhex(tx_hex)
    except ValueError as exc:
        raise ValueError(f"tx_hex is not valid hex: {exc}") from exc

    result = api_request(cfg, "POST", "/v2/transactions", data=tx_bytes)
    if isinstance(result, str):
        return {"txid": result.strip().strip('"')}
    return result


def _estimate_fee(cfg, params: dict) -> dict:
    info = api_request(cfg, "GET", "/v2/info")
    return {
        "estimatedFee": ESTIMATED_TRANSFER_FEE_STX,
        "estimatedFeeInMicroStx": str(stx_to_micro_stx(ESTIMATED_TRANSFER_FEE_STX)),
        "currentBlockHeight": info.get("stacks_tip_height"),
    }


def _sbtc_balance(cfg, params: dict) -> dict:
    address = quote(str(params["address"]), safe="")
    balances = api_request(cfg, "GET", f"/extended/v1/address/{address}/balances")
    tokens = balances.get("fungible_tokens") or {}
    sbtc = {key: value for key, value in tokens.items() if "sbtc" in key.lower()}
    return {"sbtc_balance": sbtc, "raw_balances": balances}


def _clarity_encode(cfg, params: dict) -> dict:
    clarity_type = params["clarity_type"]
    value = params.get("value")
    return {
        "type": clarity_type,
        "originalValue": value,
        "encodedHex": "0x" + encode_clarity_value(clarity_type, value),
    }


def _clarity_decode(cfg, params: dict) -> dict:
    hex_value = params["hex_value"]
    return {"originalHex": hex_value, "decodedValue": decode_clarity_value(hex_value)}


def _validate_address(cfg, params: dict) -> dict:
    address = params["address"]
    valid = is_valid_stacks_address(address)
    return {
        "address": address,
        "valid": valid,
        "message": "Valid Stacks address" if valid else "Invalid Stacks address format",
    }


def _validate_contract_id(cfg, params: dict) -> dict:
    contract_id = params["contract_id"]
    valid = is_valid_contract_id(contract_id)
    return {
        "contractId": contract_id,
        "valid": valid,
        "message": "Valid contract ID" if valid else "Invalid contract ID format",
    }


def _stx_to_micro(cfg, params: dict) -> dict:
    amount = params["stx_amount"]
    micro = stx_to_micro_stx(amount)
    return {"stx": amount, "microStx": str(micro), "formatted": f"{amount} STX = {micro} µSTX"}


def _micro_to_stx(cfg, params: dict) -> dict:
    amount = params["micro_stx_amount"]
    stx = micro_stx_to_stx(amount)
    return {"microStx": str(amount), "stx": stx, "formatted": f"{amount} µSTX = {stx} STX"}


def _tip_height(data: str, params: dict) -> dict:
    return {"height": int(data)}


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

_PAGE = ("limit", "offset")
_PAGE_DEFAULTS = {"limit": 20, "offset": 0}

RESOURCES: dict[str, dict[str, Endpoint]] = {
    "account": {
        "get_balance": Endpoint(
            "/extended/v1/address/{address}/balances",
            transform=_with_formatted_balance,
            description="STX and token balances, with a formatted STX summary",
        ),
        "get_stx_balance": Endpoint("/extended/v1/address/{address}/stx", description="STX balance"),
        "get_transactions": Endpoint(
            "/extended/v1/address/{address}/transactions",
            optional=_PAGE,
            defaults=_PAGE_DEFAULTS,
            description="Transactions sent or received by the address",
        ),
        "get_assets": Endpoint("/extended/v1/address/{address}/assets", description="Asset events"),
        "get_nonce": Endpoint("/extended/v1/address/{address}/nonces", description="Nonce information"),
        "get_mempool_transactions": Endpoint(
            "/extended/v1/address/{address}/mempool", description="Pending transactions of the address"
        ),
    },
    "transaction": {
        "get_transaction": Endpoint(
            "/extended/v1/tx/{tx_id}", transform=_format_tx, description="Transaction details"
        ),
        "get_raw_transaction": Endpoint("/extended/v1/tx/{tx_id}/raw", description="Raw transaction hex"),
        "list_transactions": Endpoint(
            "/extended/v1/tx",
            optional=(*_PAGE, "tx_type"),
            query={"tx_type": "type"},
            defaults=_PAGE_DEFAULTS,
            description="Recent transactions",
        ),
        "broadcast_transaction": Endpoint(
            method="POST",
            required=("tx_hex",),
            handler=_broadcast_transaction,
            description="Broadcast a signed transaction",
        ),
        "get_mempool_transactions": Endpoint(
            "/extended/v1/tx/mempool", optional=_PAGE, defaults=_PAGE_DEFAULTS, description="Mempool transactions"
        ),
    },
    "token_transfer": {
        "get_balance": Endpoint("/extended/v1/address/{address}/stx", description="STX balance"),
        "get_transfer_history": Endpoint(
            "/extended/v1/address/{address}/transactions",
            optional=("limit",),
            defaults={"limit": 20},
            description="Transaction history of the address",
        ),
        "estimate_fee": Endpoint(handler=_estimate_fee, description="Static transfer fee estimate with tip height"),
    },
    "fungible_token": {
        "get_holdings": Endpoint("/extended/v1/address/{address}/balances", description="Token balances"),
        "get_metadata": Endpoint("/metadata/v1/ft/{contract_id}", description="Token metadata"),
        "get_holders": Endpoint(
            "/extended/v1/tokens/ft/{contract_id}/holders",
            optional=("limit",),
            defaults={"limit": 20},
            description="Token holders",
        ),
    },
    "nft": {
        "get_holdings": Endpoint(
            "/extended/v1/tokens/nft/holdings",
            required=("address",),
            optional=_PAGE,
            query={"address": "principal"},
            defaults={"limit": 50, "offset": 0},
            description="NFTs held by an address",
        ),
        "get_history": Endpoint(
            "/extended/v1/tokens/nft/history",
            required=("asset_identifier", "nft_value"),
            query={"asset_identifier": "asset_identifier", "nft_value": "value"},
            description="Ownership history of one NFT",
        ),
        "get_mints": Endpoint(
            "/extended/v1/tokens/nft/mints",
            required=("asset_identifier",),
            optional=_PAGE,
            query={"asset_identifier": "asset_identifier"},
            defaults={"limit": 50, "offset": 0},
            description="Mint events of an NFT asset",
        ),
    },
    "contract": {
        "get_contract_info": Endpoint("/extended/v1/contract/{contract_id}", description="Contract details"),
        "get_contract_source": Endpoint(
            "/v2/contracts/source/{contract_address}/{contract_name}", description="Clarity source"
        ),
        "get_contract_interface": Endpoint(
            "/v2/contracts/interface/{contract_address}/{contract_name}", description="Contract ABI"
        ),
        "get_contract_events": Endpoint(
            "/extended/v1/contract/{contract_id}/events",
            optional=_PAGE,
            defaults={"limit": 20},
            description="Contract log events",
        ),
        "call_read_only": Endpoint(
            "/v2/contracts/call-read/{contract_address}/{contract_name}/{function_name}",
            method="POST",
            optional=("sender_address", "function_args"),
            body=_read_only_body,
            transform=_decode_hex_field("result"),
            description="Call a read-only function; the result is also decoded",
        ),
        "get_map_entry": Endpoint(
            "/v2/map_entry/{contract_address}/{contract_name}/{map_name}",
            method="POST",
            required=("map_key",),
            body=_map_entry_body,
            transform=_decode_hex_field("data"),
            description="Read a data map entry; the value is also decoded",
        ),
        "get_deployed_contracts": Endpoint(
            "/extended/v1/address/{address}/contracts", description="Contracts deployed by an address"
        ),
    },
    "clarity": {
        "encode": Endpoint(
            required=("clarity_type",),
            optional=("value",),
            handler=_clarity_encode,
            api=API_LOCAL,
            description="Encode a value as Clarity hex",
        ),
        "decode": Endpoint(
            required=("hex_value",),
            handler=_clarity_decode,
            api=API_LOCAL,
            description="Decode Clarity hex",
        ),
    },
    "stacking": {
        "get_pox_info": Endpoint("/v2/pox", description="Current PoX state"),
        "get_pox_cycle": Endpoint("/extended/v1/pox/cycle/{cycle_number}", description="One PoX cycle"),
        "list_pox_cycles": Endpoint(
            "/extended/v1/pox/cycles", optional=("limit",), defaults={"limit": 20}, description="PoX cycles"
        ),
        "get_stacker_info": Endpoint("/extended/v1/pox/stacker/{address}", description="Stacker details"),
    },
    "sbtc": {
        "get_balance": Endpoint(required=("address",), handler=_sbtc_balance, description="sBTC token balances"),
    },
    "block": {
        "get_block": Endpoint("/extended/v1/block/{block_hash_or_height}", description="Block by hash or height"),
        "get_block_by_height": Endpoint(
            "/extended/v1/block/by_height/{block_height}", description="Block by height"
        ),
        "list_blocks": Endpoint(
            "/extended/v1/block", optional=_PAGE, defaults=_PAGE_DEFAULTS, description="Recent blocks"
        ),
        "get_block_transactions": Endpoint(
            "/extended/v1/block/{block_hash_or_height}/txs", description="Transactions in a block"
        ),
        "get_latest_block": Endpoint(
            "/extended/v1/block", query={"limit": "limit"}, defaults={"limit": 1}, description="Latest block"
        ),
    },
    "burn_block": {
        "get_burn_block": Endpoint(
            "/extended/v1/burnchain/block/{height_or_hash}", description="Bitcoin anchor block"
        ),
        "list_burn_blocks": Endpoint(
            "/extended/v1/burnchain/blocks", optional=("limit",), defaults={"limit": 20}, description="Burn blocks"
        ),
    },
    "microblock": {
        "get_microblock": Endpoint("/extended/v1/microblock/{hash}", description="Microblock by hash"),
        "list_microblocks": Endpoint(
            "/extended/v1/microblock", optional=("limit",), defaults={"limit": 20}, description="Recent microblocks"
        ),
        "get_unanchored": Endpoint(
            "/extended/v1/microblock/unanchored/txs", description="Unanchored microblock transactions"
        ),
    },
    "mempool": {
        "get_stats": Endpoint("/extended/v1/tx/mempool/stats", description="Mempool statistics"),
        "get_pending": Endpoint(
            "/extended/v1/tx/mempool", optional=("limit",), defaults={"limit": 20}, description="Pending transactions"
        ),
        "get_dropped": Endpoint("/extended/v1/tx/mempool/dropped", description="Dropped transactions"),
    },
    "names": {
        "get_names_by_address": Endpoint("/v1/addresses/stacks/{address}", description="BNS names owned"),
        "get_name_info": Endpoint("/v1/names/{name}", description="BNS name details"),
        "get_zone_file": Endpoint("/v1/names/{name}/zonefile", description="Zone file of a name"),
        "get_name_price": Endpoint("/v2/prices/names/{name}", description="Registration price"),
        "get_subdomains": Endpoint("/v1/names/{name}/subdomains", description="Subdomains of a name"),
        "list_namespaces": Endpoint("/v1/namespaces", description="All namespaces"),
        "get_namespace_info": Endpoint("/v1/namespaces/{namespace}", description="Namespace details"),
        "list_namespace_names": Endpoint(
            "/v1/namespaces/{namespace}/names",
            optional=("page",),
            defaults={"page": 0},
            description="Names in a namespace",
        ),
    },
    "ordinals": {
        "get_inscription": Endpoint("/ordinals/v1/inscriptions/{inscription_id}", description="Inscription"),
        "list_inscriptions": Endpoint(
            "/ordinals/v1/inscriptions",
            optional=("limit", "address_filter", "mime_type"),
            query={"address_filter": "address"},
            defaults={"limit": 20},
            description="Inscriptions, optionally filtered",
        ),
        "get_inscription_transfers": Endpoint(
            "/ordinals/v1/inscriptions/{inscription_id}/transfers", description="Inscription transfers"
        ),
        "get_satoshi": Endpoint("/ordinals/v1/sats/{satoshi_ordinal}", description="Satoshi details"),
        "list_brc20": Endpoint(
            "/ordinals/v1/brc-20/tokens", optional=("limit",), defaults={"limit": 20}, description="BRC-20 tokens"
        ),
        "get_brc20_token": Endpoint("/ordinals/v1/brc-20/tokens/{brc20_ticker}", description="BRC-20 token"),
        "get_brc20_holders": Endpoint(
            "/ordinals/v1/brc-20/tokens/{brc20_ticker}/holders",
            optional=("limit",),
            defaults={"limit": 20},
            description="BRC-20 holders",
        ),
        "get_brc20_activity": Endpoint(
            "/ordinals/v1/brc-20/activity",
            optional=("limit", "ticker"),
            defaults={"limit": 20},
            description="BRC-20 activity",
        ),
    },
    "search": {
        "search": Endpoint("/extended/v1/search/{search_term}", description="Search by hash, id or address"),
    },
    "info": {
        "get_core_api_info": Endpoint("/v2/info", description="Core node info"),
        "get_network_status": Endpoint("/extended/v1/info/network_block_times", description="Block times"),
        "get_stx_supply": Endpoint("/extended/v1/stx_supply", description="STX supply"),
        "get_circulating_supply": Endpoint(
            "/extended/v1/stx_supply/circulating/plain",
            text=True,
            transform=_wrap("circulating_supply"),
            description="Circulating STX supply",
        ),
        "get_fee_rate": Endpoint("/v2/fees/transfer", transform=_wrap("fee_rate"), description="Fee rate per byte"),
        "get_pox_info": Endpoint("/v2/pox", description="Current PoX state"),
    },
    "rosetta": {
        "get_network_list": Endpoint(
            "/rosetta/v1/network/list",
            method="POST",
            body=lambda cfg, params: {"metadata": {}},
            description="Rosetta networks",
        ),
        "get_network_status": Endpoint(
            "/rosetta/v1/network/status", method="POST", body=_rosetta_network_body, description="Network status"
        ),
        "get_network_options": Endpoint(
            "/rosetta/v1/network/options", method="POST", body=_rosetta_network_body, description="Network options"
        ),
        "get_block": Endpoint(
            "/rosetta/v1/block",
            method="POST",
            required=("block_identifier",),
            body=_rosetta_block_body,
            description="Block by index or hash",
        ),
        "get_account_balance": Endpoint(
            "/rosetta/v1/account/balance",
            method="POST",
            required=("address",),
            body=_rosetta_balance_body,
            description="Account balance",
        ),
        "get_mempool": Endpoint(
            "/rosetta/v1/mempool", method="POST", body=_rosetta_network_body, description="Mempool transaction ids"
        ),
    },
    "utility": {
        "validate_address": Endpoint(
            required=("address",), handler=_validate_address, api=API_LOCAL, description="Check a Stacks address"
        ),
        "validate_contract_id": Endpoint(
            required=("contract_id",),
            handler=_validate_contract_id,
            api=API_LOCAL,
            description="Check a contract identifier",
        ),
        "stx_to_micro": Endpoint(
            required=("stx_amount",), handler=_stx_to_micro, api=API_LOCAL, description="STX to microSTX"
        ),
        "micro_to_stx": Endpoint(
            required=("micro_stx_amount",), handler=_micro_to_stx, api=API_LOCAL, description="microSTX to STX"
        ),
    },
    "bitcoin": {
        "get_tip_height": Endpoint(
            "/blocks/tip/height", text=True, transform=_tip_height, api=API_BITCOIN, description="Chain tip height"
        ),
        "get_block": Endpoint("/block/{block_hash}", api=API_BITCOIN, description="Block by hash"),
        "get_address": Endpoint("/address/{address}", api=API_BITCOIN, description="Address stats"),
        "get_address_utxos": Endpoint("/address/{address}/utxo", api=API_BITCOIN, description="Address UTXOs"),
        "get_transaction": Endpoint("/tx/{txid}", api=API_BITCOIN, description="Transaction details"),
        "get_fee_estimates": Endpoint("/fee-estimates", api=API_BITCOIN, description="Fee estimates by target"),
    },
}


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def get_endpoint(resource: str, operation: str) -> Endpoint:
    endpoint = RESOURCES.get(resource, {}).get(operation)
    if endpoint is None:
        raise ValueError(f"Unknown operation: {resource}.{operation}")
    return endpoint


def list_operations(resource: str) -> list[str]:
    if resource not in RESOURCES:
        raise ValueError(f"Unknown resource: {resource}")
    return list(RESOURCES[resource])


def _prepare_params(endpoint: Endpoint, params: dict | None) -> dict[str, Any]:
    values = {**endpoint.defaults}
    for key, value in (params or {}).items():
        # empty strings fall back to defaults
        if value is None or (value == "" and key in endpoint.defaults):
            continue
        values[key] = value

    for name in endpoint.required_params:
        if values.get(name, "") == "":
            raise ValueError(f"Missing required parameter: {name}")

    if any(part in endpoint.path for part in ("{contract_address}", "{contract_name}")):
        parts = parse_contract_id(str(values["contract_id"]))
        values["contract_address"] = parts["address"]
        values["contract_name"] = parts["name"]

    return values


def _query_params(endpoint: Endpoint, values: dict) -> dict[str, Any] | None:
    if endpoint.method != "GET":
        return None
    names = [*endpoint.query]
    names.extend(name for name in endpoint.optional if name not in names)
    query = {
        endpoint.query.get(name, name): values[name]
        for name in names
        if values.get(name) not in (None, "")
    }
    return query or None


def _call(endpoint: Endpoint, cfg, values: dict) -> Any:
    if endpoint.handler is not None:
        return endpoint.handler(cfg, values)

    path = endpoint.path.format(**{key: quote(str(value), safe="") for key, value in values.items()})
    json_body = endpoint.body(cfg, values) if endpoint.body is not None else None
    return api_request(
        cfg,
        endpoint.method,
        path,
        params=_query_params(endpoint, values),
        json_body=json_body,
        text=endpoint.text,
    )


def execute_operation(
    cfg,
    resource: str,
    operation: str,
    params: dict | None = None,
    item_index: int = 0,
    split_results: bool = False,
) -> list[dict[str, Any]]:
    """
    Run one operation and return host items.

    cfg is a HiroConfig for Stacks resources, a BitcoinConfig for the
    bitcoin resource and may be None for local operations. With
    split_results, list responses that carry "results" become one item per
    result, the first carrying "_pagination".
    """
    endpoint = get_endpoint(resource, operation)
    values = _prepare_params(endpoint, params)

    logger.debug("Executing %s.%s", resource, operation)
    data = _call(endpoint, cfg, values)
    if endpoint.transform is not None:
        data = endpoint.transform(data, values)

    if split_results and isinstance(data, dict) and isinstance(data.get("results"), list):
        if not data["results"]:
            return empty_response(item_index)
        return format_paginated_response(data, item_index)
    return format_response(data, item_index)
