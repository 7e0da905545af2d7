"""Unit tests for the polling trigger."""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import stx_trigger  # noqa: E402
from stx_config import HiroConfig  # noqa: E402
from stx_trigger import poll_trigger  # noqa: E402

ADDR = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"
CONTRACT = "SP000000000000000000002Q6VF78.pox"
CFG = HiroConfig(base_url="https://api.test", network="mainnet")


def _mock_api(monkeypatch, responses):
    """responses maps a path to a value, or to a list returned on successive calls."""
    calls = []

    def fake_api_request(cfg, method, path, params=None, json_body=None, data=None, text=False):
        calls.append({"path": path, "params": params})
        value = responses[path]
        if isinstance(value, list):
            return value.pop(0)
        return value

    monkeypatch.setattr(stx_trigger, "api_request", fake_api_request)
    return calls


def _txs(*tx_ids, tx_type="token_transfer"):
    return {"results": [{"tx_id": tx_id, "tx_type": tx_type} for tx_id in tx_ids]}


def test_unknown_event():
    with pytest.raises(ValueError, match="Unknown event type: solar_flare"):
        poll_trigger(CFG, "solar_flare", {})


def test_new_block_fires_on_height_increase(monkeypatch):
    calls = _mock_api(
        monkeypatch,
        {
            "/extended/v2/blocks": [
                {"results": [{"height": 10}]},
                {"results": [{"height": 10}]},
                {"results": [{"height": 11}]},
            ]
        },
    )
    state = {}
    items = poll_trigger(CFG, "new_block", state)
    assert items == [{"json": {"height": 10}, "pairedItem": {"item": 0}}]
    assert state == {"last_block_height": 10}
    assert calls[0]["params"] == {"limit": 1}

    assert poll_trigger(CFG, "new_block", state) is None
    assert poll_trigger(CFG, "new_block", state)[0]["json"]["height"] == 11
    assert state["last_block_height"] == 11


def test_new_block_empty_results(monkeypatch):
    _mock_api(monkeypatch, {"/extended/v2/blocks": {"results": []}})
    state = {}
    assert poll_trigger(CFG, "new_block", state) is None
    assert state == {}


def test_new_block_without_height_is_skipped(monkeypatch):
    _mock_api(
        monkeypatch,
        {"/extended/v2/blocks": [{"results": [{"hash": "0xaa"}]}, {"results": [{"height": 12}]}]},
    )
    state = {"last_block_height": 11}
    assert poll_trigger(CFG, "new_block", state) is None
    assert state == {"last_block_height": 11}
    assert poll_trigger(CFG, "new_block", state)[0]["json"]["height"] == 12


def test_new_microblock_fires_on_hash_change(monkeypatch):
    _mock_api(
        monkeypatch,
        {
            "/extended/v1/microblock": [
                {"results": [{"microblock_hash": "0xaa"}]},
                {"results": [{"microblock_hash": "0xaa"}]},
                {"results": [{"microblock_hash": "0xbb"}]},
            ]
        },
    )
    state = {}
    assert poll_trigger(CFG, "new_microblock", state) is not None
    assert poll_trigger(CFG, "new_microblock", state) is None
    assert poll_trigger(CFG, "new_microblock", state) is not None
    assert state["last_microblock_hash"] == "0xbb"


def test_address_transaction_returns_only_newer(monkeypatch):
    path = f"/extended/v1/address/{ADDR}/transactions"
    calls = _mock_api(monkeypatch, {path: [_txs("0x3", "0x2", "0x1"), _txs("0x5", "0x4", "0x3", "0x2")]})
    state = {}
    items = poll_trigger(CFG, "address_transaction", state, address=ADDR)
    assert [item["json"]["tx_id"] for item in items] == ["0x3", "0x2", "0x1"]
    assert state["last_tx_id"] == "0x3"
    assert calls[0]["params"] == {"limit": 5}

    items = poll_trigger(CFG, "address_transaction", state, address=ADDR)
    assert [item["json"]["tx_id"] for item in items] == ["0x5", "0x4"]
    assert state["last_tx_id"] == "0x5"


def test_address_transaction_requires_address():
    with pytest.raises(ValueError, match="address is required"):
        poll_trigger(CFG, "address_transaction", {})


def test_contract_event_uses_event_index(monkeypatch):
    path = f"/extended/v1/contract/{CONTRACT}/events"
    events = {"results": [{"event_index": 7}, {"event_index": 5}, {"event_index": 3}]}
    _mock_api(monkeypatch, {path: events})
    state = {"last_event_index": 5}
    items = poll_trigger(CFG, "contract_event", state, contract_id=CONTRACT)
    assert [item["json"]["event_index"] for item in items] == [7]
    assert state["last_event_index"] == 7
    assert poll_trigger(CFG, "contract_event", state, contract_id=CONTRACT) is None


def test_contract_event_rejects_bad_contract_id():
    with pytest.raises(ValueError, match="Invalid contract identifier"):
        poll_trigger(CFG, "contract_event", {}, contract_id="nope")


def test_stx_transfer_filters_token_transfers(monkeypatch):
    path = f"/extended/v1/address/{ADDR}/transactions"
    results = {
        "results": [
            {"tx_id": "0x3", "tx_type": "contract_call"},
            {"tx_id": "0x2", "tx_type": "token_transfer"},
            {"tx_id": "0x1", "tx_type": "token_transfer"},
        ]
    }
    calls = _mock_api(monkeypatch, {path: results})
    state = {"last_transfer_id": "0x1"}
    items = poll_trigger(CFG, "stx_transfer", state, address=ADDR)
    assert [item["json"]["tx_id"] for item in items] == ["0x2"]
    assert state["last_transfer_id"] == "0x2"
    assert calls[0]["params"] == {"limit": 10}


def test_mempool_activity_remembers_seen_ids(monkeypatch):
    _mock_api(monkeypatch, {"/extended/v1/tx/mempool": [_txs("0xb", "0xa"), _txs("0xb", "0xa"), _txs("0xc", "0xb")]})
    state = {}
    assert len(poll_trigger(CFG, "mempool_activity", state)) == 2
    assert poll_trigger(CFG, "mempool_activity", state) is None
    items = poll_trigger(CFG, "mempool_activity", state)
    assert [item["json"]["tx_id"] for item in items] == ["0xc"]
    assert state["seen_mempool_tx_ids"] == ["0xc", "0xb", "0xa"]


def test_mempool_activity_caps_seen_ids(monkeypatch):
    _mock_api(monkeypatch, {"/extended/v1/tx/mempool": _txs("0xnew")})
    state = {"seen_mempool_tx_ids": [f"0x{i}" for i in range(60)]}
    poll_trigger(CFG, "mempool_activity", state)
    assert len(state["seen_mempool_tx_ids"]) == stx_trigger.MEMPOOL_SEEN_LIMIT
    assert state["seen_mempool_tx_ids"][0] == "0xnew"


def test_stacking_event_fires_on_cycle_change(monkeypatch):
    _mock_api(monkeypatch, {"/v2/pox": [{"current_cycle": {"id": 80}}, {"current_cycle": {"id": 80}}]})
    state = {}
    items = poll_trigger(CFG, "stacking_event", state)
    assert items[0]["json"]["current_cycle"]["id"] == 80
    assert state["last_cycle_id"] == 80
    assert poll_trigger(CFG, "stacking_event", state) is None
