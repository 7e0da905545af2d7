"""
Connection settings for the Stacks and Bitcoin explorer APIs.

Values come from environment variables (a .env file next to the server is
loaded by the server at import time).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

StacksNetwork = Literal["mainnet", "testnet"]

# Hiro API base URLs
HIRO_MAINNET = "https://api.mainnet.hiro.so"
HIRO_TESTNET = "https://api.testnet.hiro.so"
HIRO_DEVNET = "http://localhost:3999"

HIRO_ENDPOINTS = {
    "mainnet": HIRO_MAINNET,
    "testnet": HIRO_TESTNET,
    "devnet": HIRO_DEVNET,
}

# Esplora-compatible Bitcoin APIs
BITCOIN_PROVIDERS = {
    "blockstream": {
        "mainnet": "https://blockstream.info/api",
        "testnet": "https://blockstream.info/testnet/api",
    },
    "mempool": {
        "mainnet": "https://mempool.space/api",
        "testnet": "https://mempool.space/testnet/api",
    },
}

DEFAULT_TIMEOUT = 15.0


class StacksConfigError(RuntimeError):
    """Raised when environment settings are missing or invalid."""

    pass


def _timeout_from_env() -> float:
    raw = os.getenv("STACKS_API_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise StacksConfigError(f"STACKS_API_TIMEOUT must be a number, got {raw!r}") from exc
    if timeout <= 0:
        raise StacksConfigError("STACKS_API_TIMEOUT must be positive")
    return timeout


@dataclass
class HiroConfig:
    """Configuration for Hiro Stacks API access."""

    base_url: str
    network: StacksNetwork
    api_key: str = ""
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> HiroConfig:
        """Build HiroConfig from environment variables."""
        endpoint = os.getenv("HIRO_API_ENDPOINT", "mainnet").strip().lower() or "mainnet"

        if endpoint == "custom":
            base_url = os.getenv("HIRO_CUSTOM_ENDPOINT", "").strip()
            if not base_url:
                raise StacksConfigError(
                    "HIRO_CUSTOM_ENDPOINT is required when HIRO_API_ENDPOINT=custom. "
                    "Set it in your environment or .env file."
                )
            raw_network = os.getenv("STACKS_NETWORK", "mainnet").lower()
            network: StacksNetwork = "testnet" if raw_network == "testnet" else "mainnet"
        elif endpoint in HIRO_ENDPOINTS:
            base_url = HIRO_ENDPOINTS[endpoint]
            # devnet speaks the testnet address and rosetta network
            network = "mainnet" if endpoint == "mainnet" else "testnet"
        else:
            raise StacksConfigError(
                f"Unknown HIRO_API_ENDPOINT: {endpoint!r} "
                f"(expected one of: {', '.join([*HIRO_ENDPOINTS, 'custom'])})"
            )

        return cls(
            base_url=base_url.rstrip("/"),
            network=network,
            api_key=os.getenv("HIRO_API_KEY", "").strip(),
            timeout=_timeout_from_env(),
        )

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-hiro-api-key"] = self.api_key
        return headers


@dataclass
class BitcoinConfig:
    """Configuration for the Esplora-style Bitcoin explorer API."""

    base_url: str
    network: StacksNetwork
    provider: str = "blockstream"
    api_key: str = ""
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> BitcoinConfig:
        """Build BitcoinConfig from environment variables."""
        provider = os.getenv("BITCOIN_API_PROVIDER", "blockstream").strip().lower() or "blockstream"
        raw_network = os.getenv("BITCOIN_NETWORK", "mainnet").lower()
        network: StacksNetwork = "testnet" if raw_network == "testnet" else "mainnet"

        if provider == "custom":
            base_url = os.getenv("BITCOIN_CUSTOM_URL", "").strip()
            if not base_url:
                raise StacksConfigError(
                    "BITCOIN_CUSTOM_URL is required when BITCOIN_API_PROVIDER=custom."
                )
        elif provider in BITCOIN_PROVIDERS:
            base_url = BITCOIN_PROVIDERS[provider][network]
        else:
            raise StacksConfigError(
                f"Unknown BITCOIN_API_PROVIDER: {provider!r} "
                f"(expected one of: {', '.join([*BITCOIN_PROVIDERS, 'custom'])})"
            )

        return cls(
            base_url=base_url.rstrip("/"),
            network=network,
            provider=provider,
            api_key=os.getenv("BITCOIN_API_KEY", "").strip(),
            timeout=_timeout_from_env(),
        )

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers
