"""
HTTP transport for the Hiro and Esplora APIs.

One entry point, api_request, used by every remote operation. HTTP and
connection failures are translated into StacksApiError.
"""

from __future__ import annotations

import logging
from typing import Any, Union

import requests

from stx_config import BitcoinConfig, HiroConfig

logger = logging.getLogger(__name__)

ApiConfig = Union[HiroConfig, BitcoinConfig]


class StacksApiError(RuntimeError):
    """Raised when an API request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_detail(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message") or body.get("reason")
        if detail:
            return str(detail)
    return resp.text or f"HTTP {resp.status_code}"


def _parse_body(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        # Esplora returns some values (tip height, raw ids) as plain text
        return resp.text.strip()


def api_request(
    cfg: ApiConfig,
    method: str,
    path: str,
    params: dict | None = None,
    json_body: Any = None,
    data: bytes | None = None,
    text: bool = False,
) -> Any:
    """
    Send a request to cfg.base_url + path and return the decoded body.

    json_body is sent as JSON; data is sent as application/octet-stream.
    With text=True the body is returned as a stripped string instead of
    being parsed as JSON (plain-text supply and tip-height endpoints).
    """
    url = f"{cfg.base_url}{path}"
    headers = cfg.headers()
    if data is not None:
        headers["Content-Type"] = "application/octet-stream"

    if params:
        params = {key: value for key, value in params.items() if value is not None and value != ""}

    logger.debug("%s %s params=%s", method.upper(), url, params)
    try:
        resp = requests.request(
            method.upper(),
            url,
            params=params or None,
            json=json_body,
            data=data,
            headers=headers,
            timeout=cfg.timeout,
        )
    except requests.RequestException as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        raise StacksApiError(f"Request to {url} failed: {exc}") from exc

    if not resp.ok:
        detail = _error_detail(resp)
        logger.warning("API error %s for %s: %s", resp.status_code, url, detail)
        raise StacksApiError(
            f"Stacks API Error ({resp.status_code}): {detail}",
            status_code=resp.status_code,
        )

    if text:
        return resp.text.strip()
    return _parse_body(resp)
