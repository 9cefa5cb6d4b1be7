"""Wallet provider boundary.

Everything chain-facing goes through ``request(method, params)``, the
EIP-1193 shape exposed by browser wallets and embedded-wallet SDKs. The
JSON-RPC implementation below forwards calls to a node over HTTP, which is
enough for node-managed signer accounts (local devnets, custodial relays).
"""
from __future__ import annotations

import itertools
import logging
from typing import Any, Optional, Protocol, Sequence

import httpx

log = logging.getLogger(__name__)


class ProviderRpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __repr__(self) -> str:
        return f"ProviderRpcError(code={self.code}, message={self.message!r})"


class WalletProvider(Protocol):
    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any: ...


def to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    s = str(value).strip().lower()
    return int(s, 16) if s.startswith("0x") else int(s)


class JsonRpcProvider:
    """WalletProvider backed by a JSON-RPC endpoint via ``httpx``."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )

    @property
    def url(self) -> str:
        return self._url

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params or [])}
        log.debug("rpc -> %s %s", method, payload["id"])
        try:
            resp = await self._client.post(self._url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderRpcError(-32603, f"{method} transport error: {exc}") from exc
        try:
            body = resp.json()
        except ValueError as exc:
            raise ProviderRpcError(-32700, f"{method} invalid JSON-RPC response: {exc}") from exc
        if not isinstance(body, dict):
            raise ProviderRpcError(-32700, f"{method} invalid JSON-RPC response: expected an object")
        err = body.get("error")
        if err:
            raise ProviderRpcError(int(err.get("code", -32603)), str(err.get("message", "")), err.get("data"))
        return body.get("result")

    async def close(self) -> None:
        await self._client.aclose()
