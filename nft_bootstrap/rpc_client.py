"""Async JSON-RPC client for the target EVM network.

Wraps the handful of Ethereum JSON-RPC methods the pipeline uses for its
advisory checks (``eth_chainId``, ``eth_getCode``) with timeout handling and
structured responses.  Nothing here ever fails the pipeline: callers get an
``RpcResponse`` with ``success=False`` instead of an exception.

Typical usage::

    client = RpcClient("https://json-rpc.testnet.swisstronik.com/")
    chain_id = await client.chain_id()
    deployed = await client.has_code("0x5FbDB2315678afecb367f032d93F642f64180aa3")
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx
from pydantic import BaseModel, Field


class RpcResponse(BaseModel):
    """Structured response from a JSON-RPC call."""

    result: Any = Field(default=None, description="Decoded ``result`` member")
    success: bool = Field(default=True, description="Whether the call succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class RpcClient:
    """Minimal async JSON-RPC 2.0 client over ``httpx.AsyncClient``."""

    def __init__(self, url: str, timeout: int = 10) -> None:
        self.url = url
        self.timeout = timeout
        self._ids = itertools.count(1)

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our timeout."""
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=5.0))

    async def call(self, method: str, params: list[Any] | None = None) -> RpcResponse:
        """Invoke *method* and return its result or a failure description."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            async with self._client() as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.ConnectError:
            return RpcResponse(success=False, error=f"Cannot connect to {self.url}")
        except httpx.TimeoutException:
            return RpcResponse(
                success=False, error=f"Request to {self.url} timed out after {self.timeout}s."
            )
        except httpx.HTTPStatusError as exc:
            return RpcResponse(
                success=False,
                error=f"RPC returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except Exception as exc:  # noqa: BLE001
            return RpcResponse(success=False, error=f"Unexpected error calling {method}: {exc}")

        if not isinstance(data, dict):
            return RpcResponse(success=False, error=f"Malformed JSON-RPC response: {data!r}")
        if data.get("error"):
            err = data["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            return RpcResponse(success=False, error=f"{method} failed: {message}")
        return RpcResponse(result=data.get("result"))

    async def chain_id(self) -> int | None:
        """Chain id as an integer, or ``None`` if it cannot be fetched."""
        response = await self.call("eth_chainId")
        if not response.success or not isinstance(response.result, str):
            return None
        try:
            return int(response.result, 16)
        except ValueError:
            return None

    async def has_code(self, address: str) -> bool:
        """Return ``True`` if a contract is deployed at *address*."""
        response = await self.call("eth_getCode", [address, "latest"])
        if not response.success or not isinstance(response.result, str):
            return False
        return response.result not in ("", "0x", "0x0")
