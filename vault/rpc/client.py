# vault/rpc/client.py

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
from typeguard import typechecked

from ..errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

GET_ACCOUNT = "theta.GetAccount"
BROADCAST_RAW_TRANSACTION = "theta.BroadcastRawTransaction"


@dataclass
class RPCError:
    code: int
    message: str
    data: Any = None


@dataclass
class RPCResponse:
    result: Any = None
    error: Optional[RPCError] = None
    id: Any = None

    @classmethod
    def from_dict(cls, body: dict) -> "RPCResponse":
        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                error = RPCError(
                    code=int(error.get("code", 0)),
                    message=str(error.get("message", "")),
                    data=error.get("data"),
                )
            else:
                error = RPCError(code=0, message=str(error))
        return cls(result=body.get("result"), error=error, id=body.get("id"))


class UpstreamClient:
    """
    JSON-RPC 2.0 client for the upstream node. One instance is shared by the
    whole process: it is created at startup, handed to the gateway handler and
    closed at shutdown.

    Only transport failures raise (UpstreamUnavailableError). Errors reported by
    the node come back in ``RPCResponse.error`` for the caller to interpret.
    """

    @typechecked
    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    @typechecked
    async def call(self, method: str, params: Optional[dict] = None) -> RPCResponse:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
            "id": next(self._ids),
        }
        session = self._get_session()
        try:
            async with session.post(self.url, json=payload) as response:
                body_text = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Request %s to %s failed: %s", method, self.url, e)
            raise UpstreamUnavailableError(f"{method}: {e}") from e

        try:
            body = json.loads(body_text)
        except json.JSONDecodeError as e:
            logger.error(
                "Request %s to %s failed: status=%s, body=%s",
                method, self.url, status, body_text
            )
            raise UpstreamUnavailableError(f"{method}: HTTP {status}, non-JSON response") from e

        if not isinstance(body, dict) or ("result" not in body and "error" not in body):
            logger.error("Unexpected response format from %s: %s", self.url, body)
            raise UpstreamUnavailableError(f"{method}: HTTP {status}, unexpected response format")

        try:
            return RPCResponse.from_dict(body)
        except (TypeError, ValueError) as e:
            logger.error("Malformed error object from %s: %s", self.url, body.get("error"))
            raise UpstreamUnavailableError(f"{method}: HTTP {status}, malformed error object") from e

    @typechecked
    async def get_account(self, address: str) -> RPCResponse:
        return await self.call(GET_ACCOUNT, {"address": address})

    @typechecked
    async def broadcast_raw_transaction(self, tx_bytes: str) -> RPCResponse:
        return await self.call(BROADCAST_RAW_TRANSACTION, {"tx_bytes": tx_bytes})

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
