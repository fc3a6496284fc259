# vault/faucet.py

import logging

import aiohttp
from typeguard import typechecked

logger = logging.getLogger(__name__)


class FaucetNotifier:
    """
    ``on_create`` hook for a KeyManager: tells the faucet service about every
    newly created address so it can fund it.
    """

    @typechecked
    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __call__(self, user_id: str, address: str) -> None:
        payload = {"user_id": user_id, "address": address}
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(self.url, json=payload) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise aiohttp.ClientResponseError(
                        response.request_info,
                        response.history,
                        status=response.status,
                        message=text,
                    )
        logger.info(f"[faucet] notified user={user_id} address={address}")
