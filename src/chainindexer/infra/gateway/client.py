"""Chain gateway REST client, used by the balance reconciliation tool."""

import logging
from typing import Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from chainindexer.exceptions import ExternalServiceError
from chainindexer.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

ALL_TOKENS_ENDPOINT = "/address/{address}/dcdt"
TOKEN_ENDPOINT = "/address/{address}/dcdt/{token}"
NFT_ENDPOINT = "/address/{address}/nft/{token}/nonce/{nonce}"


def split_identifier(identifier: str) -> tuple[str, int]:
    """``TKN-abcd-0a`` -> (``TKN-abcd``, 10); fungible identifiers have nonce 0."""
    parts = identifier.split("-")
    if len(parts) < 3:
        return identifier, 0
    try:
        return "-".join(parts[:-1]), int(parts[-1], 16)
    except ValueError:
        return identifier, 0


class GatewayClient:
    def __init__(self, http_client: RateLimitedClient) -> None:
        self._http = http_client

    @retry(
        retry=retry_if_exception_type(ExternalServiceError),
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=2, min=3, max=30),
    )
    async def _call(self, path: str) -> dict[str, Any]:
        payload = await self._http.get_json(path)
        if payload.get("error"):
            raise ExternalServiceError(f"gateway error for {path}: {payload['error']}")
        return payload.get("data") or {}

    async def get_token_balances(self, address: str) -> dict[str, str]:
        """All token balances of ``address``, keyed by token identifier."""
        data = await self._call(ALL_TOKENS_ENDPOINT.format(address=address))
        tokens = data.get("dcdts") or {}
        return {identifier: (token or {}).get("balance", "0") for identifier, token in tokens.items()}

    async def get_token_balance(self, address: str, identifier: str) -> str:
        token, nonce = split_identifier(identifier)
        if nonce:
            path = NFT_ENDPOINT.format(address=address, token=token, nonce=nonce)
        else:
            path = TOKEN_ENDPOINT.format(address=address, token=token)
        data = await self._call(path)
        return (data.get("tokenData") or {}).get("balance", "0")
