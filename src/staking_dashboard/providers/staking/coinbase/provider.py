"""Coinbase Developer Platform (CDP) staking client."""
import hashlib
import hmac
import logging
import time
from decimal import Decimal

import httpx

from staking_dashboard.providers.staking.staking_provider_abc import (
    ProviderStake, StakingProviderABC, ValidatorInfo, to_wei)

logger = logging.getLogger(__name__)


class CoinbaseStakingProvider(StakingProviderABC):
    """Staking provider backed by the CDP staking REST API.

    Every request is signed with HMAC-SHA256 over
    ``timestamp + METHOD + path + body`` using the API secret.
    """

    PRODUCTION_URL = "https://api.coinbase.com/v2/cloud/staking"
    SANDBOX_URL = "https://api-sandbox.coinbase.com/v2/cloud/staking"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        environment: str = "sandbox",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_secret = api_secret
        base = self.PRODUCTION_URL if environment == "production" else self.SANDBOX_URL
        self._client = httpx.AsyncClient(
            base_url=base,
            headers={"CB-ACCESS-KEY": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
            event_hooks={"request": [self._sign_request]},
        )

    def sign(self, message: str) -> str:
        return hmac.new(
            self._api_secret.encode(), message.encode(), hashlib.sha256
        ).hexdigest()

    async def _sign_request(self, request: httpx.Request) -> None:
        timestamp = str(int(time.time()))
        body = request.content.decode() if request.content else ""
        path = request.url.raw_path.decode()
        request.headers["CB-ACCESS-TIMESTAMP"] = timestamp
        request.headers["CB-ACCESS-SIGN"] = self.sign(
            f"{timestamp}{request.method.upper()}{path}{body}"
        )

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        response = await self._client.request(method, url, **kwargs)
        if response.is_error:
            logger.error(
                "CDP API error: %s %s -> %s %s",
                method,
                url,
                response.status_code,
                response.text[:200],
            )
        response.raise_for_status()
        return response.json()

    async def create_stake(self, amount: Decimal, protocol: str = "eth2") -> ProviderStake:
        data = await self._request(
            "POST", "/stakes", json={"protocol": protocol, "amount": to_wei(amount)}
        )
        return ProviderStake(
            id=str(data.get("stake_id") or data["id"]),
            status=str(data.get("status", "PENDING")),
            amount=str(data.get("amount", to_wei(amount))),
            validator_id=data.get("validator_id"),
        )

    async def get_stake(self, stake_id: str) -> ProviderStake:
        data = await self._request("GET", f"/stakes/{stake_id}")
        return ProviderStake.model_validate(data)

    async def list_stakes(self) -> list[ProviderStake]:
        data = await self._request("GET", "/stakes")
        items = data.get("data", []) if isinstance(data, dict) else data
        return [ProviderStake.model_validate(item) for item in items]

    async def get_validator(self, validator_id: str) -> ValidatorInfo:
        data = await self._request("GET", f"/validators/{validator_id}")
        return ValidatorInfo.model_validate(data)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
