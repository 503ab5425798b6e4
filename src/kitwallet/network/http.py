"""HTTP client of the ledger network.

Every request is signed with HMAC-SHA256 over
``METHOD + path?query + expires + body`` using the exchange's API secret.
"""

import hashlib
import hmac
import json
import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import httpx

from kitwallet.errors import NetworkRequestError
from kitwallet.network.base import NetworkClient, RecordPage, TransactionPage

logger = logging.getLogger(__name__)

# Seconds a signed request stays valid
SIGNATURE_TTL = 60


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _clean_params(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset filters and stringify the rest."""
    return {key: _query_value(value) for key, value in params.items() if value is not None}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def create_signature(secret: str, method: str, path: str, expires: int, body: str = "") -> str:
    """HMAC-SHA256 hex signature of a network request."""
    message = f"{method.upper()}{path}{expires}{body}"
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class HttpNetworkClient(NetworkClient):
    """Ledger network client over HTTPS."""

    def __init__(
        self,
        base_url: str,
        exchange_id: int,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client.

        Args:
            base_url: Network API root, e.g. https://api.network.example/v2
            exchange_id: Id of this exchange on the network
            api_key: Exchange API key
            api_secret: Exchange API secret used for signing
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.exchange_id = exchange_id
        self.api_key = api_key
        self.api_secret = api_secret
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    def _path(self, suffix: str) -> str:
        return f"/network/{self.exchange_id}/{suffix}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        content = json.dumps(body, default=_json_default) if body is not None else ""
        request = self._client.build_request(
            method,
            f"{self.base_url}{path}",
            params=_clean_params(params or {}),
            content=content or None,
            headers={"Content-Type": "application/json"} if content else None,
        )

        expires = int(time.time()) + SIGNATURE_TTL
        signed_path = request.url.raw_path.decode()
        request.headers["api-key"] = self.api_key
        request.headers["api-expires"] = str(expires)
        request.headers["api-signature"] = create_signature(
            self.api_secret, method, signed_path, expires, content
        )

        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            logger.error(f"Network request {method} {path} failed: {e}")
            raise NetworkRequestError(f"Network request failed: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.error(f"Network returned {response.status_code} for {method} {path}: {message}")
            raise NetworkRequestError(message, status_code=response.status_code)

        if not response.content:
            return {}
        return response.json()

    # Balances

    async def get_user_balance(self, network_id: int) -> dict[str, Any]:
        return await self._request("GET", self._path("balance"), params={"user_id": network_id})

    async def get_balance(self) -> dict[str, Any]:
        return await self._request("GET", self._path("balance"))

    # History

    async def get_user_withdrawals(self, network_id: int, **filters: Any) -> TransactionPage:
        data = await self._request(
            "GET", self._path("withdrawals"), params={"user_id": network_id, **filters}
        )
        return TransactionPage.model_validate(data)

    async def get_user_deposits(self, network_id: int, **filters: Any) -> TransactionPage:
        data = await self._request(
            "GET", self._path("deposits"), params={"user_id": network_id, **filters}
        )
        return TransactionPage.model_validate(data)

    async def get_withdrawals(self, **filters: Any) -> TransactionPage:
        data = await self._request("GET", self._path("withdrawals"), params=filters)
        return TransactionPage.model_validate(data)

    async def get_deposits(self, **filters: Any) -> TransactionPage:
        data = await self._request("GET", self._path("deposits"), params=filters)
        return TransactionPage.model_validate(data)

    async def get_exchange_wallets(self, **filters: Any) -> RecordPage:
        data = await self._request("GET", self._path("wallets"), params=filters)
        return RecordPage.model_validate(data)

    # Movements

    async def perform_withdrawal(
        self,
        network_id: int,
        address: str,
        currency: str,
        amount: Decimal,
        network: Optional[str] = None,
    ) -> dict[str, Any]:
        body = {"address": address, "currency": currency, "amount": amount}
        if network:
            body["network"] = network
        return await self._request(
            "POST", self._path("withdraw"), params={"user_id": network_id}, body=body
        )

    async def cancel_withdrawal(self, network_id: int, withdrawal_id: str) -> dict[str, Any]:
        return await self._request(
            "DELETE",
            self._path("withdraw"),
            params={"user_id": network_id, "id": withdrawal_id},
        )

    async def transfer_asset(
        self,
        sender_id: int,
        receiver_id: int,
        currency: str,
        amount: Decimal,
        description: str = "Admin Transfer",
        email: bool = True,
        transaction_id: Optional[str] = None,
    ) -> dict[str, Any]:
        body = {
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "currency": currency,
            "amount": amount,
            "description": description,
            "email": email,
        }
        if transaction_id:
            body["transaction_id"] = transaction_id
        return await self._request("POST", self._path("transfer"), body=body)

    async def mint_asset(
        self, network_id: int, currency: str, amount: Decimal, **opts: Any
    ) -> dict[str, Any]:
        body = {"user_id": network_id, "currency": currency, "amount": amount, **opts}
        return await self._request("POST", self._path("mint"), body=body)

    async def update_pending_mint(self, transaction_id: str, **opts: Any) -> dict[str, Any]:
        body = {"transaction_id": transaction_id, **opts}
        return await self._request("PUT", self._path("mint"), body=body)

    async def burn_asset(
        self, network_id: int, currency: str, amount: Decimal, **opts: Any
    ) -> dict[str, Any]:
        body = {"user_id": network_id, "currency": currency, "amount": amount, **opts}
        return await self._request("POST", self._path("burn"), body=body)

    async def update_pending_burn(self, transaction_id: str, **opts: Any) -> dict[str, Any]:
        body = {"transaction_id": transaction_id, **opts}
        return await self._request("PUT", self._path("burn"), body=body)

    async def check_transaction(
        self,
        currency: str,
        transaction_id: str,
        address: str,
        network: Optional[str],
        is_testnet: bool = False,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            self._path("check-transaction"),
            params={
                "currency": currency,
                "transaction_id": transaction_id,
                "address": address,
                "network": network,
                "is_testnet": is_testnet,
            },
        )

    # Oracle

    async def get_oracle_prices(
        self, assets: list[str], quote: str, amount: Decimal = Decimal("1")
    ) -> dict[str, Decimal]:
        data = await self._request(
            "GET",
            "/oracle/prices",
            params={"assets": ",".join(assets), "quote": quote, "amount": amount},
        )
        return {asset: Decimal(str(price)) for asset, price in data.items()}
