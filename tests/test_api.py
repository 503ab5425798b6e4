"""Tests for the FastAPI endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from kitwallet.api.app import create_app
from kitwallet.coins import KitConfig
from kitwallet.errors import NetworkRequestError

BTC_ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"


@pytest.fixture
async def test_app(service):
    """Create test application wired to the test wallet service."""
    app = create_app()
    app.state.wallet_service = service
    yield app
    await service.wait_for_mails()


@pytest.fixture
async def client(test_app):
    """Create async test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def funded_user(make_user, network):
    network.balances[1001] = {"btc_available": "1"}
    return await make_user("alice@example.com", network_id=1001)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "kitwallet"

    @pytest.mark.asyncio
    async def test_detailed_health(self, client):
        response = await client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert "config" in data
        assert data["config"]["network"]["api_secret"] in ("***", "(not set)")


class TestWithdrawalEndpoints:
    """Tests for withdrawal endpoints."""

    @pytest.mark.asyncio
    async def test_validate_address(self, client):
        response = await client.post(
            "/api/v1/withdrawals/validate-address",
            json={"currency": "btc", "address": BTC_ADDRESS},
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True

    @pytest.mark.asyncio
    async def test_fee(self, client, funded_user):
        response = await client.post(
            "/api/v1/withdrawals/fee",
            json={"user_id": funded_user.id, "currency": "btc", "amount": "0.5"},
        )

        assert response.status_code == 200
        assert response.json() == {"currency": "btc", "fee": "0.0001", "fee_coin": "btc"}

    @pytest.mark.asyncio
    async def test_request_and_confirm(self, client, service, funded_user, mailer, network):
        response = await client.post(
            "/api/v1/withdrawals/request",
            json={
                "user_id": funded_user.id,
                "address": BTC_ADDRESS,
                "amount": "0.5",
                "currency": "btc",
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "pending_confirmation"

        await service.wait_for_mails()
        token = mailer.sent[0]["data"]["transaction_id"]

        response = await client.post("/api/v1/withdrawals/confirm", json={"token": token})

        assert response.status_code == 200
        assert network.calls[-1][0] == "perform_withdrawal"

    @pytest.mark.asyncio
    async def test_wallet_error_is_bad_request(self, client, funded_user):
        response = await client.post(
            "/api/v1/withdrawals/request",
            json={
                "user_id": funded_user.id,
                "address": BTC_ADDRESS,
                "amount": "5",
                "currency": "btc",
            },
        )

        assert response.status_code == 400
        assert "balance" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.post("/api/v1/withdrawals/confirm", json={"token": "missing"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid withdrawal token"}

    @pytest.mark.asyncio
    async def test_network_error_is_bad_gateway(self, client, funded_user, network):
        async def unavailable(network_id):
            raise NetworkRequestError("Network unavailable", status_code=503)

        network.get_user_balance = unavailable

        response = await client.post(
            "/api/v1/withdrawals/request",
            json={
                "user_id": funded_user.id,
                "address": BTC_ADDRESS,
                "amount": "0.5",
                "currency": "btc",
            },
        )

        assert response.status_code == 502
        assert response.json() == {"message": "Network unavailable"}


class TestAdminEndpoints:
    """Tests for admin endpoints."""

    @pytest.mark.asyncio
    async def test_config_reload_swaps_snapshot(self, client, service, monkeypatch):
        new_config = KitConfig.model_validate({"coins": {"ltc": {"withdrawal_fee": "0.001"}}})
        monkeypatch.setattr("kitwallet.api.routers.admin.reload_kit_config", lambda: new_config)

        response = await client.post("/api/v1/admin/config/reload")

        assert response.status_code == 200
        assert response.json()["coins"] == ["ltc"]
        assert service.config is new_config
