"""
Unit tests for AvanzaClient.

Tests cover:
- End-to-end login and position retrieval against a fake server
- Failure classification for authenticated operations
- Request shapes of the account, market and order operations
- Logout and configuration handling
"""

import json
from datetime import date
from unittest.mock import AsyncMock, patch

import httpx
import pyotp
import pytest

from shared_lib.baseclient import ExponentialBackoff
from shared_lib.baseclient.exceptions import ConfigurationError
from shared_lib.client_context import ClientContext

from avanza import AvanzaClient, Credentials, StaticCode, TotpCode
from avanza.exceptions import (
    ApiTransportError,
    InvalidCredentials,
    MalformedResponse,
    NotAuthenticated,
    SecondFactorRejected,
    SessionExpired,
)
from avanza.models import InstrumentType, OrderRequest, OrderType, TransactionType
from avanza.session import Expired, Unauthenticated
from avanza.urls import AvanzaApiUrls


class TestLoginAndPositions:
    @pytest.mark.asyncio
    async def test_login_then_get_positions(self, fake, make_client, alice, good_code):
        async with make_client() as client:
            info = await client.authenticate(alice, good_code)
            positions = await client.get_positions()

        assert info.customer_id == "customer-42"
        assert len(positions) == 1
        position = positions[0]
        assert position.name == "Investor B"
        assert position.volume == 10
        assert position.value == 1655.5
        assert position.currency == "SEK"

        (call,) = fake.requests_to(AvanzaApiUrls.POSITIONS)
        assert call.headers["x-securitytoken"] == fake.security_token
        assert call.headers["x-authenticationsession"] == fake.authentication_session

    @pytest.mark.asyncio
    async def test_defaults_from_constructor(self, make_client, alice, good_code):
        async with make_client(credentials=alice, second_factor=good_code) as client:
            await client.authenticate()

            assert client.is_authenticated

    @pytest.mark.asyncio
    async def test_get_positions_is_repeatable(self, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)

            first = await client.get_positions()
            second = await client.get_positions()

        assert first == second

    @pytest.mark.asyncio
    async def test_positions_overview_totals(self, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)

            overview = await client.get_positions_overview()

        assert overview.total_balance == 4000.0
        assert overview.total_buying_power == 4000.0

    @pytest.mark.asyncio
    async def test_wrong_password_then_positions(self, fake, make_client, good_code):
        async with make_client() as client:
            with pytest.raises(InvalidCredentials):
                await client.authenticate(Credentials("alice", "wrong"), good_code)

            assert isinstance(client.session_manager.state, Unauthenticated)
            with pytest.raises(NotAuthenticated):
                await client.get_positions()

        assert fake.requests_to(AvanzaApiUrls.POSITIONS) == []

    @pytest.mark.asyncio
    async def test_missing_credentials(self, make_client, good_code):
        async with make_client() as client:
            with pytest.raises(InvalidCredentials):
                await client.authenticate(second_factor=good_code)

    @pytest.mark.asyncio
    async def test_missing_provider(self, make_client, alice):
        async with make_client() as client:
            with pytest.raises(SecondFactorRejected):
                await client.authenticate(alice)


class TestAuthenticatedCalls:
    @pytest.mark.asyncio
    async def test_not_authenticated_sends_nothing(self, fake, make_client):
        async with make_client() as client:
            with pytest.raises(NotAuthenticated):
                await client.get_positions()
            with pytest.raises(NotAuthenticated):
                await client.get_overview()

        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_expired_session(self, fake, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)
            fake.expire_session()

            with pytest.raises(SessionExpired):
                await client.get_positions()
            assert isinstance(client.session_manager.state, Expired)

            with pytest.raises(SessionExpired):
                await client.get_positions()

        # The second call is refused locally
        assert len(fake.requests_to(AvanzaApiUrls.POSITIONS)) == 1

    @pytest.mark.asyncio
    async def test_rejection_after_logout_in_flight(self, fake, alice, good_code):
        def logout_mid_request(request):
            if request.url.path == AvanzaApiUrls.POSITIONS:
                client.session_manager.logout()
                return httpx.Response(401, text="Unauthorized")
            return fake.handler(request)

        client = AvanzaClient(transport=httpx.MockTransport(logout_mid_request))
        async with client:
            await client.authenticate(alice, good_code)

            with pytest.raises(SessionExpired):
                await client.get_positions()

            assert isinstance(client.session_manager.state, Unauthenticated)

    @pytest.mark.asyncio
    async def test_reauthenticate_after_expiry(self, fake, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)
            fake.expire_session()
            with pytest.raises(SessionExpired):
                await client.get_positions()

            await client.authenticate(alice, good_code)
            positions = await client.get_positions()

        assert len(positions) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_transport_error(self, fake, make_client, alice, good_code):
        fake.overrides[("GET", AvanzaApiUrls.POSITIONS)] = httpx.Response(503, text="busy")

        async with make_client() as client:
            await client.authenticate(alice, good_code)

            with pytest.raises(ApiTransportError) as exc_info:
                await client.get_positions()

            assert client.is_authenticated

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_malformed_payload(self, fake, make_client, alice, good_code, positions_payload):
        positions_payload["instrumentPositions"][0]["positions"][0]["currency"] = ["SEK"]
        fake.routes[("GET", AvanzaApiUrls.POSITIONS)] = positions_payload

        async with make_client() as client:
            await client.authenticate(alice, good_code)

            with pytest.raises(MalformedResponse) as exc_info:
                await client.get_positions()

        assert exc_info.value.field == "currency"
        assert exc_info.value.raw_value == ["SEK"]

    @pytest.mark.asyncio
    async def test_non_json_payload(self, fake, make_client, alice, good_code):
        fake.overrides[("GET", AvanzaApiUrls.POSITIONS)] = httpx.Response(
            200, text="<html>maintenance</html>"
        )

        async with make_client() as client:
            await client.authenticate(alice, good_code)

            with pytest.raises(MalformedResponse):
                await client.get_positions()

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)

            with patch.object(
                client.client, "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.side_effect = httpx.ReadTimeout("slow")

                with pytest.raises(ApiTransportError) as exc_info:
                    await client.get_positions()

            assert client.is_authenticated

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_retry_policy_for_reads(self, fake, alice, good_code):
        attempts = []

        def flaky(request):
            if request.url.path == AvanzaApiUrls.POSITIONS:
                attempts.append(request)
                if len(attempts) == 1:
                    raise httpx.ConnectError("Connection reset", request=request)
            return fake.handler(request)

        client = AvanzaClient(
            transport=httpx.MockTransport(flaky),
            retry_policy=ExponentialBackoff(max_attempts=2, base_delay=0.0),
        )
        async with client:
            await client.authenticate(alice, good_code)
            positions = await client.get_positions()

        assert len(attempts) == 2
        assert len(positions) == 1

    @pytest.mark.asyncio
    async def test_orders_are_never_retried(self, fake, make_client, alice, good_code):
        policy = ExponentialBackoff(max_attempts=3, base_delay=0.0)
        order = OrderRequest(
            account_id="1234567",
            orderbook_id="5247",
            order_type=OrderType.BUY,
            price=165.5,
            volume=10,
            valid_until="2024-01-31",
        )

        async with make_client(retry_policy=policy) as client:
            await client.authenticate(alice, good_code)

            with patch.object(
                client.client, "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.side_effect = httpx.ConnectError("reset")

                with pytest.raises(ApiTransportError):
                    await client.place_order(order)

            assert mock_request.await_count == 1


class TestOperations:
    @pytest.mark.asyncio
    async def test_account_overview(self, fake, make_client, alice, good_code):
        path = AvanzaApiUrls.ACCOUNT_OVERVIEW.format(account_id="1234567")
        fake.routes[("GET", path)] = {"accountId": "1234567", "ownCapital": 1000}

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            overview = await client.get_account_overview("1234567")

        assert overview.own_capital == 1000

    @pytest.mark.asyncio
    async def test_transactions_query(self, fake, make_client, alice, good_code):
        path = AvanzaApiUrls.TRANSACTIONS.format(transaction_type="dividend")
        fake.routes[("GET", path)] = {"transactions": [{"id": "t-1"}]}

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            result = await client.get_transactions(
                TransactionType.DIVIDEND,
                from_date=date(2024, 1, 1),
                to_date=date(2024, 3, 31),
                max_elements=50,
            )

        assert result.transactions[0].id == "t-1"
        (call,) = fake.requests_to(path)
        assert call.url.params["from"] == "2024-01-01"
        assert call.url.params["to"] == "2024-03-31"
        assert call.url.params["maxElements"] == "50"
        assert "isin" not in call.url.params

    @pytest.mark.asyncio
    async def test_watchlists(self, fake, make_client, alice, good_code):
        fake.routes[("GET", AvanzaApiUrls.WATCHLISTS)] = [
            {"id": "w1", "name": "Tech", "orderbooks": ["5247"]}
        ]
        put_path = AvanzaApiUrls.WATCHLIST_ORDERBOOK.format(watchlist_id="w1", orderbook_id="99")
        fake.routes[("PUT", put_path)] = None

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            watchlists = await client.get_watchlists()
            await client.add_to_watchlist("w1", "99")

        assert watchlists[0].name == "Tech"
        assert len(fake.requests_to(put_path)) == 1

    @pytest.mark.asyncio
    async def test_orderbook_uses_query_parameter(self, fake, make_client, alice, good_code):
        path = AvanzaApiUrls.ORDERBOOK.format(instrument_type="stock")
        fake.routes[("GET", path)] = {"orderbook": {"id": "5247", "name": "Investor B"}}

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            orderbook = await client.get_orderbook(InstrumentType.STOCK, "5247")

        assert orderbook.orderbook.name == "Investor B"
        (call,) = fake.requests_to(path)
        assert call.url.params["orderbookId"] == "5247"

    @pytest.mark.asyncio
    async def test_instrument(self, fake, make_client, alice, good_code):
        path = AvanzaApiUrls.INSTRUMENT.format(instrument_type="fund", instrument_id="42")
        fake.routes[("GET", path)] = {"id": "42", "name": "Global Index", "lastPrice": 101.5}

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            instrument = await client.get_instrument(InstrumentType.FUND, "42")

        assert instrument.last_price == 101.5

    @pytest.mark.asyncio
    async def test_orderbooks_joins_ids(self, fake, make_client, alice, good_code):
        path = AvanzaApiUrls.ORDERBOOK_LIST.format(orderbook_ids="1,2")
        fake.routes[("GET", path)] = [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            items = await client.get_orderbooks(["1", "2"])

            with pytest.raises(ValueError):
                await client.get_orderbooks([])

        assert [item.name for item in items] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_inspiration_lists(self, fake, make_client, alice, good_code):
        fake.routes[("GET", AvanzaApiUrls.INSPIRATION_LISTS)] = [{"id": "L1", "name": "Top"}]
        fake.routes[("GET", AvanzaApiUrls.INSPIRATION_LIST.format(list_id="L1"))] = {
            "id": "L1",
            "name": "Top",
            "orderbooks": [{"id": "1", "name": "A"}],
        }

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            lists = await client.get_inspiration_lists()
            single = await client.get_inspiration_list("L1")

        assert lists[0].id == "L1"
        assert single.orderbooks[0].id == "1"

    @pytest.mark.asyncio
    async def test_place_edit_delete_order(self, fake, make_client, alice, good_code):
        order = OrderRequest(
            account_id="1234567",
            orderbook_id="5247",
            order_type=OrderType.SELL,
            price=170.0,
            volume=5,
            valid_until="2024-01-31",
        )
        edit_path = AvanzaApiUrls.ORDER_EDIT.format(instrument_type="stock", order_id="o-1")
        ok = {"orderRequestStatus": "SUCCESS", "orderId": "o-1"}
        fake.routes[("POST", AvanzaApiUrls.ORDER_PLACE)] = ok
        fake.routes[("PUT", edit_path)] = ok
        fake.routes[("DELETE", AvanzaApiUrls.ORDER_DELETE)] = ok

        async with make_client() as client:
            await client.authenticate(alice, good_code)
            placed = await client.place_order(order)
            edited = await client.edit_order(InstrumentType.STOCK, "o-1", order)
            deleted = await client.delete_order("1234567", "o-1")

        assert placed.succeeded and edited.succeeded and deleted.succeeded

        (place_call,) = [r for r in fake.requests_to(AvanzaApiUrls.ORDER_PLACE) if r.method == "POST"]
        assert json.loads(place_call.content)["orderType"] == "SELL"
        (edit_call,) = fake.requests_to(edit_path)
        assert json.loads(edit_call.content)["orderId"] == "o-1"
        (delete_call,) = [r for r in fake.requests_to(AvanzaApiUrls.ORDER_DELETE) if r.method == "DELETE"]
        assert delete_call.url.params["orderId"] == "o-1"


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_ends_server_session(self, fake, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)

            await client.logout()

            assert isinstance(client.session_manager.state, Unauthenticated)
            with pytest.raises(NotAuthenticated):
                await client.get_positions()

        assert fake.session_valid is False

    @pytest.mark.asyncio
    async def test_logout_clears_session_when_server_fails(self, fake, make_client, alice, good_code):
        async with make_client() as client:
            await client.authenticate(alice, good_code)
            path = f"/_api/authentication/sessions/{fake.authentication_session}"
            fake.overrides[("DELETE", path)] = httpx.Response(500)

            await client.logout()

            assert not client.is_authenticated

    @pytest.mark.asyncio
    async def test_logout_without_session(self, fake, make_client):
        async with make_client() as client:
            await client.logout()

        assert fake.requests == []


class TestConfiguration:
    def test_context_defaults(self):
        context = ClientContext(timeout=5.0, user_agent="tests/1.0")

        client = AvanzaClient(context=context)

        assert client.base_url == "https://www.avanza.se"
        assert client.timeout == 5.0
        assert client.client.headers["User-Agent"] == "tests/1.0"

    def test_explicit_arguments_override_context(self):
        context = ClientContext(timeout=5.0)

        client = AvanzaClient(context=context, timeout=9.0, base_url="http://localhost:8080/")

        assert client.timeout == 9.0
        assert client.base_url == "http://localhost:8080"

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            AvanzaClient(timeout=-1)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AVANZA_USERNAME", "alice")
        monkeypatch.setenv("AVANZA_PASSWORD", "correct")

        client = AvanzaClient.from_env(second_factor=StaticCode("123456"))

        assert client.credentials.username == "alice"
        assert client.credentials.password.get_secret_value() == "correct"

    @pytest.mark.asyncio
    async def test_from_env_logs_in_with_totp_secret(self, fake, monkeypatch):
        secret = "JBSWY3DPEHPK3PXP"
        fake.totp_secret = secret
        monkeypatch.setenv("AVANZA_USERNAME", "alice")
        monkeypatch.setenv("AVANZA_PASSWORD", "correct")
        monkeypatch.setenv("AVANZA_TOTP_SECRET", secret)

        client = AvanzaClient.from_env(transport=httpx.MockTransport(fake.handler))
        async with client:
            await client.authenticate()
            positions = await client.get_positions()

        assert isinstance(client.second_factor, TotpCode)
        assert len(positions) == 1
        (step2,) = fake.requests_to(AvanzaApiUrls.LOGIN_TOTP)
        assert pyotp.TOTP(secret).verify(json.loads(step2.content)["totpCode"], valid_window=1)

    def test_from_env_without_totp_secret(self, monkeypatch):
        monkeypatch.setenv("AVANZA_USERNAME", "alice")
        monkeypatch.setenv("AVANZA_PASSWORD", "correct")
        monkeypatch.delenv("AVANZA_TOTP_SECRET", raising=False)

        client = AvanzaClient.from_env()

        assert client.second_factor is None
