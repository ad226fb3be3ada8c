"""
Shared fixtures for the Avanza client tests.

`FakeAvanza` answers the login and account endpoints in memory through an
httpx.MockTransport, so the whole client stack runs without network access.
"""

import json

import httpx
import pyotp
import pytest

from avanza import AvanzaClient, Credentials, StaticCode
from avanza.urls import AvanzaApiUrls

BASE_URL = "https://avanza.test"

VALID_CODE = "123456"
TRANSACTION_ID = "tx-1"

POSITION = {
    "accountName": "ISK",
    "accountType": "Investeringssparkonto",
    "depositable": True,
    "accountId": "1234567",
    "volume": 10,
    "averageAcquiredPrice": 150.5,
    "profitPercent": 10.0,
    "acquiredValue": 1505.0,
    "profit": 150.5,
    "value": 1655.5,
    "currency": "SEK",
    "orderbookId": "5247",
    "tradable": True,
    "lastPrice": 165.55,
    "lastPriceUpdated": "2024-01-02T17:29:59.000+0100",
    "change": 1.2,
    "changePercent": 0.73,
    "flagCode": "SE",
    "name": "Investor B",
}

POSITIONS_PAYLOAD = {
    "instrumentPositions": [
        {
            "instrumentType": "STOCK",
            "positions": [POSITION],
            "totalValue": 1655.5,
            "todaysProfitPercent": 0.73,
            "totalProfitValue": 150.5,
            "totalProfitPercent": 10.0,
        }
    ],
    "totalOwnCapital": 100000,
    "totalProfit": 40000,
    "totalBuyingPower": 4000,
    "totalBalance": 4000,
    "totalProfitPercent": 10,
}


class FakeAvanza:
    """In-memory stand-in for the Avanza web API."""

    def __init__(self):
        self.users = {"alice": "correct"}
        self.valid_code = VALID_CODE
        self.totp_secret = None
        self.second_factor_method = "TOTP"
        self.session_counter = 0
        self.security_token = None
        self.authentication_session = None
        self.session_valid = False
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], object] = {
            ("GET", AvanzaApiUrls.POSITIONS): POSITIONS_PAYLOAD,
        }
        self.overrides: dict[tuple[str, str], httpx.Response] = {}

    # -----------------------------------Controls-----------------------------------#

    def expire_session(self) -> None:
        self.session_valid = False

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    # -----------------------------------Handler-----------------------------------#

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)

        if key in self.overrides:
            return self.overrides[key]

        if key == ("POST", AvanzaApiUrls.LOGIN_STEP1):
            return self._login_step1(request)
        if key == ("POST", AvanzaApiUrls.LOGIN_TOTP):
            return self._login_totp(request)

        if not self._is_authorized(request):
            return httpx.Response(401, text="Unauthorized")

        if request.method == "DELETE" and request.url.path.startswith(
            "/_api/authentication/sessions/"
        ):
            self.session_valid = False
            return httpx.Response(200, text="")

        if key in self.routes:
            return httpx.Response(200, json=self.routes[key])
        return httpx.Response(404, text="Not found")

    def _login_step1(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if self.users.get(body.get("username")) != body.get("password"):
            return httpx.Response(401, json={"message": "Felaktigt användarnamn eller lösenord"})
        return httpx.Response(
            200,
            json={
                "twoFactorLogin": {
                    "transactionId": TRANSACTION_ID,
                    "method": self.second_factor_method,
                }
            },
        )

    def _login_totp(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        cookie = request.headers.get("cookie", "")
        if f"AZAMFATRANSACTION={TRANSACTION_ID}" not in cookie:
            return httpx.Response(401, text="No transaction")
        if not self._code_accepted(body.get("totpCode")) or body.get("method") != "TOTP":
            return httpx.Response(401, text="Invalid code")

        self.session_counter += 1
        self.security_token = f"security-token-{self.session_counter}"
        self.authentication_session = f"auth-session-{self.session_counter}"
        self.session_valid = True
        return httpx.Response(
            200,
            headers={"X-SecurityToken": self.security_token},
            json={
                "authenticationSession": self.authentication_session,
                "pushSubscriptionId": "push-1",
                "customerId": "customer-42",
                "registrationComplete": True,
            },
        )

    def _code_accepted(self, code) -> bool:
        if self.totp_secret is not None:
            return pyotp.TOTP(self.totp_secret).verify(code, valid_window=1)
        return code == self.valid_code

    def _is_authorized(self, request: httpx.Request) -> bool:
        return (
            self.session_valid
            and request.headers.get("x-securitytoken") == self.security_token
            and request.headers.get("x-authenticationsession") == self.authentication_session
        )


@pytest.fixture
def fake() -> FakeAvanza:
    return FakeAvanza()


@pytest.fixture
def make_client(fake):
    """Factory for clients wired to the fake server."""

    def _make(**kwargs) -> AvanzaClient:
        return AvanzaClient(
            base_url=BASE_URL,
            transport=httpx.MockTransport(fake.handler),
            **kwargs,
        )

    return _make


@pytest.fixture
def alice() -> Credentials:
    return Credentials("alice", "correct")


@pytest.fixture
def good_code() -> StaticCode:
    return StaticCode(VALID_CODE)


@pytest.fixture
def position_payload() -> dict:
    return json.loads(json.dumps(POSITION))


@pytest.fixture
def positions_payload() -> dict:
    return json.loads(json.dumps(POSITIONS_PAYLOAD))
