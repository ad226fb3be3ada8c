"""# Avanza Client

Main client interface for the Avanza private web API. Composes the shared
HTTP transport, the session manager and the typed decoders behind one
object.

## Basic Usage

```python
import asyncio

from avanza import AvanzaClient, Credentials, prompt_for_code


async def main():
    async with AvanzaClient() as client:
        await client.authenticate(Credentials("alice", "secret"), prompt_for_code)

        for position in await client.get_positions():
            print(position.name, position.volume, position.value, position.currency)


asyncio.run(main())
```

## Error Handling

Every operation either returns a typed record or raises an `AvanzaError`:

```python
try:
    positions = await client.get_positions()
except SessionExpired:
    await client.authenticate(credentials, provider)
except ApiTransportError as e:
    print(f"Transport failure (status {e.status_code})")
except MalformedResponse as e:
    print(f"Unexpected payload at {e.path}: {e.raw_value!r}")
```

Nothing is retried and nobody logs in again behind your back. A retry policy
for read operations can be opted into with `retry_policy=`.
"""

import logging
from datetime import date
from enum import Enum
from typing import Any, Sequence

from shared_lib.baseclient import Client
from shared_lib.baseclient.exceptions import HTTPStatusError, InvalidJSONError, TransportError
from shared_lib.baseclient.request import Request
from shared_lib.baseclient.retry import NoRetry, RetryPolicy
from shared_lib.client_context import ClientContext

from avanza.credentials import Credentials, SecondFactorProvider, TotpCode
from avanza.exceptions import (
    ApiTransportError,
    InvalidCredentials,
    MalformedResponse,
    SecondFactorRejected,
    SessionExpired,
)
from avanza.models import (
    AccountOverview,
    DealsAndOrders,
    InspirationList,
    Instrument,
    InstrumentType,
    Orderbook,
    OrderbookListItem,
    OrderRequest,
    OrderResult,
    Overview,
    Position,
    PositionsOverview,
    Transactions,
    TransactionType,
    Watchlist,
    decode,
    decode_list,
    decode_positions,
)
from avanza.session import DEFAULT_SECOND_FACTOR_TIMEOUT, SessionInfo, SessionManager
from avanza.urls import AvanzaApiUrls, AvanzaBaseUrls


def _path_value(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class AvanzaClient(Client):
    """
    Client facade for the Avanza private API.

    Attributes:
        BASE_URL: Default Avanza web URL
        session_manager: Owner of the authentication state

    Example:
        >>> async with AvanzaClient(base_url="https://www.avanza.se") as client:
        ...     await client.authenticate(Credentials("alice", "pw"), StaticCode("123456"))
        ...     overview = await client.get_overview()
    """

    BASE_URL = AvanzaBaseUrls.BASE_URL

    def __init__(
        self,
        credentials: Credentials | None = None,
        second_factor: SecondFactorProvider | None = None,
        base_url: str | None = None,
        context: ClientContext | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        retry_policy: RetryPolicy | None = None,
        second_factor_timeout: float = DEFAULT_SECOND_FACTOR_TIMEOUT,
        **kwargs: Any,
    ):
        """
        Initialize the Avanza client.

        Args:
            credentials: Default credentials for `authenticate()`.
            second_factor: Default second-factor provider for `authenticate()`.
            base_url: Override the Avanza base URL (e.g. for a mock server).
            context: Shared configuration. Individual arguments override it.
            timeout: Request timeout in seconds.
            user_agent: User-Agent header value.
            retry_policy: Retry policy for read operations. Default: no retry.
            second_factor_timeout: Seconds allowed for producing the code.
            **kwargs: Passed to the base client (proxy, event_hooks, transport...).
        """
        context = context or ClientContext()
        self.context = context

        super().__init__(
            base_url=base_url,
            timeout=timeout if timeout is not None else context.timeout,
            user_agent=user_agent or context.user_agent,
            **kwargs,
        )

        self.logger = logging.getLogger(__name__)
        self.logger.setLevel(context.log_level)

        self.credentials = credentials
        self.second_factor = second_factor
        self.retry_policy = retry_policy if retry_policy is not None else context.retry_policy
        self.session_manager = SessionManager(
            self, second_factor_timeout=second_factor_timeout
        )

    @classmethod
    def from_env(
        cls, second_factor: SecondFactorProvider | None = None, **kwargs: Any
    ) -> "AvanzaClient":
        """
        Create a client configured from the environment (and `.env`).

        Reads `AVANZA_USERNAME` and `AVANZA_PASSWORD`. When no provider is
        given and `AVANZA_TOTP_SECRET` is set, codes are derived from that
        secret so `authenticate()` needs no arguments.
        """
        credentials = Credentials.from_env()
        if second_factor is None:
            second_factor = TotpCode.from_env(load_dotenv_file=False)
        return cls(credentials=credentials, second_factor=second_factor, **kwargs)

    # -----------------------------------Authentication-----------------------------------#

    @property
    def is_authenticated(self) -> bool:
        return self.session_manager.is_authenticated

    async def authenticate(
        self,
        credentials: Credentials | None = None,
        second_factor: SecondFactorProvider | None = None,
    ) -> SessionInfo:
        """
        Log in, replacing any previous session.

        Args:
            credentials: Falls back to the credentials given at construction.
            second_factor: Falls back to the provider given at construction.

        Returns:
            SessionInfo describing the new session.

        Raises:
            AuthError: See `SessionManager.authenticate`.
        """
        credentials = credentials or self.credentials
        second_factor = second_factor or self.second_factor
        if credentials is None:
            self.session_manager.logout()
            raise InvalidCredentials("No credentials supplied")
        if second_factor is None:
            self.session_manager.logout()
            raise SecondFactorRejected("No second-factor provider supplied")

        return await self.session_manager.authenticate(credentials, second_factor)

    async def logout(self) -> None:
        """
        End the session on the server (best effort) and drop it locally.

        The local session is always cleared, even when the server call fails.
        """
        request = self.session_manager.logout_request()
        try:
            if request is not None:
                await self.send(request)
        except TransportError as e:
            self.logger.warning(f"Server-side logout failed: {e.message}")
        finally:
            self.session_manager.logout()

    # -----------------------------------Request pipeline-----------------------------------#

    async def _call(self, request: Request, retry: bool = True) -> Any:
        """
        Send an authenticated request and return its JSON body.

        Raises:
            NotAuthenticated: No live session.
            SessionExpired: The server rejected the session.
            ApiTransportError: Any other transport failure.
            MalformedResponse: Body is not JSON.
        """
        attached = self.session_manager.attach(request)
        policy = self.retry_policy if retry else NoRetry()

        try:
            response = await policy.run(lambda: self.send(attached))
        except HTTPStatusError as e:
            if self.session_manager.mark_expired_if(e.response, sent_with=attached):
                raise SessionExpired() from e
            raise ApiTransportError(
                f"{request.method} {request.path} failed with status {e.status_code}", e
            ) from e
        except TransportError as e:
            raise ApiTransportError(
                f"{request.method} {request.path} failed: {e.message}", e
            ) from e

        try:
            return response.json()
        except InvalidJSONError as e:
            raise MalformedResponse(
                "<body>", e.body[:200], reason="response is not valid JSON"
            ) from e

    # -----------------------------------Positions-----------------------------------#

    async def get_positions_overview(self) -> PositionsOverview:
        """Positions grouped by instrument type, with account totals."""
        payload = await self._call(Request("GET", AvanzaApiUrls.POSITIONS))
        return decode_positions(payload)

    async def get_positions(self) -> list[Position]:
        """All positions across the customer's accounts."""
        overview = await self.get_positions_overview()
        return overview.positions

    # -----------------------------------Accounts-----------------------------------#

    async def get_overview(self) -> Overview:
        payload = await self._call(Request("GET", AvanzaApiUrls.OVERVIEW))
        return decode(Overview, payload)

    async def get_account_overview(self, account_id: str) -> AccountOverview:
        path = AvanzaApiUrls.ACCOUNT_OVERVIEW.format(account_id=account_id)
        payload = await self._call(Request("GET", path))
        return decode(AccountOverview, payload)

    async def get_deals_and_orders(self) -> DealsAndOrders:
        payload = await self._call(Request("GET", AvanzaApiUrls.DEALS_AND_ORDERS))
        return decode(DealsAndOrders, payload)

    async def get_transactions(
        self,
        transaction_type: TransactionType | str,
        from_date: date | None = None,
        to_date: date | None = None,
        isin: str | None = None,
        max_elements: int | None = None,
    ) -> Transactions:
        """
        Transactions of one type, optionally filtered.

        Args:
            transaction_type: e.g. TransactionType.DIVIDEND.
            from_date: Earliest verification date (inclusive).
            to_date: Latest verification date (inclusive).
            isin: Restrict to one instrument.
            max_elements: Limit the number of rows returned.
        """
        params: dict[str, Any] = {}
        if from_date is not None:
            params["from"] = from_date.isoformat()
        if to_date is not None:
            params["to"] = to_date.isoformat()
        if isin is not None:
            params["isin"] = isin
        if max_elements is not None:
            params["maxElements"] = max_elements

        path = AvanzaApiUrls.TRANSACTIONS.format(
            transaction_type=_path_value(transaction_type)
        )
        payload = await self._call(Request("GET", path, params=params or None))
        return decode(Transactions, payload)

    # -----------------------------------Watchlists-----------------------------------#

    async def get_watchlists(self) -> list[Watchlist]:
        payload = await self._call(Request("GET", AvanzaApiUrls.WATCHLISTS))
        return decode_list(Watchlist, payload)

    async def add_to_watchlist(self, watchlist_id: str, orderbook_id: str) -> None:
        path = AvanzaApiUrls.WATCHLIST_ORDERBOOK.format(
            watchlist_id=watchlist_id, orderbook_id=orderbook_id
        )
        await self._call(Request("PUT", path), retry=False)
        self.logger.info(f"Added orderbook {orderbook_id} to watchlist {watchlist_id}")

    # -----------------------------------Market data-----------------------------------#

    async def get_instrument(
        self, instrument_type: InstrumentType | str, instrument_id: str
    ) -> Instrument:
        path = AvanzaApiUrls.INSTRUMENT.format(
            instrument_type=_path_value(instrument_type), instrument_id=instrument_id
        )
        payload = await self._call(Request("GET", path))
        return decode(Instrument, payload)

    async def get_orderbook(
        self, instrument_type: InstrumentType | str, orderbook_id: str
    ) -> Orderbook:
        path = AvanzaApiUrls.ORDERBOOK.format(instrument_type=_path_value(instrument_type))
        payload = await self._call(
            Request("GET", path, params={"orderbookId": orderbook_id})
        )
        return decode(Orderbook, payload)

    async def get_orderbooks(self, orderbook_ids: Sequence[str]) -> list[OrderbookListItem]:
        """
        Summary rows for several orderbooks in one call.

        Raises:
            ValueError: If `orderbook_ids` is empty.
        """
        if not orderbook_ids:
            raise ValueError("At least one orderbook id is required")

        path = AvanzaApiUrls.ORDERBOOK_LIST.format(orderbook_ids=",".join(orderbook_ids))
        payload = await self._call(Request("GET", path))
        return decode_list(OrderbookListItem, payload)

    async def get_inspiration_lists(self) -> list[InspirationList]:
        payload = await self._call(Request("GET", AvanzaApiUrls.INSPIRATION_LISTS))
        return decode_list(InspirationList, payload)

    async def get_inspiration_list(self, list_id: str) -> InspirationList:
        path = AvanzaApiUrls.INSPIRATION_LIST.format(list_id=list_id)
        payload = await self._call(Request("GET", path))
        return decode(InspirationList, payload)

    # -----------------------------------Orders-----------------------------------#
    # Order writes bypass the retry policy.

    async def place_order(self, order: OrderRequest) -> OrderResult:
        payload = await self._call(
            Request("POST", AvanzaApiUrls.ORDER_PLACE, payload=order.to_payload()),
            retry=False,
        )
        result = decode(OrderResult, payload)
        self.logger.info(
            f"Place order {order.order_type.value} {order.volume} x {order.orderbook_id}: "
            f"{result.order_request_status}"
        )
        return result

    async def edit_order(
        self,
        instrument_type: InstrumentType | str,
        order_id: str,
        order: OrderRequest,
    ) -> OrderResult:
        path = AvanzaApiUrls.ORDER_EDIT.format(
            instrument_type=_path_value(instrument_type), order_id=order_id
        )
        body = {**order.to_payload(), "orderId": order_id}
        payload = await self._call(Request("PUT", path, payload=body), retry=False)
        return decode(OrderResult, payload)

    async def delete_order(self, account_id: str, order_id: str) -> OrderResult:
        payload = await self._call(
            Request(
                "DELETE",
                AvanzaApiUrls.ORDER_DELETE,
                params={"accountId": account_id, "orderId": order_id},
            ),
            retry=False,
        )
        return decode(OrderResult, payload)
