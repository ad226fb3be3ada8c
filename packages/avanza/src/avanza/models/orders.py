"""Orders, deals and order submission payloads."""

from pydantic import Field

from shared_lib.pydantic import APIBaseModel

from avanza.models.base import AccountRef, OrderbookRef
from avanza.models.enums import OrderType


class Order(APIBaseModel):
    """An open or recently handled order."""

    order_id: str
    account: AccountRef | None = None
    orderbook: OrderbookRef | None = None
    type: str | None = None
    price: float | None = None
    volume: float | None = None
    sum: float | None = None
    status: str | None = None
    status_description: str | None = None
    raw_status: str | None = None
    valid_until: str | None = None
    modify_allowed: bool | None = None
    deletable: bool | None = None
    market_transaction: bool | None = None


class Deal(APIBaseModel):
    """An executed trade."""

    deal_id: str
    account: AccountRef | None = None
    orderbook: OrderbookRef | None = None
    type: str | None = None
    price: float | None = None
    volume: float | None = None
    sum: float | None = None
    deal_time: str | None = None


class DealsAndOrders(APIBaseModel):
    orders: list[Order] = Field(default_factory=list)
    deals: list[Deal] = Field(default_factory=list)
    accounts: list[AccountRef] = Field(default_factory=list)
    reserved_amount: float | None = None


class OrderRequest(APIBaseModel):
    """Order submission payload.

    The client forwards this as-is. Price ticks, volume limits and the
    validity date are checked by the server.
    """

    account_id: str
    orderbook_id: str
    order_type: OrderType
    price: float
    volume: int
    valid_until: str

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class OrderResult(APIBaseModel):
    """Server answer to a place/edit/delete order request."""

    order_request_status: str
    message: str | None = None
    order_id: str | None = None
    request_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.order_request_status.upper() == "SUCCESS"
