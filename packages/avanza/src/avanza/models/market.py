"""Watchlists, instruments, orderbooks and inspiration lists."""

from pydantic import Field

from shared_lib.pydantic import APIBaseModel

from avanza.models.base import OrderbookRef


class Watchlist(APIBaseModel):
    id: str
    name: str
    orderbooks: list[str] = Field(default_factory=list)
    editable: bool | None = None


class Instrument(APIBaseModel):
    """Market data for one instrument."""

    id: str
    name: str
    currency: str | None = None
    ticker_symbol: str | None = None
    isin: str | None = None
    flag_code: str | None = None
    market_place: str | None = None
    last_price: float | None = None
    change: float | None = None
    change_percent: float | None = None
    highest_price: float | None = None
    lowest_price: float | None = None
    quote_updated: str | None = None
    tradable: bool | None = None


class Trade(APIBaseModel):
    price: float | None = None
    volume: float | None = None
    deal_time: str | None = None
    buyer: str | None = None
    seller: str | None = None


class OrderDepthLevel(APIBaseModel):
    buy: dict | None = None
    sell: dict | None = None


class Orderbook(APIBaseModel):
    """Order entry view of an orderbook."""

    orderbook: OrderbookRef
    latest_trades: list[Trade] = Field(default_factory=list)
    order_depth_levels: list[OrderDepthLevel] = Field(default_factory=list)
    has_instrument_knowledge: bool | None = None
    tick_size_rules: list[dict] = Field(default_factory=list)


class OrderbookListItem(APIBaseModel):
    id: str
    name: str
    currency: str | None = None
    instrument_type: str | None = None
    flag_code: str | None = None
    last_price: float | None = None
    change_percent: float | None = None
    tradable: bool | None = None


class InspirationList(APIBaseModel):
    id: str
    name: str
    information: str | None = None
    image_url: str | None = None
    orderbooks: list[OrderbookListItem] = Field(default_factory=list)
