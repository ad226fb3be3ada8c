"""Typed records decoded from Avanza responses."""

from avanza.models.accounts import AccountOverview, AccountSummary, Overview
from avanza.models.base import AccountRef, OrderbookRef, decode, decode_list
from avanza.models.enums import InstrumentType, OrderType, TransactionType
from avanza.models.market import (
    InspirationList,
    Instrument,
    Orderbook,
    OrderbookListItem,
    OrderDepthLevel,
    Trade,
    Watchlist,
)
from avanza.models.orders import Deal, DealsAndOrders, Order, OrderRequest, OrderResult
from avanza.models.positions import (
    InstrumentPositions,
    Position,
    PositionsOverview,
    decode_position,
    decode_positions,
)
from avanza.models.transactions import Transaction, Transactions

__all__ = [
    "decode",
    "decode_list",
    "decode_position",
    "decode_positions",
    "AccountRef",
    "OrderbookRef",
    "InstrumentType",
    "OrderType",
    "TransactionType",
    "Position",
    "InstrumentPositions",
    "PositionsOverview",
    "AccountSummary",
    "Overview",
    "AccountOverview",
    "Order",
    "Deal",
    "DealsAndOrders",
    "OrderRequest",
    "OrderResult",
    "Transaction",
    "Transactions",
    "Watchlist",
    "Instrument",
    "Trade",
    "OrderDepthLevel",
    "Orderbook",
    "OrderbookListItem",
    "InspirationList",
]
