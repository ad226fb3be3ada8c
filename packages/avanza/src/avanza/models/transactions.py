"""Account transactions (trades, deposits, dividends, ...)."""

from pydantic import Field

from shared_lib.pydantic import APIBaseModel

from avanza.models.base import AccountRef, OrderbookRef


class Transaction(APIBaseModel):
    id: str
    transaction_type: str | None = None
    account: AccountRef | None = None
    orderbook: OrderbookRef | None = None
    amount: float | None = None
    price: float | None = None
    volume: float | None = None
    sum: float | None = None
    currency: str | None = None
    description: str | None = None
    verification_date: str | None = None


class Transactions(APIBaseModel):
    transactions: list[Transaction] = Field(default_factory=list)
    total_number_of_transactions: int | None = None
