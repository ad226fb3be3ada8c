"""Positions held across the customer's accounts."""

from typing import Any

from pydantic import Field

from shared_lib.pydantic import APIBaseModel

from avanza.models.base import decode


class Position(APIBaseModel):
    """One holding in an account at fetch time.

    Attributes:
        account_id: Account holding the position
        orderbook_id: Instrument identifier
        name: Instrument name
        volume: Quantity held
        average_acquired_price: Acquisition price per unit
        value: Current value
        currency: Currency of `value`
    """

    account_id: str
    orderbook_id: str
    name: str
    volume: int
    average_acquired_price: float
    value: float
    currency: str

    account_name: str | None = None
    account_type: str | None = None
    acquired_value: float | None = None
    change: float | None = None
    change_percent: float | None = None
    depositable: bool | None = None
    flag_code: str | None = None
    last_price: float | None = None
    last_price_updated: str | None = None
    profit: float | None = None
    profit_percent: float | None = None
    tradable: bool | None = None


class InstrumentPositions(APIBaseModel):
    """Positions grouped by instrument type (STOCK, FUND, ...)."""

    instrument_type: str
    positions: list[Position] = Field(default_factory=list)
    todays_profit_percent: float | None = None
    total_profit_percent: float | None = None
    total_profit_value: float | None = None
    total_value: float | None = None


class PositionsOverview(APIBaseModel):
    """Full positions response with totals."""

    instrument_positions: list[InstrumentPositions] = Field(default_factory=list)
    total_profit: float | None = None
    total_profit_percent: float | None = None
    total_balance: float | None = None
    total_own_capital: float | None = None
    total_buying_power: float | None = None

    @property
    def positions(self) -> list[Position]:
        """All positions, flattened in server order."""
        return [
            position
            for group in self.instrument_positions
            for position in group.positions
        ]


def decode_position(payload: Any) -> Position:
    return decode(Position, payload)


def decode_positions(payload: Any) -> PositionsOverview:
    return decode(PositionsOverview, payload)
