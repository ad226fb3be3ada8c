"""Account overviews."""

from pydantic import Field

from shared_lib.pydantic import APIBaseModel


class AccountSummary(APIBaseModel):
    """One account as listed in the customer overview."""

    account_id: str
    account_type: str | None = None
    name: str | None = None
    total_balance: float | None = None
    own_capital: float | None = None
    buying_power: float | None = None
    performance: float | None = None
    performance_percent: float | None = None
    total_profit: float | None = None
    total_profit_percent: float | None = None
    tradable: bool | None = None
    depositable: bool | None = None


class Overview(APIBaseModel):
    """Customer-wide overview across all accounts."""

    accounts: list[AccountSummary] = Field(default_factory=list)
    number_of_orders: int | None = None
    number_of_deals: int | None = None
    number_of_transfers: int | None = None
    number_of_intraday_transfers: int | None = None
    total_balance: float | None = None
    total_buying_power: float | None = None
    total_own_capital: float | None = None
    total_performance: float | None = None
    total_performance_percent: float | None = None


class AccountOverview(APIBaseModel):
    """Details for a single account."""

    account_id: str
    account_type: str | None = None
    total_balance: float | None = None
    own_capital: float | None = None
    buying_power: float | None = None
    total_profit: float | None = None
    total_profit_percent: float | None = None
    performance_since_one_month: float | None = None
    performance_since_one_year: float | None = None
    courtage_class: str | None = None
    depositable: bool | None = None
    withdrawal_amount: float | None = None
    interest_rate: float | None = None
