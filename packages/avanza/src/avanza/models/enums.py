from enum import Enum


class InstrumentType(str, Enum):
    STOCK = "stock"
    FUND = "fund"
    BOND = "bond"
    OPTION = "option"
    FUTURE_FORWARD = "future_forward"
    CERTIFICATE = "certificate"
    WARRANT = "warrant"
    EXCHANGE_TRADED_FUND = "exchange_traded_fund"
    INDEX = "index"
    PREMIUM_BOND = "premium_bond"
    SUBSCRIPTION_OPTION = "subscription_option"
    EQUITY_LINKED_BOND = "equity_linked_bond"
    CONVERTIBLE = "convertible"


class TransactionType(str, Enum):
    OPTIONS = "options"
    FOREX = "forex"
    DEPOSIT_WITHDRAW = "deposit-withdraw"
    BUY_SELL = "buy-sell"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    FOREIGN_TAX = "foreign-tax"


class OrderType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
