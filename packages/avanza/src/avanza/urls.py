class AvanzaBaseUrls:
    BASE_URL = "https://www.avanza.se"


class AvanzaApiUrls:
    LOGIN_STEP1 = "/_api/authentication/sessions/usercredentials"
    LOGIN_TOTP = "/_api/authentication/sessions/totp"
    LOGOUT = "/_api/authentication/sessions/{session_id}"

    POSITIONS = "/_mobile/account/positions"
    OVERVIEW = "/_mobile/account/overview"
    ACCOUNT_OVERVIEW = "/_mobile/account/{account_id}/overview"
    DEALS_AND_ORDERS = "/_mobile/account/dealsandorders"
    TRANSACTIONS = "/_mobile/account/transactions/{transaction_type}"

    WATCHLISTS = "/_mobile/usercontent/watchlist"
    WATCHLIST_ORDERBOOK = "/_api/usercontent/watchlist/{watchlist_id}/orderbooks/{orderbook_id}"

    INSTRUMENT = "/_mobile/market/{instrument_type}/{instrument_id}"
    ORDERBOOK = "/_mobile/order/{instrument_type}"
    ORDERBOOK_LIST = "/_mobile/market/orderbooklist/{orderbook_ids}"

    INSPIRATION_LISTS = "/_mobile/marketing/inspirationlist"
    INSPIRATION_LIST = "/_mobile/marketing/inspirationlist/{list_id}"

    ORDER_PLACE = "/_api/order"
    ORDER_EDIT = "/_api/order/{instrument_type}/{order_id}"
    ORDER_DELETE = "/_api/order"


# Header and cookie names observed on the live service
SECURITY_TOKEN_HEADER = "X-SecurityToken"
AUTHENTICATION_SESSION_HEADER = "X-AuthenticationSession"
TWO_FACTOR_TRANSACTION_COOKIE = "AZAMFATRANSACTION"
