"""
Async client for the Avanza private web API.

Exposes the client facade, credential and second-factor helpers, the error
taxonomy and the typed records returned by each operation.
"""

from avanza.client import AvanzaClient
from avanza.credentials import (
    Credentials,
    SecondFactorChallenge,
    SecondFactorProvider,
    StaticCode,
    TotpCode,
    prompt_for_code,
)
from avanza.exceptions import (
    ApiError,
    ApiTransportError,
    AuthError,
    AuthTransportFailure,
    AvanzaError,
    InvalidCredentials,
    MalformedResponse,
    NotAuthenticated,
    SecondFactorExpired,
    SecondFactorRejected,
    SessionExpired,
    UnsupportedSecondFactorMethod,
)
from avanza.models import (
    InstrumentPositions,
    InstrumentType,
    OrderRequest,
    OrderType,
    Position,
    PositionsOverview,
    TransactionType,
)
from avanza.session import SessionInfo, SessionManager

__version__ = "0.1.0"
__all__ = [
    "AvanzaClient",
    "SessionManager",
    "SessionInfo",
    "Credentials",
    "SecondFactorChallenge",
    "SecondFactorProvider",
    "StaticCode",
    "TotpCode",
    "prompt_for_code",
    "AvanzaError",
    "AuthError",
    "InvalidCredentials",
    "SecondFactorRejected",
    "SecondFactorExpired",
    "UnsupportedSecondFactorMethod",
    "AuthTransportFailure",
    "ApiError",
    "NotAuthenticated",
    "SessionExpired",
    "ApiTransportError",
    "MalformedResponse",
    "Position",
    "InstrumentPositions",
    "PositionsOverview",
    "InstrumentType",
    "TransactionType",
    "OrderType",
    "OrderRequest",
]
