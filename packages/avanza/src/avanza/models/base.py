from typing import Any, TypeVar

from shared_lib.pydantic import APIBaseModel, DecodeFailure, decode_payload

from avanza.exceptions import MalformedResponse

M = TypeVar("M", bound=APIBaseModel)


def decode(model: type[M], payload: Any) -> M:
    """Decode one record. Raises MalformedResponse naming the bad field."""
    try:
        return decode_payload(model, payload)
    except DecodeFailure as e:
        raise MalformedResponse(e.field, e.raw_value, path=e.path, reason=e.reason) from e


def decode_list(model: type[M], payload: Any) -> list[M]:
    """Decode a JSON array of records."""
    try:
        return decode_payload(list[model], payload)
    except DecodeFailure as e:
        raise MalformedResponse(e.field, e.raw_value, path=e.path, reason=e.reason) from e


class AccountRef(APIBaseModel):
    """Account reference embedded in orders, deals and transactions."""

    id: str
    name: str | None = None
    type: str | None = None


class OrderbookRef(APIBaseModel):
    """Orderbook (instrument listing) reference embedded in other records."""

    id: str | None = None
    name: str | None = None
    currency: str | None = None
    type: str | None = None
    flag_code: str | None = None
    tradable: bool | None = None
