"""Pydantic base model and tolerant decoding helpers for API payloads."""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

M = TypeVar("M", bound=BaseModel)


class APIBaseModel(BaseModel):
    """Base class for all API models.

    Fields are declared in snake_case and read from camelCase keys. Unknown
    keys are ignored so new server-side fields never break decoding.
    Values are validated strictly: a string is never coerced into a number
    and a bool never into a float. JSON integers are still valid floats.
    Instances are frozen snapshots.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        strict=True,
    )

    def __str__(self) -> str:
        """Return a formatted JSON representation of the model."""
        return self.model_dump_json(indent=2, ensure_ascii=False, by_alias=True)


class DecodeFailure(ValueError):
    """Raised by `decode_payload` for the first offending field."""

    def __init__(self, field: str, raw_value: Any, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason} (got {raw_value!r})")
        self.field = field
        self.raw_value = raw_value
        self.path = path
        self.reason = reason


def _format_loc(loc: tuple[int | str, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "<root>"


def _leaf_field(loc: tuple[int | str, ...]) -> str:
    for part in reversed(loc):
        if isinstance(part, str):
            return part
    return "<root>"


def decode_payload(annotation: Any, payload: Any) -> Any:
    """
    Validate `payload` against `annotation` (a model or e.g. ``list[Model]``).

    Pure: no I/O and no state. The same payload always gives the same result
    or the same DecodeFailure.

    Raises:
        DecodeFailure: naming the wire field and the raw value that failed.
    """
    try:
        return TypeAdapter(annotation).validate_python(payload)
    except ValidationError as e:
        first = e.errors(include_url=False)[0]
        loc = tuple(first["loc"])
        raw_value = None if first["type"] == "missing" else first.get("input")
        raise DecodeFailure(
            field=_leaf_field(loc),
            raw_value=raw_value,
            path=_format_loc(loc),
            reason=first["msg"],
        ) from e
