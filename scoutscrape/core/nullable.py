"""
Decoders for the feed's nullable scalar tokens.

The Scout feed sends most numeric fields as JSON null, as a quoted string
("0.5") or as a bare number. Each decoder turns one token into an optional
scalar: ``Present(value)`` when the feed supplied a value, ``ABSENT`` when it
sent null or omitted the key. Absence is never folded into zero.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Final, Generic, TypeVar, Union

from scoutscrape.core.constants import FEED_TIMESTAMP_FORMAT
from scoutscrape.core.errors import DecodeError

T = TypeVar("T")

QUOTE_CHARS = ("'", '"')

# ASCII-only token shapes; int(), float() and strptime() alone also accept
# underscores, surrounding whitespace, non-ASCII digits and unpadded fields.
INT_TOKEN = re.compile(r"[+-]?[0-9]+")
FLOAT_TOKEN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
TIMESTAMP_TOKEN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}")


@dataclass(frozen=True, slots=True)
class Present(Generic[T]):
    """A value the feed actually supplied."""

    value: T


class Absent:
    """Marker for a field that was null or missing in the feed."""

    _instance: "Absent | None" = None
    __slots__ = ()

    def __new__(cls) -> "Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (Absent, ())


ABSENT: Final = Absent()

OptionalScalar = Union[Present[T], Absent]


def is_present(value: "OptionalScalar[Any]") -> bool:
    return isinstance(value, Present)


def sql_value(value: "OptionalScalar[Any]") -> Any:
    """
    Map an optional scalar to its SQL bind value.

    Args:
        value: Present or Absent

    Returns:
        The wrapped value, or None (SQL NULL) when absent
    """
    match value:
        case Present(value=inner):
            return inner
        case Absent():
            return None
    raise TypeError(f"not an optional scalar: {value!r}")


def unquote(token: str) -> str:
    """Strip one pair of matching surrounding quotes, if any."""
    if len(token) > 1 and token[0] == token[-1] and token[0] in QUOTE_CHARS:
        return token[1:-1]
    return token


def decode_int(field_name: str, token: Any) -> "OptionalScalar[int]":
    """
    Decode an integer field (rating, scores, observation count).

    Raises:
        DecodeError: If the token is neither null nor an integer
    """
    if token is None:
        return ABSENT
    if isinstance(token, bool):
        raise DecodeError("expected an integer", field_name, token)
    if isinstance(token, int):
        return Present(token)
    if isinstance(token, float):
        if token.is_integer():
            return Present(int(token))
        raise DecodeError("expected an integer", field_name, token)
    if isinstance(token, str):
        text = unquote(token)
        if INT_TOKEN.fullmatch(text):
            return Present(int(text))
    raise DecodeError("expected an integer", field_name, token)


def decode_float(field_name: str, token: Any) -> "OptionalScalar[float]":
    """
    Decode a floating-point field (magnitudes, distances, uncertainties).

    Raises:
        DecodeError: If the token is neither null nor a number
    """
    if token is None:
        return ABSENT
    if isinstance(token, bool):
        raise DecodeError("expected a number", field_name, token)
    if isinstance(token, (int, float)):
        return Present(float(token))
    if isinstance(token, str):
        text = unquote(token)
        if FLOAT_TOKEN.fullmatch(text):
            value = float(text)
            if math.isfinite(value):
                return Present(value)
    raise DecodeError("expected a number", field_name, token)


def decode_timestamp(field_name: str, token: Any) -> "OptionalScalar[datetime]":
    """
    Decode a minute-precision ``YYYY-MM-DD hh:mm`` timestamp as UTC.

    Null decodes to ABSENT rather than to a zero instant, so an omitted
    ephemeris time is stored as NULL instead of 0001-01-01.

    Raises:
        DecodeError: If the token is not null and not in the expected format
    """
    if token is None:
        return ABSENT
    if not isinstance(token, str):
        raise DecodeError("expected a timestamp string", field_name, token)
    text = unquote(token)
    try:
        if not TIMESTAMP_TOKEN.fullmatch(text):
            raise ValueError(text)
        parsed = datetime.strptime(text, FEED_TIMESTAMP_FORMAT)
    except ValueError:
        raise DecodeError(
            f"expected a timestamp in the form {FEED_TIMESTAMP_FORMAT}", field_name, token
        ) from None
    return Present(parsed.replace(tzinfo=timezone.utc))


def decode_text(field_name: str, token: Any) -> str:
    """Free-text fields are never optional: null or missing becomes ''."""
    if token is None:
        return ""
    if not isinstance(token, str):
        raise DecodeError("expected a string", field_name, token)
    return token
