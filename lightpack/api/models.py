"""
Lightpack API-level models.

This module contains models that belong to the api layer:
- Colour, LedArea (values carried in batched records)
- ConnectResult (outcome of LightpackSession.connect)

Batched records look like '<index>-<v1>,<v2>,...' and are joined with ';'.
"""

from dataclasses import dataclass
from typing import Optional, Self

from ..exceptions import AuthenticationFailedError, LightpackConnectionError, LightpackError
from .types import ConnectFailure, Const


def split_records(payload: str) -> list[tuple[int, list[int]]]:
    """Split '1-0,0,100,50;2-100,0,100,50;' into [(1, [0, 0, 100, 50]), (2, [...])]."""
    records = []
    for record in payload.split(";"):
        if not record:
            continue
        index, _, values = record.partition("-")
        try:
            records.append((int(index), [int(v) for v in values.split(",") if v.strip()]))
        except ValueError:
            raise ValueError(f"Malformed record: {record!r}") from None
    return records


def join_records(records: list[tuple[int, list[int]]]) -> str:
    return "".join(f"{index}-{','.join(str(v) for v in values)};" for index, values in records)


@dataclass(frozen=True)
class Colour:
    """Represents an RGB colour"""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name, value in (("R", self.r), ("G", self.g), ("B", self.b)):
            if not 0 <= value <= Const.MAX_CHANNEL:
                raise ValueError(f"{name} must be between 0 and {Const.MAX_CHANNEL}, received {value}")

    @classmethod
    def from_values(cls, values: list[int]) -> Self:
        if len(values) != 3:
            raise ValueError(f"Colour needs 3 values, received {values}")
        return cls(*values)

    def values(self) -> list[int]:
        return [self.r, self.g, self.b]


@dataclass(frozen=True)
class LedArea:
    """Screen region sampled for one LED"""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_values(cls, values: list[int]) -> Self:
        if len(values) != 4:
            raise ValueError(f"LED area needs 4 values, received {values}")
        return cls(*values)

    def values(self) -> list[int]:
        return [self.x, self.y, self.width, self.height]


@dataclass
class ConnectResult:
    """
    Outcome of a connect attempt.

    Truthy when connected. On failure, `failure` names the stage that failed
    and `error` holds the exception raised there (None for ALREADY_CONNECTED
    and for a rejected API key).
    """
    ok: bool
    failure: Optional[ConnectFailure] = None
    error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_failure(self) -> None:
        """Raise an exception describing the failure, if any."""
        if self.ok:
            return
        match self.failure:
            case ConnectFailure.AUTHENTICATION_FAILED:
                raise AuthenticationFailedError("Controller rejected the API key") from self.error
            case ConnectFailure.SOCKET_ERROR:
                if isinstance(self.error, LightpackConnectionError):
                    raise self.error
                raise LightpackConnectionError(str(self.error)) from self.error
            case ConnectFailure.ALREADY_CONNECTED:
                raise LightpackError("Already connected")
            case _:
                raise LightpackConnectionError(f"Connect failed ({self.failure.name}): {self.error}") from self.error
