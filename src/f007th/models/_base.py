"""Base model for decoded sensor data.

Decoders publish messages as JSON objects, sometimes with camelCase keys
and sometimes with snake_case keys.  :class:`F007thBaseModel` accepts both
via ``alias_generator=to_camel`` plus ``populate_by_name`` and freezes the
result so a message cannot change while it moves through the pipeline.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> Any:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    Anything that is not numeric is passed through for pydantic to parse.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts = ts / 1000
    return datetime.fromtimestamp(ts, tz=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


Timestamp = Annotated[datetime, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces epoch numbers (seconds or ms) to UTC datetimes."""


class F007thBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        # NaN and infinity cannot be written as JSON or line protocol.
        allow_inf_nan=False,
    )
