"""Server targets: where readings go and what the server expects.

A target is one of two immutable variants.  Each carries everything that
differs between the two wire formats, so callers select behaviour with a
``match`` on the variant instead of branching on a server-type flag:

* :class:`RestTarget` -- ``PUT`` a JSON document, expect ``200``.
* :class:`InfluxTarget` -- ``POST`` line protocol with no content
  negotiation, expect ``204``.
"""

from __future__ import annotations

import dataclasses
from enum import StrEnum
from types import MappingProxyType
from typing import ClassVar

from f007th.exceptions import F007thConfigError

_HTTP_SCHEMES = ("http://", "https://")


class ServerType(StrEnum):
    REST = "REST"
    INFLUXDB = "InfluxDB"

    @classmethod
    def parse(cls, value: str) -> ServerType:
        """Resolve a server type name case-insensitively."""
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise F007thConfigError(f'Unknown server type "{value}"')


@dataclasses.dataclass(frozen=True)
class RestTarget:
    """Generic REST endpoint accepting one JSON reading per ``PUT``."""

    url: str

    server_type: ClassVar[ServerType] = ServerType.REST
    method: ClassVar[str] = "PUT"
    expected_status: ClassVar[int] = 200
    headers: ClassVar[MappingProxyType[str, str]] = MappingProxyType(
        {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "charsets": "utf-8",
            "Connection": "close",
        }
    )
    skip_auto_headers: ClassVar[frozenset[str]] = frozenset()


@dataclasses.dataclass(frozen=True)
class InfluxTarget:
    """InfluxDB write endpoint accepting a raw line-protocol body."""

    url: str

    server_type: ClassVar[ServerType] = ServerType.INFLUXDB
    method: ClassVar[str] = "POST"
    expected_status: ClassVar[int] = 204
    headers: ClassVar[MappingProxyType[str, str]] = MappingProxyType({})
    # The ingest endpoint expects no content-type/accept negotiation at all.
    skip_auto_headers: ClassVar[frozenset[str]] = frozenset({"Content-Type", "Accept"})


ServerTarget = RestTarget | InfluxTarget


def validate_url(url: str | None) -> str:
    """Return *url* stripped, or raise if it is missing or not HTTP(S)."""
    value = (url or "").strip()
    if not value:
        raise F007thConfigError("Server URL must be specified (options --send-to or -s)")
    if not value.startswith(_HTTP_SCHEMES):
        raise F007thConfigError("Server URL must be HTTP or HTTPS")
    return value


def make_target(url: str | None, server_type: ServerType | str = ServerType.REST) -> ServerTarget:
    """Build the target variant for *server_type* pointing at *url*."""
    if not isinstance(server_type, ServerType):
        server_type = ServerType.parse(server_type)
    checked = validate_url(url)
    match server_type:
        case ServerType.REST:
            return RestTarget(checked)
        case ServerType.INFLUXDB:
            return InfluxTarget(checked)
    raise F007thConfigError(f'Unknown server type "{server_type}"')
