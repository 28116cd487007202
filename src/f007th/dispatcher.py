"""HTTP dispatch of one encoded payload.

:meth:`Dispatcher.send` performs exactly one request per call on a fresh
``aiohttp`` session that is closed again before returning, and reports the
outcome as a boolean.  Network faults never escape as exceptions: they are
logged and reported as a failed send.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import SimpleNamespace

import aiohttp

from f007th._redact import redact_url
from f007th.buffers import BoundedWriter, PayloadBuffer
from f007th.config import Verbosity
from f007th.exceptions import F007thTransportError
from f007th.targets import ServerTarget

_logger = logging.getLogger(__name__)
_wire_logger = logging.getLogger("f007th.wire")

_CHUNK_SIZE = 1024

SessionFactory = Callable[[], aiohttp.ClientSession]


def _wire_trace_config() -> aiohttp.TraceConfig:
    """Trace hooks that log the exchange on the ``f007th.wire`` logger."""

    async def on_connection_create_end(
        _session: aiohttp.ClientSession,
        _ctx: SimpleNamespace,
        _params: aiohttp.TraceConnectionCreateEndParams,
    ) -> None:
        _wire_logger.debug("* connection established")

    async def on_request_start(
        _session: aiohttp.ClientSession,
        _ctx: SimpleNamespace,
        params: aiohttp.TraceRequestStartParams,
    ) -> None:
        _wire_logger.debug("> %s %s", params.method, redact_url(str(params.url)))
        for key, value in params.headers.items():
            _wire_logger.debug("> %s: %s", key, value)

    async def on_request_chunk_sent(
        _session: aiohttp.ClientSession,
        _ctx: SimpleNamespace,
        params: aiohttp.TraceRequestChunkSentParams,
    ) -> None:
        _wire_logger.debug("> sent %d bytes", len(params.chunk))

    async def on_request_end(
        _session: aiohttp.ClientSession,
        _ctx: SimpleNamespace,
        params: aiohttp.TraceRequestEndParams,
    ) -> None:
        _wire_logger.debug("< HTTP %d %s", params.response.status, params.response.reason)
        for key, value in params.response.headers.items():
            _wire_logger.debug("< %s: %s", key, value)

    async def on_response_chunk_received(
        _session: aiohttp.ClientSession,
        _ctx: SimpleNamespace,
        params: aiohttp.TraceResponseChunkReceivedParams,
    ) -> None:
        _wire_logger.debug("< received %d bytes", len(params.chunk))

    async def on_request_exception(
        _session: aiohttp.ClientSession,
        _ctx: SimpleNamespace,
        params: aiohttp.TraceRequestExceptionParams,
    ) -> None:
        _wire_logger.debug("* %s %s failed: %r", params.method, redact_url(str(params.url)), params.exception)

    trace = aiohttp.TraceConfig()
    trace.on_connection_create_end.append(on_connection_create_end)
    trace.on_request_start.append(on_request_start)
    trace.on_request_chunk_sent.append(on_request_chunk_sent)
    trace.on_request_end.append(on_request_end)
    trace.on_response_chunk_received.append(on_response_chunk_received)
    trace.on_request_exception.append(on_request_exception)
    return trace


class Dispatcher:
    """Deliver encoded payloads to one server target.

    Parameters
    ----------
    target
        Destination and wire-format variant.
    verbosity
        ``TRACE_WIRE`` installs wire tracing, ``ECHO_DETAILS`` logs the
        captured response body.
    timeout
        Total seconds allowed for one exchange; ``None`` waits forever.
    session_factory
        Creates the per-exchange session.  Defaults to a force-close
        ``aiohttp.ClientSession``.
    """

    def __init__(
        self,
        target: ServerTarget,
        *,
        verbosity: Verbosity = Verbosity.NONE,
        timeout: float | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._target = target
        self._verbosity = verbosity
        self._timeout = timeout
        self._session_factory = session_factory or self._new_session
        self._safe_url = redact_url(target.url)

    @property
    def _details(self) -> bool:
        return bool(self._verbosity & Verbosity.ECHO_DETAILS)

    def _new_session(self) -> aiohttp.ClientSession:
        trace_configs = [_wire_trace_config()] if self._verbosity & Verbosity.TRACE_WIRE else None
        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(force_close=True),
            timeout=aiohttp.ClientTimeout(total=self._timeout),
            trace_configs=trace_configs,
        )

    async def _exchange(
        self,
        session: aiohttp.ClientSession,
        body: bytes,
        response: BoundedWriter,
    ) -> int:
        """Run the request and capture the body; return the HTTP status."""
        target = self._target
        status: int | None = None
        try:
            async with session.request(
                target.method,
                target.url,
                data=body,
                headers=dict(target.headers),
                skip_auto_headers=target.skip_auto_headers,
            ) as resp:
                status = resp.status
                async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                    kept = response.write(chunk)
                    if self._details:
                        _logger.debug("receiving %d bytes (%d kept)...", len(chunk), kept)
                return resp.status
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise F007thTransportError(
                str(exc) or type(exc).__name__,
                status_code=status,
                url=self._safe_url,
            ) from exc

    async def send(self, payload: PayloadBuffer, length: int, response: BoundedWriter) -> bool:
        """Send the first *length* bytes of *payload*; ``True`` on the expected status."""
        url = self._safe_url
        if self._details:
            _logger.debug("send() called with %d bytes for %s", length, url)
        if length <= 0:
            _logger.debug("Nothing sent to %s: no payload was generated", url)
            return False

        response.reset()
        try:
            session = self._session_factory()
        except (aiohttp.ClientError, OSError, RuntimeError) as exc:
            _logger.error("Failed to get HTTP session: %s", exc)
            return False

        status = 0
        completed = False
        async with session:
            try:
                status = await self._exchange(session, bytes(payload.view()[:length]), response)
                completed = True
            except F007thTransportError as exc:
                status = exc.status_code or 0
                _logger.error("Sending data to %s failed: %s", url, exc)

        if response.truncated:
            _logger.debug("Server response truncated to %d bytes", len(response))

        expected = self._target.expected_status
        succeeded = completed and status == expected
        if not succeeded:
            if status == 0:
                _logger.error("Failed to connect to server %s", url)
            elif status != expected:
                _logger.error("Got HTTP status code %d from %s (expected %d)", status, url, expected)
        if self._details and response:
            _logger.log(logging.DEBUG if succeeded else logging.ERROR, "Server response: %s", response.text)
        return succeeded
