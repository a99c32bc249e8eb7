"""
clients/transport.py
---------------------

One XML-RPC request/response round trip over HTTP(S).

:class:`Transport` posts a rendered ``<methodCall>`` document to a
single endpoint and turns the answer into a :class:`Success` or a
:class:`Fault`.  It uses ``httpx`` under the hood and opens a fresh
``AsyncClient`` per exchange; there is no connection pooling and no
retry here.  Retrying is layered on top by
:mod:`odoo_xmlrpc.core.retry`.

Failures are raised as :class:`ClassifiedError`:

* connection refused, DNS failures, resets, timeouts and the transient
  gateway statuses (429, 502, 503, 504) are ``CONNECTION`` errors;
* a body that cannot be decoded, or is not a valid ``<methodResponse>``,
  is a ``PARSE`` error;
* an endpoint URL httpx cannot parse, and any other non-2xx status
  without a usable body, is ``GENERIC``.

The timeout bounds the whole exchange (connect, send and receive), not
each phase separately.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Optional

import httpx

from odoo_xmlrpc import __version__
from odoo_xmlrpc.core.codec import build_request, parse_response
from odoo_xmlrpc.core.errors import ClassifiedError, ErrorKind, classify_transport_error, transport_code_of
from odoo_xmlrpc.logging_config import log_rpc_call, logger
from odoo_xmlrpc.schemas.envelope import Fault, RequestEnvelope, ResponseResult

# HTTP status codes that signal a transient condition upstream
TRANSIENT_STATUS = {429, 502, 503, 504}

USER_AGENT = f"odoo-xmlrpc/{__version__}"


class Transport:
    """Performs exactly one HTTP POST per :meth:`exchange`.

    :param url: full endpoint URL, e.g. ``https://erp.example.com/xmlrpc/2/object``
    :param timeout: seconds allowed for the whole exchange
    :param http_transport: optional ``httpx`` transport, used by tests to
        plug in ``httpx.MockTransport``
    """

    def __init__(self, url: str, timeout: float = 30.0, *,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.url = url
        self.timeout = timeout
        self._http_transport = http_transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._http_transport,
            follow_redirects=False,
        )

    async def exchange(self, envelope: RequestEnvelope) -> ResponseResult:
        body = build_request(envelope)
        method = envelope.qualified_method
        headers = {
            "Content-Type": "text/xml",
            "Content-Length": str(len(body)),
            "User-Agent": USER_AGENT,
        }
        log_rpc_call(self.url, method, arg_count=len(envelope.args))
        start_time = time.monotonic()

        try:
            response = await asyncio.wait_for(self._post(body, headers), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise self._failed(
                envelope, start_time,
                ClassifiedError(ErrorKind.CONNECTION, "Request timeout", cause=exc, transport_code="ETIMEDOUT"),
            ) from exc
        except httpx.TransportError as exc:
            code = transport_code_of(exc) or _code_for(exc)
            message = f"Connection failed: {exc}" if str(exc) else f"Connection failed: {exc.__class__.__name__}"
            raise self._failed(
                envelope, start_time,
                ClassifiedError(ErrorKind.CONNECTION, message, cause=exc, transport_code=code),
            ) from exc
        except httpx.DecodingError as exc:
            raise self._failed(
                envelope, start_time,
                ClassifiedError(ErrorKind.PARSE, f"Undecodable response body: {exc}", cause=exc),
            ) from exc
        except httpx.HTTPError as exc:
            raise self._failed(envelope, start_time, classify_transport_error(exc)) from exc
        except httpx.InvalidURL as exc:
            raise self._failed(
                envelope, start_time,
                ClassifiedError(ErrorKind.GENERIC, f"Invalid endpoint URL {self.url!r}: {exc}", cause=exc),
            ) from exc

        duration_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status in TRANSIENT_STATUS:
            raise self._failed(
                envelope, start_time,
                ClassifiedError(ErrorKind.CONNECTION, f"HTTP {status} from {self.url}"),
                status=status,
            )

        try:
            result = parse_response(response.content)
        except ClassifiedError as exc:
            if response.is_success:
                raise self._failed(envelope, start_time, exc, status=status)
            raise self._failed(
                envelope, start_time,
                ClassifiedError(ErrorKind.GENERIC, f"HTTP {status} from {self.url}", cause=exc),
                status=status,
            ) from exc

        if isinstance(result, Fault):
            log_rpc_call(self.url, method, arg_count=len(envelope.args), outcome="fault",
                         status=status, fault_code=result.fault_code, duration_ms=duration_ms)
        else:
            log_rpc_call(self.url, method, arg_count=len(envelope.args), outcome="success",
                         status=status, duration_ms=duration_ms)
        return result

    async def _post(self, body: bytes, headers: dict) -> httpx.Response:
        async with self._client() as client:
            return await client.post(self.url, content=body, headers=headers)

    def _failed(self, envelope: RequestEnvelope, start_time: float, error: ClassifiedError,
                status: Optional[int] = None) -> ClassifiedError:
        duration_ms = (time.monotonic() - start_time) * 1000
        log_rpc_call(self.url, envelope.qualified_method, arg_count=len(envelope.args),
                     outcome="error", status=status, duration_ms=duration_ms)
        logger.warning(json.dumps({
            "event": "rpc_error",
            "endpoint": self.url,
            "method": envelope.qualified_method,
            **error.to_dict(),
        }))
        return error


def _code_for(exc: httpx.TransportError) -> Optional[str]:
    if isinstance(exc, httpx.ConnectError):
        lowered = str(exc).lower()
        if "name or service not known" in lowered or "nodename nor servname" in lowered \
                or "getaddrinfo" in lowered or "name resolution" in lowered:
            return "ENOTFOUND"
        return "ECONNREFUSED"
    if isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return "ECONNRESET"
    return None
