"""
clients/xmlrpc_client.py
-------------------------

The unit the rest of the package depends on: ``call(service, method,
args)``.  An :class:`RPCClient` is bound to one endpoint URL and one
timeout and holds no other state, so a session usually owns two of
them (``/xmlrpc/2/common`` and ``/xmlrpc/2/object``).  Each call builds
a fresh :class:`RequestEnvelope`, runs one transport exchange and
either returns the decoded payload or raises the classified fault.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx

from odoo_xmlrpc.clients.transport import Transport
from odoo_xmlrpc.core.errors import classify_fault
from odoo_xmlrpc.schemas.envelope import Fault, RequestEnvelope, ResponseResult


class RPCClient:
    """XML-RPC client for a single endpoint."""

    def __init__(self, url: str, timeout: float = 30.0, *,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = Transport(url, timeout, http_transport=http_transport)

    @property
    def url(self) -> str:
        return self._transport.url

    @property
    def timeout(self) -> float:
        return self._transport.timeout

    def __repr__(self) -> str:
        return f"RPCClient(url={self.url!r}, timeout={self.timeout!r})"

    async def execute(self, envelope: RequestEnvelope) -> ResponseResult:
        """Run one exchange and return the raw :class:`Success`/:class:`Fault`.

        Network and parse failures are raised as ``ClassifiedError``.
        """
        return await self._transport.exchange(envelope)

    async def call(self, service: str, method: str, args: Sequence[Any] = ()) -> Any:
        """Call ``service.method(*args)`` and return the decoded payload.

        :raises ClassifiedError: on faults, network errors and
            unparseable responses
        """
        envelope = RequestEnvelope(service_name=service, method_name=method, args=tuple(args))
        result = await self.execute(envelope)
        return unwrap(result)


def unwrap(result: ResponseResult) -> Any:
    """Return the payload of a success, raise the classified fault otherwise."""
    if isinstance(result, Fault):
        raise classify_fault(result.fault_code, result.fault_string)
    return result.payload
