"""Shared test helpers: canned XML-RPC responses and fake collaborators."""

from typing import Any, List, Optional

import httpx

from odoo_xmlrpc.core.codec import encode


def method_response(*values: Any) -> bytes:
    params = "".join(f"<param><value>{encode(v)}</value></param>" for v in values)
    return (
        '<?xml version="1.0"?>\n'
        f"<methodResponse><params>{params}</params></methodResponse>"
    ).encode()


def fault_response(code: Any, message: str) -> bytes:
    detail = encode({"faultCode": code, "faultString": message})
    return (
        '<?xml version="1.0"?>\n'
        f"<methodResponse><fault><value>{detail}</value></fault></methodResponse>"
    ).encode()


def mock_transport(*bodies: Any, seen: Optional[List[httpx.Request]] = None) -> httpx.MockTransport:
    """MockTransport answering with ``bodies`` in order.

    Each body is either bytes (sent with status 200), an
    ``httpx.Response``, or a callable receiving the request.
    """
    queue = list(bodies)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        body = queue.pop(0)
        if callable(body):
            return body(request)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, content=body, headers={"Content-Type": "text/xml"})

    return httpx.MockTransport(handler)


class FakeRPCClient:
    """Stands in for RPCClient; replays queued results or raises queued errors."""

    def __init__(self, *results: Any, url: str = "http://erp.test/xmlrpc/2/object") -> None:
        self.url = url
        self.timeout = 30.0
        self.calls: List[tuple] = []
        self._results = list(results)

    def queue(self, *results: Any) -> None:
        self._results.extend(results)

    async def call(self, service: str, method: str, args: Any = ()) -> Any:
        self.calls.append((service, method, list(args)))
        if not self._results:
            raise AssertionError(f"unexpected call {service}.{method}")
        result = self._results.pop(0)
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            return result(*args)
        return result


class FakeSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
