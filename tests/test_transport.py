import asyncio

import httpx
import pytest

from odoo_xmlrpc.clients.transport import Transport
from odoo_xmlrpc.core.errors import ClassifiedError, ErrorKind, is_retryable
from odoo_xmlrpc.schemas.envelope import Fault, RequestEnvelope, Success
from tests.helpers import fault_response, method_response, mock_transport

URL = "http://erp.test/xmlrpc/2/object"


def _envelope(*args) -> RequestEnvelope:
    return RequestEnvelope(service_name="object", method_name="execute_kw", args=args)


def _raising(exc_type, message):
    def handler(request: httpx.Request):
        raise exc_type(message, request=request)
    return handler


@pytest.mark.asyncio
async def test_posts_xml_with_headers_and_returns_success() -> None:
    seen = []
    transport = Transport(URL, timeout=5, http_transport=mock_transport(method_response([1, 2]), seen=seen))

    result = await transport.exchange(_envelope("demo", 2, "pw"))

    assert result == Success(payload=[1, 2])
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == URL
    assert request.headers["Content-Type"] == "text/xml"
    assert request.headers["Content-Length"] == str(len(request.content))
    assert b"<methodName>object.execute_kw</methodName>" in request.content
    assert request.content.count(b"<param>") == 3


@pytest.mark.asyncio
async def test_fault_is_returned_not_raised() -> None:
    transport = Transport(URL, http_transport=mock_transport(fault_response(2, "bad login")))
    result = await transport.exchange(_envelope())
    assert result == Fault(fault_code=2, fault_string="bad login")


@pytest.mark.asyncio
async def test_multiple_params_come_back_as_list() -> None:
    transport = Transport(URL, http_transport=mock_transport(method_response("a", "b")))
    result = await transport.exchange(_envelope())
    assert result.payload == ["a", "b"]


@pytest.mark.asyncio
async def test_malformed_body_is_parse_error() -> None:
    transport = Transport(URL, http_transport=mock_transport(b"<html>oops"))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.PARSE
    assert is_retryable(excinfo.value) is False


@pytest.mark.asyncio
async def test_connection_refused_is_connection_error() -> None:
    transport = Transport(URL, http_transport=httpx.MockTransport(_raising(httpx.ConnectError, "Connection refused")))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    err = excinfo.value
    assert err.kind is ErrorKind.CONNECTION
    assert err.transport_code == "ECONNREFUSED"
    assert isinstance(err.cause, httpx.ConnectError)
    assert is_retryable(err) is True


@pytest.mark.asyncio
async def test_dns_failure_is_enotfound() -> None:
    handler = _raising(httpx.ConnectError, "[Errno -2] Name or service not known")
    transport = Transport(URL, http_transport=httpx.MockTransport(handler))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.CONNECTION
    assert excinfo.value.transport_code == "ENOTFOUND"


@pytest.mark.asyncio
async def test_reset_is_econnreset() -> None:
    transport = Transport(URL, http_transport=httpx.MockTransport(_raising(httpx.ReadError, "peer closed")))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.transport_code == "ECONNRESET"


@pytest.mark.asyncio
async def test_httpx_timeout_is_connection_error() -> None:
    transport = Transport(URL, http_transport=httpx.MockTransport(_raising(httpx.ReadTimeout, "timed out")))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.CONNECTION
    assert excinfo.value.message == "Request timeout"
    assert excinfo.value.transport_code == "ETIMEDOUT"


@pytest.mark.asyncio
async def test_timeout_bounds_the_whole_exchange() -> None:
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, content=method_response(True))

    transport = Transport(URL, timeout=0.05, http_transport=httpx.MockTransport(slow))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.CONNECTION
    assert excinfo.value.transport_code == "ETIMEDOUT"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 502, 503, 504])
async def test_gateway_statuses_are_connection_errors(status) -> None:
    transport = Transport(URL, http_transport=mock_transport(httpx.Response(status, text="busy")))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.CONNECTION
    assert str(status) in excinfo.value.message


@pytest.mark.asyncio
async def test_server_error_without_xml_is_generic() -> None:
    transport = Transport(URL, http_transport=mock_transport(httpx.Response(500, text="<h1>Internal Server Error")))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.GENERIC
    assert excinfo.value.message == f"HTTP 500 from {URL}"


@pytest.mark.asyncio
async def test_server_error_with_fault_body_returns_fault() -> None:
    transport = Transport(URL, http_transport=mock_transport(httpx.Response(500, content=fault_response(4, "oops"))))
    assert await transport.exchange(_envelope()) == Fault(fault_code=4, fault_string="oops")


@pytest.mark.asyncio
async def test_each_exchange_posts_exactly_once() -> None:
    seen = []
    transport = Transport(URL, http_transport=mock_transport(httpx.Response(503), method_response(1), seen=seen))
    with pytest.raises(ClassifiedError):
        await transport.exchange(_envelope())
    assert len(seen) == 1
    assert await transport.exchange(_envelope()) == Success(payload=1)
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_undecodable_body_is_parse_error() -> None:
    def corrupt_gzip(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    transport = Transport(URL, http_transport=httpx.MockTransport(corrupt_gzip))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.PARSE
    assert isinstance(excinfo.value.cause, httpx.DecodingError)
    assert is_retryable(excinfo.value) is False


@pytest.mark.asyncio
async def test_other_httpx_errors_are_classified() -> None:
    transport = Transport(URL, http_transport=httpx.MockTransport(_raising(httpx.TooManyRedirects, "loop")))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.GENERIC
    assert isinstance(excinfo.value.cause, httpx.TooManyRedirects)


@pytest.mark.asyncio
async def test_unparseable_url_is_generic_error() -> None:
    seen = []
    transport = Transport("http://[::1/xmlrpc/2/object", http_transport=mock_transport(method_response(1), seen=seen))
    with pytest.raises(ClassifiedError) as excinfo:
        await transport.exchange(_envelope())
    assert excinfo.value.kind is ErrorKind.GENERIC
    assert isinstance(excinfo.value.cause, httpx.InvalidURL)
    assert seen == []
