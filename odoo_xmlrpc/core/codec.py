"""
core/codec.py
--------------

XML-RPC wire codec.

The value space of the protocol is modelled as a small set of frozen
variant classes (:class:`Nil`, :class:`String`, :class:`Int`,
:class:`Double`, :class:`Bool`, :class:`Array`, :class:`Struct`) plus
:class:`Opaque` for well-formed elements the codec does not understand.
Python values are mapped onto a variant exactly once, in
:func:`to_wire`; rendering and conversion back to Python values only
dispatch over the variant classes.

Encoding rules worth knowing:

* numbers become ``<int>`` whenever they have no fractional part, so
  ``5.0`` is sent as ``<int>5</int>``; other reals become ``<double>``;
* booleans are sent as ``1``/``0``;
* anything that is not a string, number, boolean, ``None``, sequence or
  mapping is sent as ``<string>`` of its ``str()``.  This is lossy: a
  ``datetime`` comes back as a string.

Decoding is lenient.  Empty numeric elements decode to ``""`` and
unknown elements are passed through as :class:`Opaque`.  Only markup
that is not well-formed XML, or a numeric body that is not a number,
raises a parse error.

This module performs no I/O.
"""

from __future__ import annotations

import numbers
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from odoo_xmlrpc.core.errors import ClassifiedError, ErrorKind
from odoo_xmlrpc.schemas.envelope import Fault, RequestEnvelope, ResponseResult, Success


# -----------------------------------------------------------------------------
# Wire value variants
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Nil:
    pass


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Int:
    # ``""`` when the element had no body
    value: Union[int, str]


@dataclass(frozen=True)
class Double:
    value: Union[float, str]


@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class Array:
    items: Tuple["WireValue", ...] = ()


@dataclass(frozen=True)
class Struct:
    members: Dict[str, "WireValue"] = field(default_factory=dict)


@dataclass(frozen=True)
class Opaque:
    """Well-formed element the codec does not interpret."""

    tag: str
    markup: str


WireValue = Union[Nil, String, Int, Double, Bool, Array, Struct, Opaque]


# -----------------------------------------------------------------------------
# Python values -> wire values -> markup
# -----------------------------------------------------------------------------

def escape(text: str) -> str:
    """Escape the five XML special characters, ``&`` first.

    Carriage returns become ``&#13;`` so the parser's line-ending
    normalisation cannot turn them into line feeds.
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
        .replace("\r", "&#13;")
    )


def to_wire(value: Any) -> WireValue:
    """Map a Python value onto exactly one wire variant."""
    if value is None:
        return Nil()
    if isinstance(value, str):
        return String(value)
    # bool is an Integral, so it has to be matched first
    if isinstance(value, bool):
        return Bool(value)
    if isinstance(value, numbers.Integral):
        return Int(int(value))
    if isinstance(value, numbers.Real):
        real = float(value)
        if real.is_integer():
            return Int(int(real))
        return Double(real)
    if isinstance(value, Mapping):
        return Struct({str(k): to_wire(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return Array(tuple(to_wire(item) for item in value))
    return String(str(value))


def render(wire: WireValue) -> str:
    """Render a wire value as the body of a ``<value>`` element."""
    if isinstance(wire, Nil):
        return "<nil/>"
    if isinstance(wire, String):
        return f"<string>{escape(wire.value)}</string>"
    if isinstance(wire, Bool):
        return f"<boolean>{'1' if wire.value else '0'}</boolean>"
    if isinstance(wire, Int):
        return f"<int>{wire.value}</int>"
    if isinstance(wire, Double):
        body = repr(wire.value) if isinstance(wire.value, float) else wire.value
        return f"<double>{body}</double>"
    if isinstance(wire, Array):
        items = "".join(f"<value>{render(item)}</value>" for item in wire.items)
        return f"<array><data>{items}</data></array>"
    if isinstance(wire, Struct):
        members = "".join(
            f"<member><name>{escape(name)}</name><value>{render(value)}</value></member>"
            for name, value in wire.members.items()
        )
        return f"<struct>{members}</struct>"
    if isinstance(wire, Opaque):
        return wire.markup
    raise TypeError(f"not a wire value: {wire!r}")


def encode(value: Any) -> str:
    """Encode a Python value as XML-RPC value markup.

    >>> encode([1, 2.5, "a&b"])
    '<array><data><value><int>1</int></value><value><double>2.5</double></value><value><string>a&amp;b</string></value></data></array>'
    """
    return render(to_wire(value))


def build_request(envelope: RequestEnvelope) -> bytes:
    """Render the complete ``<methodCall>`` document for an envelope."""
    params = "".join(
        f"<param><value>{encode(arg)}</value></param>" for arg in envelope.args
    )
    body = (
        '<?xml version="1.0"?>\n'
        "<methodCall>"
        f"<methodName>{escape(envelope.qualified_method)}</methodName>"
        f"<params>{params}</params>"
        "</methodCall>"
    )
    return body.encode("utf-8")


# -----------------------------------------------------------------------------
# markup -> wire values -> Python values
# -----------------------------------------------------------------------------

def _parse_failure(message: str, cause: BaseException | None = None) -> ClassifiedError:
    return ClassifiedError(ErrorKind.PARSE, message, cause=cause)


def _local(tag: str) -> str:
    # ``{namespace}nil`` -> ``nil``
    return tag.rsplit("}", 1)[-1]


def parse_value(value_el: ET.Element) -> WireValue:
    """Turn a ``<value>`` element into a wire value."""
    children = list(value_el)
    if not children:
        # XML-RPC's default type is string
        return String(value_el.text or "")
    typed = children[0]
    tag = _local(typed.tag)
    text = typed.text or ""

    if tag == "nil":
        return Nil()
    if tag == "string":
        return String(text)
    if tag in ("int", "i4"):
        if not text.strip():
            return Int("")
        try:
            return Int(int(text.strip()))
        except ValueError as exc:
            raise _parse_failure(f"Invalid <{tag}> value: {text!r}", exc) from exc
    if tag == "double":
        if not text.strip():
            return Double("")
        try:
            return Double(float(text.strip()))
        except ValueError as exc:
            raise _parse_failure(f"Invalid <double> value: {text!r}", exc) from exc
    if tag == "boolean":
        return Bool(text.strip() in ("1", "true"))
    if tag == "array":
        data = typed.find("data")
        if data is None:
            return Array()
        return Array(tuple(parse_value(v) for v in data.findall("value")))
    if tag == "struct":
        members: Dict[str, WireValue] = {}
        for member in typed.findall("member"):
            name_el = member.find("name")
            member_value = member.find("value")
            if name_el is None or member_value is None:
                continue
            members[name_el.text or ""] = parse_value(member_value)
        return Struct(members)
    return Opaque(tag, ET.tostring(typed, encoding="unicode"))


def to_native(wire: WireValue) -> Any:
    """Convert a wire value into plain Python data."""
    if isinstance(wire, Nil):
        return None
    if isinstance(wire, (String, Int, Double, Bool)):
        return wire.value
    if isinstance(wire, Array):
        return [to_native(item) for item in wire.items]
    if isinstance(wire, Struct):
        return {name: to_native(value) for name, value in wire.members.items()}
    if isinstance(wire, Opaque):
        return wire
    raise TypeError(f"not a wire value: {wire!r}")


def _parse_xml(markup: Union[str, bytes]) -> ET.Element:
    try:
        return ET.fromstring(markup)
    except ET.ParseError as exc:
        raise _parse_failure("Failed to parse XML response", exc) from exc


def decode(markup: Union[str, bytes, ET.Element]) -> Any:
    """Decode XML-RPC value markup into Python data.

    Accepts either a parsed element or markup text.  Bare type markup
    (``<int>5</int>``) and markup wrapped in ``<value>`` are both
    understood.
    """
    element = markup if isinstance(markup, ET.Element) else _parse_xml(markup)
    if _local(element.tag) != "value":
        wrapper = ET.Element("value")
        wrapper.append(element)
        element = wrapper
    return to_native(parse_value(element))


def parse_response(body: Union[str, bytes]) -> ResponseResult:
    """Parse a ``<methodResponse>`` document.

    A fault becomes :class:`Fault`.  Parameters become :class:`Success`
    holding the bare value when exactly one parameter is present and the
    list of values otherwise.  Anything else is a parse error.
    """
    root = _parse_xml(body)
    if _local(root.tag) != "methodResponse":
        raise _parse_failure("Invalid XML-RPC response format")

    fault = root.find("fault")
    if fault is not None:
        value_el = fault.find("value")
        detail = decode(value_el) if value_el is not None else {}
        if not isinstance(detail, dict):
            raise _parse_failure("Invalid XML-RPC fault format")
        return Fault(
            fault_code=_fault_code(detail.get("faultCode")),
            fault_string=str(detail.get("faultString") or ""),
        )

    params = root.find("params")
    if params is not None:
        values: List[Any] = []
        for param in params.findall("param"):
            value_el = param.find("value")
            if value_el is None:
                raise _parse_failure("Invalid XML-RPC response format: <param> without <value>")
            values.append(decode(value_el))
        return Success(payload=values[0] if len(values) == 1 else values)

    raise _parse_failure("Invalid XML-RPC response format")


def _fault_code(raw: Any) -> int:
    # non numeric codes (some servers send the exception name) map to 0
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return 0


__all__ = [
    "Nil", "String", "Int", "Double", "Bool", "Array", "Struct", "Opaque", "WireValue",
    "escape", "to_wire", "render", "encode", "build_request",
    "parse_value", "to_native", "decode", "parse_response",
]
