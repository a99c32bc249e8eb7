"""
core/errors.py
---------------

Error taxonomy for the XML-RPC client.

Every failure that leaves the client is a :class:`ClassifiedError`: a
single exception type tagged with an :class:`ErrorKind`.  The helpers in
this module are pure; they turn a fault (code and string) or a raw
transport exception into a classified error and decide whether an
error is worth retrying.  They never perform I/O.

Fault codes follow the backend's convention:

* ``1`` connection or transient backend race
* ``2`` authentication
* ``3`` validation
* anything else is a generic application fault
"""

from __future__ import annotations

import enum
import errno
import socket
from typing import Iterable, Optional, Tuple


class ErrorKind(str, enum.Enum):
    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    PARSE = "parse"
    GENERIC = "generic"


# transport codes considered transient by the default retry predicate
TRANSIENT_TRANSPORT_CODES = frozenset({"ECONNRESET", "ENOTFOUND", "ETIMEDOUT"})

_CONNECTION_MARKERS = ("timeout", "connection", "network", "econnreset", "enotfound")

_ERRNO_CODES = {
    errno.ECONNRESET: "ECONNRESET",
    errno.ECONNREFUSED: "ECONNREFUSED",
    errno.ETIMEDOUT: "ETIMEDOUT",
    errno.EPIPE: "EPIPE",
    errno.ENETUNREACH: "ENETUNREACH",
    errno.EHOSTUNREACH: "EHOSTUNREACH",
}


class ClassifiedError(Exception):
    """Failure of an XML-RPC call, tagged with its kind.

    :param kind: category used for retry decisions and reporting
    :param message: human readable description
    :param fault_code: backend fault code when the failure is a fault
    :param fault_string: backend fault string when the failure is a fault
    :param cause: underlying exception, if any
    :param validation_errors: sub-messages carried by validation failures
    :param transport_code: symbolic network error code (``ECONNRESET``...)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        fault_code: Optional[int] = None,
        fault_string: Optional[str] = None,
        cause: Optional[BaseException] = None,
        validation_errors: Iterable[str] = (),
        transport_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.fault_code = fault_code
        self.fault_string = fault_string
        self.cause = cause
        self.validation_errors: Tuple[str, ...] = tuple(validation_errors)
        self.transport_code = transport_code
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.value!r}, message={self.message!r}, "
            f"fault_code={self.fault_code!r})"
        )

    def to_dict(self) -> dict:
        """Return a JSON friendly description, used for structured logs."""
        data = {"kind": self.kind.value, "message": self.message}
        if self.fault_code is not None:
            data["fault_code"] = self.fault_code
        if self.fault_string is not None:
            data["fault_string"] = self.fault_string
        if self.validation_errors:
            data["validation_errors"] = list(self.validation_errors)
        if self.transport_code is not None:
            data["transport_code"] = self.transport_code
        return data


def classify_fault(fault_code: int, fault_string: str) -> ClassifiedError:
    """Map a backend fault onto a :class:`ClassifiedError`."""
    if fault_code == 1:
        kind, message = ErrorKind.CONNECTION, f"Connection error: {fault_string}"
    elif fault_code == 2:
        kind, message = ErrorKind.AUTHENTICATION, f"Authentication error: {fault_string}"
    elif fault_code == 3:
        kind, message = ErrorKind.VALIDATION, f"Validation error: {fault_string}"
    else:
        kind, message = ErrorKind.GENERIC, f"Odoo error ({fault_code}): {fault_string}"
    return ClassifiedError(kind, message, fault_code=fault_code, fault_string=fault_string)


def transport_code_of(exc: BaseException) -> Optional[str]:
    """Find a symbolic network error code in an exception chain.

    httpx wraps the socket level exception, so the chain is walked
    through ``__cause__`` and ``__context__`` until an ``OSError`` with a
    known errno (or a resolver failure) shows up.
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ClassifiedError) and current.transport_code:
            return current.transport_code
        if isinstance(current, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(current, (socket.timeout, TimeoutError)):
            return "ETIMEDOUT"
        if isinstance(current, OSError) and current.errno in _ERRNO_CODES:
            return _ERRNO_CODES[current.errno]
        current = current.__cause__ or current.__context__
    return None


def classify_transport_error(exc: BaseException) -> ClassifiedError:
    """Classify an exception raised while talking to the backend.

    Already classified errors are returned unchanged.  Otherwise the
    message is searched (case-insensitively) for the usual network
    markers; a match gives a connection error, anything else a generic
    one.  The original exception is kept as ``cause``.
    """
    if isinstance(exc, ClassifiedError):
        return exc
    message = str(exc) or exc.__class__.__name__
    code = transport_code_of(exc)
    lowered = f"{message} {code or ''}".lower()
    if code is not None or any(marker in lowered for marker in _CONNECTION_MARKERS):
        kind = ErrorKind.CONNECTION
    else:
        kind = ErrorKind.GENERIC
    return ClassifiedError(kind, message, cause=exc, transport_code=code)


def is_retryable(error: BaseException) -> bool:
    """Default retry predicate.

    Retry connection errors, fault code 1 (a transient backend or
    authentication race) and transport failures with a transient code.
    Parse, validation, authentication and generic errors are final.
    """
    classified = classify_transport_error(error)
    if classified.kind is ErrorKind.PARSE:
        return False
    if classified.kind is ErrorKind.CONNECTION:
        return True
    if classified.fault_code == 1:
        return True
    return classified.transport_code in TRANSIENT_TRANSPORT_CODES
