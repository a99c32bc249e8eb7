"""
schemas/envelope.py
--------------------

Value objects exchanged between the RPC client and the transport.
A :class:`RequestEnvelope` is built fresh for every call and a
:class:`Success` or :class:`Fault` describes what came back.  All of
them are frozen pydantic models so a result can be handed around
without anyone mutating it.
"""

from __future__ import annotations

from typing import Any, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator


class RequestEnvelope(BaseModel):
    """One XML-RPC call before it is rendered to markup."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_name: str
    method_name: str
    args: Tuple[Any, ...] = ()

    @field_validator("args", mode="before")
    @classmethod
    def _freeze_args(cls, value: Any) -> Tuple[Any, ...]:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(value)
        return (value,)

    @property
    def qualified_method(self) -> str:
        """``service.method``, or just ``method`` for an empty service name."""
        if not self.service_name:
            return self.method_name
        return f"{self.service_name}.{self.method_name}"


class Success(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    payload: Any = None

    @property
    def ok(self) -> bool:
        return True


class Fault(BaseModel):
    model_config = ConfigDict(frozen=True)

    fault_code: int
    fault_string: str = ""

    @property
    def ok(self) -> bool:
        return False


ResponseResult = Union[Success, Fault]
