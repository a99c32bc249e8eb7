"""
schemas/records.py
-------------------

Pydantic models used by the record layer: search domain terms, search
options, field metadata as reported by ``fields_get`` and the outcome
of a record validation.  Field names mirror the backend's keyword
arguments so ``model_dump(exclude_none=True)`` can be sent as is.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional, Tuple, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

DomainOperator = Literal[
    "=", "!=", ">", "<", ">=", "<=", "like", "ilike", "not like", "not ilike",
    "in", "not in", "=like", "=ilike", "child_of", "parent_of",
]

DOMAIN_OPERATORS = frozenset(get_args(DomainOperator))
LOGICAL_OPERATORS = frozenset({"&", "|", "!"})


class DomainTerm(BaseModel):
    """A single ``(field, operator, value)`` search criterion."""

    field: str
    operator: DomainOperator = "="
    value: Any = None

    def as_list(self) -> List[Any]:
        return [self.field, self.operator, self.value]


DomainItem = Union[DomainTerm, Tuple[str, str, Any], List[Any], str]


class SearchOptions(BaseModel):
    """Keyword options accepted by ``search`` and ``search_read``."""

    offset: Optional[int] = Field(None, ge=0)
    limit: Optional[int] = Field(None, ge=0)
    order: Optional[str] = None
    count: Optional[bool] = None


class FieldInfo(BaseModel):
    """Metadata for one field, as returned by ``fields_get``.

    Unknown attributes reported by the server are kept so callers can
    reach them through ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    string: str = ""
    type: str = ""
    required: bool = False
    readonly: bool = False
    help: Optional[str] = None
    relation: Optional[str] = None
    selection: Optional[List[Tuple[Union[str, int], str]]] = None


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
