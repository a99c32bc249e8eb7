"""
services/model_service.py
-------------------------

Record level convenience API for one model (``res.partner``,
``sale.order``...).  Every operation is a thin pass-through to
``object.execute_kw``: it assembles the operation name, positional
arguments and keyword options, and forwards them to the ``object``
RPC client owned by the :class:`AuthService`.  No wire level work
happens here.

Nothing in this module retries.  ``create`` in particular must not be
retried blindly: a connection lost after the backend committed the
write would otherwise insert the record twice.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from odoo_xmlrpc.core.errors import ClassifiedError, ErrorKind
from odoo_xmlrpc.logging_config import log_call
from odoo_xmlrpc.schemas.records import (
    DOMAIN_OPERATORS,
    LOGICAL_OPERATORS,
    DomainItem,
    DomainTerm,
    SearchOptions,
)
from odoo_xmlrpc.services.auth_service import AuthService


def normalize_domain(domain: Iterable[DomainItem] = ()) -> List[Any]:
    """Turn a search domain into the list-of-lists form the backend expects.

    Accepts :class:`DomainTerm` models, ``(field, operator, value)``
    tuples or lists, and the prefix operators ``&``, ``|`` and ``!``.

    :raises ClassifiedError: ``VALIDATION`` for malformed items
    """
    normalized: List[Any] = []
    for item in domain:
        if isinstance(item, str):
            if item not in LOGICAL_OPERATORS:
                raise ClassifiedError(
                    ErrorKind.VALIDATION,
                    f"Invalid domain operator: {item!r}",
                    validation_errors=[f"Unknown logical operator {item!r}"],
                )
            normalized.append(item)
        elif isinstance(item, DomainTerm):
            normalized.append(item.as_list())
        elif isinstance(item, (list, tuple)) and len(item) == 3:
            field, operator, value = item
            if operator not in DOMAIN_OPERATORS:
                raise ClassifiedError(
                    ErrorKind.VALIDATION,
                    f"Invalid domain term: {list(item)!r}",
                    validation_errors=[f"Unknown comparison operator {operator!r} for field {field!r}"],
                )
            normalized.append([field, operator, value])
        else:
            raise ClassifiedError(
                ErrorKind.VALIDATION,
                f"Invalid domain term: {item!r}",
                validation_errors=["Domain terms must be (field, operator, value) triples"],
            )
    return normalized


def _options(options: Optional[SearchOptions], **extra: Any) -> Dict[str, Any]:
    kwargs = options.model_dump(exclude_none=True) if options is not None else {}
    kwargs.update({k: v for k, v in extra.items() if v is not None})
    return kwargs


class ModelClient:
    """CRUD wrapper around ``execute_kw`` for a single model.

    :param auth: authenticated session; supplies the credentials prefix
        and the ``object`` endpoint client
    :param model_name: technical model name, e.g. ``res.partner``
    """

    def __init__(self, auth: AuthService, model_name: str) -> None:
        self._auth = auth
        self.model_name = model_name

    def __repr__(self) -> str:
        return f"ModelClient({self.model_name!r})"

    async def execute_kw(self, operation: str, args: Sequence[Any] = (),
                         kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """Send ``object.execute_kw`` for this model."""
        call_args: List[Any] = [
            *self._auth.credentials_prefix(),
            self.model_name,
            operation,
            list(args),
        ]
        if kwargs:
            call_args.append(kwargs)
        return await self._auth.object_client.call("object", "execute_kw", call_args)

    @log_call
    async def create(self, values: Dict[str, Any]) -> int:
        """Create one record and return its id."""
        return await self.execute_kw("create", [values])

    @log_call
    async def read(self, ids: Sequence[int], fields: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        return await self.execute_kw("read", [list(ids)], {"fields": list(fields)} if fields else None)

    @log_call
    async def write(self, ids: Sequence[int], values: Dict[str, Any]) -> bool:
        return bool(await self.execute_kw("write", [list(ids), values]))

    update = write

    @log_call
    async def unlink(self, ids: Sequence[int]) -> bool:
        return bool(await self.execute_kw("unlink", [list(ids)]))

    delete = unlink

    @log_call
    async def search(self, domain: Iterable[DomainItem] = (),
                     options: Optional[SearchOptions] = None) -> Any:
        """Return matching ids, or the match count when ``options.count`` is set."""
        return await self.execute_kw("search", [normalize_domain(domain)], _options(options))

    @log_call
    async def search_read(self, domain: Iterable[DomainItem] = (),
                          fields: Optional[Sequence[str]] = None,
                          options: Optional[SearchOptions] = None) -> List[Dict[str, Any]]:
        kwargs = _options(options, fields=list(fields) if fields else None)
        # ``count`` is a search() option only
        kwargs.pop("count", None)
        return await self.execute_kw("search_read", [normalize_domain(domain)], kwargs)

    @log_call
    async def search_count(self, domain: Iterable[DomainItem] = ()) -> int:
        return await self.execute_kw("search_count", [normalize_domain(domain)])

    count = search_count

    @log_call
    async def fields_get(self, attributes: Optional[Sequence[str]] = None) -> Dict[str, Dict[str, Any]]:
        """Return the field metadata of the model, keyed by field name."""
        return await self.execute_kw("fields_get", [], {"attributes": list(attributes)} if attributes else None)

    async def call_method(self, method: str, args: Sequence[Any] = (),
                          kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """Call any public model method, e.g. ``action_confirm``."""
        return await self.execute_kw(method, args, kwargs)
