"""
client.py
---------

High level entry point.  :class:`OdooClient` ties a session together:
it owns the :class:`AuthService` (and through it the two RPC clients),
hands out cached :class:`ModelClient` instances and runs the idempotent
session calls (``authenticate`` and ``version``) under a
:class:`RetryPolicy` configured with the default retry predicate.

Usage example::

    client = OdooClient(ConnectionConfig.from_settings())
    await client.connect()
    partners = await client.model("res.partner").search_read(
        [("is_company", "=", True)], fields=["name"], options=SearchOptions(limit=5)
    )
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from odoo_xmlrpc.core.config import ConnectionConfig
from odoo_xmlrpc.core.errors import is_retryable
from odoo_xmlrpc.core.retry import RetryConfig, RetryPolicy
from odoo_xmlrpc.services.auth_service import AuthService
from odoo_xmlrpc.services.field_mapper import FieldMapper
from odoo_xmlrpc.services.model_service import ModelClient


class OdooClient:
    """Session facade over authentication, records and field metadata.

    :param config: connection settings; defaults to the environment
    :param retry_config: retry tunables for ``connect`` and ``version``;
        defaults to :meth:`RetryConfig.from_settings`
    :param auth: pre-built :class:`AuthService`, mainly for tests
    :param retry_policy: pre-built policy, mainly for tests
    """

    def __init__(self, config: Optional[ConnectionConfig] = None, *,
                 retry_config: Optional[RetryConfig] = None,
                 auth: Optional[AuthService] = None,
                 retry_policy: Optional[RetryPolicy] = None) -> None:
        if auth is None:
            auth = AuthService(config or ConnectionConfig.from_settings())
        self._auth = auth
        self._retry = retry_policy or RetryPolicy(retry_config or RetryConfig.from_settings())
        self._models: Dict[str, ModelClient] = {}

    async def connect(self) -> int:
        """Authenticate, retrying transient failures. Returns the uid."""
        return await self._retry.run(self._auth.authenticate, retry_predicate=is_retryable)

    async def version(self) -> Dict[str, Any]:
        return await self._retry.run(self._auth.version, retry_predicate=is_retryable)

    def model(self, model_name: str) -> ModelClient:
        client = self._models.get(model_name)
        if client is None:
            client = self._models[model_name] = ModelClient(self._auth, model_name)
        return client

    async def create_field_mapper(self, model_name: str) -> FieldMapper:
        """Load the model's ``fields_get`` metadata into a :class:`FieldMapper`."""
        fields_info = await self.model(model_name).fields_get()
        return FieldMapper(fields_info or {})

    @property
    def auth(self) -> AuthService:
        return self._auth

    @property
    def is_connected(self) -> bool:
        return self._auth.is_authenticated

    @property
    def uid(self) -> Optional[int]:
        return self._auth.uid

    @property
    def config(self) -> ConnectionConfig:
        return self._auth.config
