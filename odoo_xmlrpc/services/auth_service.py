"""
services/auth_service.py
------------------------

Authentication bookkeeping for one backend session.  The service owns
the two RPC clients of a session (``common`` and ``object``
endpoints), performs ``common.authenticate`` and remembers the user id
the backend hands back.  Downstream layers ask it for the
``[database, uid, secret]`` prefix every ``execute_kw`` call starts
with.

Whether the secret is a password or an API key is a configuration
choice (``credential_kind``); both travel in the same wire slot.

Method names go out qualified (``common.authenticate``,
``common.version``).  A stock Odoo ``/xmlrpc/2/common`` endpoint
dispatches on the bare method name, so a server that rejects the
qualified form needs the calls sent with an empty service name, which
:func:`odoo_xmlrpc.core.codec.build_request` renders as just the method.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from odoo_xmlrpc.clients.xmlrpc_client import RPCClient
from odoo_xmlrpc.core.config import ConnectionConfig
from odoo_xmlrpc.core.errors import ClassifiedError, ErrorKind
from odoo_xmlrpc.logging_config import log_call, logger


class AuthService:
    """Authenticate against the ``common`` endpoint and hold the uid.

    :param config: connection settings for the session
    :param common_client: client bound to ``/xmlrpc/2/common``; built
        from ``config`` when omitted
    :param object_client: client bound to ``/xmlrpc/2/object``; built
        from ``config`` when omitted
    """

    def __init__(self, config: ConnectionConfig, *,
                 common_client: Optional[RPCClient] = None,
                 object_client: Optional[RPCClient] = None) -> None:
        self._config = config
        self._uid: Optional[int] = None
        self.common_client = common_client or RPCClient(config.common_url, config.timeout)
        self.object_client = object_client or RPCClient(config.object_url, config.timeout)

    @property
    def config(self) -> ConnectionConfig:
        return self._config.model_copy()

    @property
    def uid(self) -> Optional[int]:
        return self._uid

    @property
    def is_authenticated(self) -> bool:
        return self._uid is not None

    @log_call
    async def authenticate(self) -> int:
        """Log in and return the user id.

        :raises ClassifiedError: ``AUTHENTICATION`` when the backend
            rejects the credentials (it answers ``False`` rather than a
            fault), or whatever the RPC client raised
        """
        logger.info(json.dumps({
            "event": "login_start",
            "database": self._config.database,
            "username": self._config.username,
            "credential_kind": self._config.credential_kind,
        }))
        uid = await self.common_client.call("common", "authenticate", [
            self._config.database,
            self._config.username,
            self._config.credential,
            {},
        ])
        if not uid or isinstance(uid, bool):
            logger.warning(json.dumps({
                "event": "login_failed",
                "database": self._config.database,
                "username": self._config.username,
            }))
            raise ClassifiedError(ErrorKind.AUTHENTICATION, "Odoo authentication failed.")
        self._uid = int(uid)
        logger.info(json.dumps({
            "event": "login_success",
            "database": self._config.database,
            "username": self._config.username,
            "uid": self._uid,
        }))
        return self._uid

    @log_call
    async def version(self) -> Dict[str, Any]:
        """Return the server version information (no login needed)."""
        return await self.common_client.call("common", "version", [])

    def logout(self) -> None:
        """Forget the uid. The backend keeps no XML-RPC session to close."""
        self._uid = None

    def credentials_prefix(self) -> List[Any]:
        """``[database, uid, secret]`` for ``execute_kw`` calls.

        :raises ClassifiedError: ``AUTHENTICATION`` before a successful
            :meth:`authenticate`
        """
        if self._uid is None:
            raise ClassifiedError(ErrorKind.AUTHENTICATION, "Not authenticated")
        return [self._config.database, self._uid, self._config.credential]
