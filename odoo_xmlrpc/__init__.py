"""
odoo_xmlrpc package
-------------------

Asynchronous XML-RPC client for Odoo-style ERP backends.  The most
commonly used names are re-exported here; importing the package does
not configure logging handlers (see
:func:`odoo_xmlrpc.logging_config.configure_logging`).
"""

__version__ = "1.0.0"

from .core.config import ConnectionConfig, Settings, get_settings  # noqa: E402
from .core.errors import ClassifiedError, ErrorKind, classify_fault, is_retryable  # noqa: E402
from .core.retry import RetryConfig, RetryPolicy, retry  # noqa: E402
from .clients.xmlrpc_client import RPCClient  # noqa: E402
from .client import OdooClient  # noqa: E402

__all__ = [
    "__version__",
    "ConnectionConfig",
    "Settings",
    "get_settings",
    "ClassifiedError",
    "ErrorKind",
    "classify_fault",
    "is_retryable",
    "RetryConfig",
    "RetryPolicy",
    "retry",
    "RPCClient",
    "OdooClient",
]
