"""
Network facing clients: the single-exchange HTTP transport and the
RPC client built on it.
"""

from .xmlrpc_client import RPCClient, unwrap  # noqa: F401
from .transport import Transport  # noqa: F401
