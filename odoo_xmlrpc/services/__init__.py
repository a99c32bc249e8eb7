"""
Collaborator layers built on the RPC client: session authentication,
record CRUD and field metadata validation.  None of them touch the wire
codec or the transport directly.
"""

__all__ = []
