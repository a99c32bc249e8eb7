"""
Core protocol package for the XML-RPC client.

This package contains the pieces with no knowledge of any particular
backend service: the wire codec, the error taxonomy, the retry policy
and configuration.  Keeping them in a dedicated package makes it easy
to reuse the codec or the retry policy on their own.
"""

__all__ = []
