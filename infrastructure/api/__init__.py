"""
Backend API access
==================
ApiClient (transport), endpoint operations (ops/) and stateful resource
repositories (repositories/) built on top of them.
"""

from infrastructure.api.client import ApiClient, ApiResponse, unwrap_envelope

__all__ = ["ApiClient", "ApiResponse", "unwrap_envelope"]
