"""Python client for the Ngurra Pathways API."""

from .api_client import ApiClientError, NgurraApiClient
from .token_store import TokenStore

__all__ = ["ApiClientError", "NgurraApiClient", "TokenStore"]
