"""
Middleware modules for the Ngurra Pathways server.
"""

from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
