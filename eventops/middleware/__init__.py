"""
Middleware components for request processing.
"""

from eventops.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
