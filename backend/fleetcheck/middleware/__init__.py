"""
Middleware package for request/response processing.
"""
from .request_logging import RequestLoggingMiddleware, route_template

__all__ = ["RequestLoggingMiddleware", "route_template"]
