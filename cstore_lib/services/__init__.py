"""Services package: the DI container and request-time resolver."""
from .container import ServiceContainer
from .resolver import resolve_service

__all__ = [
    "ServiceContainer",
    "resolve_service",
]
