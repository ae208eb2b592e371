"""
Engine collaborator module.
Persists and executes engine structures on behalf of the builder.
"""
from .base import EngineClient
from .http_client import HttpEngineClient
from .memory import InMemoryEngineStore

__all__ = ["EngineClient", "HttpEngineClient", "InMemoryEngineStore"]
