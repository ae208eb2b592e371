"""
Node type registry module.
Maps builder node-type tags to engine node types and back.
"""
from .type_registry import TypeRegistry, DEFAULT_ENGINE_TYPE, DEFAULT_TAG, DEFAULT_NODE_TYPES

__all__ = ["TypeRegistry", "DEFAULT_ENGINE_TYPE", "DEFAULT_TAG", "DEFAULT_NODE_TYPES"]
