"""
Node Mapper: conversion of single nodes between the builder canvas and the
engine wire format.
"""
import copy
from typing import Any, Dict, Optional

from canvaslib.config import engine_settings
from canvaslib.types import EngineNode, Node, Position
from ..errors import ConversionReport
from ..registry.type_registry import TypeRegistry, engine_local_name


class NodeMapper:
    """
    Bidirectional mapper for canvas Node ↔ EngineNode.
    """

    def __init__(self, registry: TypeRegistry, type_version: Optional[int] = None):
        """
        Initialize mapper.

        Args:
            registry: Type registry used for tag ↔ engine type lookups
            type_version: Engine typeVersion stamped on exported nodes
        """
        self.registry = registry
        self.type_version = type_version if type_version is not None else engine_settings.type_version

    # ==================== CANVAS → ENGINE ====================

    def to_engine_node(self, node: Node, report: Optional[ConversionReport] = None) -> EngineNode:
        """
        Convert canvas node to engine node.

        Parameters are deep-copied so later canvas edits never alias the
        exported payload.
        """
        return EngineNode(
            id=node.id,
            name=node.name,
            type=self.registry.to_engine_type(node.type, report),
            typeVersion=self.type_version,
            position=[node.position.x, node.position.y],
            parameters=copy.deepcopy(node.parameters),
        )

    # ==================== ENGINE → CANVAS ====================

    def to_canvas_node(self, raw: Dict[str, Any], report: Optional[ConversionReport] = None) -> Node:
        """
        Convert one engine node (as a wire dict) to a canvas node.

        Args:
            raw: Engine node dict
            report: Optional conversion report

        Returns:
            Canvas node

        Raises:
            ValueError: If the entry has no usable id
        """
        node_id = raw.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise ValueError(f"Engine node without id: {raw!r}")

        engine_type = raw.get("type")
        if not isinstance(engine_type, str):
            engine_type = ""
        tag = self.registry.to_internal_type(engine_type, report)

        # Name falls back to the engine type's local name
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            name = engine_local_name(engine_type) or "Node"

        parameters = raw.get("parameters")
        if not isinstance(parameters, dict):
            parameters = {}

        return Node(
            id=node_id,
            type=tag,
            name=name,
            position=self._extract_position(raw.get("position")),
            parameters=copy.deepcopy(parameters),
        )

    def _extract_position(self, position: Any) -> Position:
        """Two-element position tuple; missing or non-numeric entries become 0."""
        if not isinstance(position, (list, tuple)):
            position = []

        coords = []
        for idx in range(2):
            value = position[idx] if idx < len(position) else None
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                value = 0
            coords.append(value)

        return Position(x=coords[0], y=coords[1])
