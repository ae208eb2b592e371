"""
Graph editor.
Applies canvas edits to the builder Graph Model.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from canvaslib.types import MAX_PORT, Connection, GraphModel, Node, Position
from canvaslib.utils import new_id, unique_name
from ..errors import ValidationRejected
from ..registry.type_registry import TypeRegistry

logger = logging.getLogger(__name__)


class GraphEditor:
    """
    Applies node and connection edits to a Graph Model in place.

    Every edit is synchronous and either fully applies or raises
    ValidationRejected without touching the graph. Connections may only
    reference nodes that exist when the edit is made.
    """

    def __init__(self, registry: TypeRegistry):
        """
        Initialize graph editor.

        Args:
            registry: Type registry, used for default node names
        """
        self.registry = registry

    # ==================== NODES ====================

    def add_node(
        self,
        graph: GraphModel,
        node_type: str,
        name: Optional[str] = None,
        position: Optional[Position] = None,
        parameters: Optional[Dict[str, Any]] = None
    ) -> Node:
        """
        Add a node to the graph.

        Args:
            graph: Graph to edit
            node_type: Internal node-type tag
            name: Display name; defaults to the palette name of the type
            position: Canvas position; negative coordinates clamp to 0
            parameters: Engine parameters for the node

        Returns:
            The new node
        """
        if not node_type:
            raise ValidationRejected("Node type is required")

        base_name = name or self.registry.display_name(node_type)
        node = Node(
            id=new_id("node-"),
            type=node_type,
            name=unique_name(base_name, (n.name for n in graph.nodes)),
            position=self._clamp(position or Position()),
            parameters=copy.deepcopy(parameters or {}),
        )
        graph.nodes.append(node)
        logger.debug(f"Added node {node.id} ({node.type}) as '{node.name}'")
        return node

    def move_node(self, graph: GraphModel, node_id: str, x: float, y: float) -> Node:
        """Move a node; negative coordinates clamp to 0."""
        node = self._require_node(graph, node_id)
        node.position = self._clamp(Position(x=x, y=y))
        return node

    def rename_node(self, graph: GraphModel, node_id: str, name: str) -> Node:
        """Rename a node. Names stay unique because the engine addresses nodes by name."""
        node = self._require_node(graph, node_id)
        if not name:
            raise ValidationRejected("Node name cannot be empty")
        if any(n.name == name and n.id != node_id for n in graph.nodes):
            raise ValidationRejected(f"Node name '{name}' is already used")
        node.name = name
        return node

    def update_parameters(self, graph: GraphModel, node_id: str, parameters: Dict[str, Any]) -> Node:
        """Replace a node's engine parameters."""
        node = self._require_node(graph, node_id)
        node.parameters = copy.deepcopy(parameters)
        return node

    def remove_node(self, graph: GraphModel, node_id: str) -> List[Connection]:
        """
        Remove a node and every connection where it is source or target.

        Returns:
            The removed connections
        """
        self._require_node(graph, node_id)

        removed = [c for c in graph.connections if c.source == node_id or c.target == node_id]
        graph.nodes = [n for n in graph.nodes if n.id != node_id]
        graph.connections = [
            c for c in graph.connections
            if c.source != node_id and c.target != node_id
        ]

        logger.debug(f"Removed node {node_id} and {len(removed)} connection(s)")
        return removed

    # ==================== CONNECTIONS ====================

    def connect(
        self,
        graph: GraphModel,
        source: str,
        target: str,
        source_port: int = 0,
        target_port: int = 0
    ) -> Connection:
        """
        Connect two existing nodes.

        Raises:
            ValidationRejected: Unknown node, port out of range, or duplicate connection
        """
        self._require_node(graph, source)
        self._require_node(graph, target)
        if not (0 <= source_port <= MAX_PORT and 0 <= target_port <= MAX_PORT):
            raise ValidationRejected(f"Ports must be between 0 and {MAX_PORT}")

        key = (source, target, source_port, target_port)
        if any(c.key() == key for c in graph.connections):
            raise ValidationRejected(f"Nodes '{source}' and '{target}' are already connected on these ports")

        conn = Connection(
            id=new_id("conn-"),
            source=source,
            target=target,
            source_port=source_port,
            target_port=target_port,
        )
        graph.connections.append(conn)
        return conn

    def disconnect(self, graph: GraphModel, connection_id: str) -> Connection:
        """Remove a single connection by id."""
        conn = graph.get_connection(connection_id)
        if conn is None:
            raise ValidationRejected(f"Connection not found: {connection_id}")
        graph.connections = [c for c in graph.connections if c.id != connection_id]
        return conn

    def _require_node(self, graph: GraphModel, node_id: str) -> Node:
        node = graph.get_node(node_id)
        if node is None:
            raise ValidationRejected(f"Node not found: {node_id}")
        return node

    def _clamp(self, position: Position) -> Position:
        return Position(x=max(0, position.x), y=max(0, position.y))
