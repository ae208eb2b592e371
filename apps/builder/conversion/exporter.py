"""
Export converter.
Converts the builder Graph Model to the engine's name-addressed wire graph.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from canvaslib.types import (
    MAX_PORT,
    EngineConnectionTarget,
    EngineGraph,
    EngineWorkflow,
    GraphModel,
    Node,
)
from ..errors import ConversionAmbiguity, ConversionReport, DanglingReference
from .node_mapper import NodeMapper

logger = logging.getLogger(__name__)

PORT_TYPE = "main"


class StructureExporter:
    """
    Graph Model → EngineGraph.

    Total for any well-formed Graph Model: unmapped types fall back through the
    registry and connections with a missing endpoint are dropped, never raised.
    """

    def __init__(self, node_mapper: NodeMapper):
        """
        Initialize exporter.

        Args:
            node_mapper: Per-node converter (carries the type registry)
        """
        self.node_mapper = node_mapper

    def export(self, graph: GraphModel, report: Optional[ConversionReport] = None) -> EngineGraph:
        """
        Convert a Graph Model to an EngineGraph.

        Args:
            graph: Builder graph
            report: Optional report collecting recovered anomalies

        Returns:
            EngineGraph with one engine node per graph node, in graph order
        """
        if report is None:
            report = ConversionReport()

        engine_nodes = [self.node_mapper.to_engine_node(node, report) for node in graph.nodes]
        self._check_unique_names(graph.nodes, report)
        connections = self._group_connections(graph, report)

        return EngineGraph(
            nodes=engine_nodes,
            connections=connections or None,
        )

    def export_with_report(self, graph: GraphModel) -> Tuple[EngineGraph, ConversionReport]:
        """Export and return the anomalies alongside the result."""
        report = ConversionReport()
        return self.export(graph, report), report

    def to_engine_workflow(
        self,
        graph: GraphModel,
        name: str,
        description: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None
    ) -> EngineWorkflow:
        """
        Export as a complete engine workflow document (inactive).

        Args:
            graph: Builder graph
            name: Workflow name
            description: Optional description
            settings: Optional engine workflow settings

        Returns:
            EngineWorkflow ready to create on the engine
        """
        structure = self.export(graph)
        return EngineWorkflow(
            name=name,
            description=description,
            active=False,
            nodes=structure.nodes,
            connections=structure.connections,
            settings=settings,
        )

    def _group_connections(
        self,
        graph: GraphModel,
        report: ConversionReport
    ) -> Dict[str, Dict[str, List[List[EngineConnectionTarget]]]]:
        """
        Group connections by source node name into output slots.

        Slot index is the connection's source port; targets are appended in
        connection iteration order.
        """
        nodes_by_id = {node.id: node for node in graph.nodes}
        grouped: Dict[str, Dict[str, List[List[EngineConnectionTarget]]]] = {}

        for conn in graph.connections:
            source = nodes_by_id.get(conn.source)
            target = nodes_by_id.get(conn.target)

            if source is None or target is None:
                missing = conn.source if source is None else conn.target
                issue = DanglingReference(
                    f"Connection '{conn.id}' references missing node '{missing}', dropped",
                    connection_id=conn.id,
                    node_id=missing,
                )
                logger.warning(str(issue))
                report.add_dangling(issue)
                continue

            if not (0 <= conn.source_port <= MAX_PORT and 0 <= conn.target_port <= MAX_PORT):
                issue = DanglingReference(
                    f"Connection '{conn.id}' uses a port outside 0..{MAX_PORT}, dropped",
                    connection_id=conn.id,
                )
                logger.warning(str(issue))
                report.add_dangling(issue)
                continue

            slots = grouped.setdefault(source.name, {PORT_TYPE: []})[PORT_TYPE]
            while len(slots) <= conn.source_port:
                slots.append([])

            slots[conn.source_port].append(EngineConnectionTarget(
                node=target.name,
                type=PORT_TYPE,
                index=conn.target_port,
            ))

        return grouped

    def _check_unique_names(self, nodes: List[Node], report: ConversionReport) -> None:
        """Engine addresses nodes by name; flag names used by more than one node."""
        seen = set()
        for node in nodes:
            if node.name in seen:
                issue = ConversionAmbiguity(
                    f"Node name '{node.name}' is not unique; engine connections by name are ambiguous"
                )
                logger.warning(str(issue))
                report.add_ambiguity(issue)
            seen.add(node.name)
