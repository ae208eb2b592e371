"""
Import converter.
Rebuilds the builder Graph Model from an engine wire graph.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from canvaslib.types import MAX_PORT, Connection, GraphModel, Node
from canvaslib.utils import connection_id
from ..errors import ConversionReport, DanglingReference
from .node_mapper import NodeMapper

logger = logging.getLogger(__name__)


class StructureImporter:
    """
    EngineGraph → Graph Model.

    A graph that was never built has no ``nodes`` and imports as an empty
    model. Connection entries naming unknown nodes are skipped.
    """

    def __init__(self, node_mapper: NodeMapper):
        """
        Initialize importer.

        Args:
            node_mapper: Per-node converter (carries the type registry)
        """
        self.node_mapper = node_mapper

    def import_graph(
        self,
        engine_graph: Union[BaseModel, Dict[str, Any], None],
        report: Optional[ConversionReport] = None
    ) -> GraphModel:
        """
        Convert an engine graph to a Graph Model.

        Args:
            engine_graph: EngineGraph model or raw wire dict
            report: Optional report collecting recovered anomalies

        Returns:
            Graph Model; empty when the engine graph has no usable nodes
        """
        if report is None:
            report = ConversionReport()

        raw = self._as_dict(engine_graph)
        raw_nodes = raw.get("nodes")
        if not isinstance(raw_nodes, list):
            logger.debug("Engine graph has no nodes array, importing empty graph")
            return GraphModel()

        nodes = self._import_nodes(raw_nodes, report)
        connections = self._import_connections(raw.get("connections"), nodes, report)

        return GraphModel(nodes=nodes, connections=connections)

    def import_with_report(
        self,
        engine_graph: Union[BaseModel, Dict[str, Any], None]
    ) -> Tuple[GraphModel, ConversionReport]:
        """Import and return the anomalies alongside the result."""
        report = ConversionReport()
        return self.import_graph(engine_graph, report), report

    def _as_dict(self, engine_graph: Union[BaseModel, Dict[str, Any], None]) -> Dict[str, Any]:
        if isinstance(engine_graph, BaseModel):
            return engine_graph.model_dump()
        if isinstance(engine_graph, dict):
            return engine_graph
        return {}

    def _import_nodes(self, raw_nodes: List[Any], report: ConversionReport) -> List[Node]:
        nodes = []
        seen_ids = set()
        for raw in raw_nodes:
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed engine node: {raw!r}")
                continue
            try:
                node = self.node_mapper.to_canvas_node(raw, report)
            except ValueError as e:
                logger.warning(f"Skipping engine node: {e}")
                continue
            if node.id in seen_ids:
                logger.warning(f"Skipping engine node with duplicate id '{node.id}'")
                continue
            seen_ids.add(node.id)
            nodes.append(node)
        return nodes

    def _import_connections(
        self,
        raw_connections: Any,
        nodes: List[Node],
        report: ConversionReport
    ) -> List[Connection]:
        """
        Resolve name-addressed engine connections to id-addressed connections.

        An unknown source name skips all of its slots; an unknown target name
        skips only that target.
        """
        if not isinstance(raw_connections, dict):
            return []

        # Later duplicates do not shadow the first node with a name
        nodes_by_name: Dict[str, Node] = {}
        for node in nodes:
            nodes_by_name.setdefault(node.name, node)

        connections = []
        for source_name, outputs in raw_connections.items():
            source = nodes_by_name.get(source_name)
            if source is None:
                issue = DanglingReference(
                    f"Connections from unknown node '{source_name}' skipped",
                    source_name=source_name,
                )
                logger.warning(str(issue))
                report.add_dangling(issue)
                continue

            slots = outputs.get("main") if isinstance(outputs, dict) else None
            if not isinstance(slots, list):
                continue

            if len(slots) > MAX_PORT + 1:
                issue = DanglingReference(
                    f"Connections from '{source_name}' beyond output {MAX_PORT} skipped",
                    source_name=source_name,
                )
                logger.warning(str(issue))
                report.add_dangling(issue)

            for slot_index, slot in enumerate(slots[:MAX_PORT + 1]):
                if not isinstance(slot, list):
                    continue
                for position, entry in enumerate(slot):
                    conn = self._resolve_target(
                        source, slot_index, position, entry, nodes_by_name, report
                    )
                    if conn is not None:
                        connections.append(conn)

        return connections

    def _resolve_target(
        self,
        source: Node,
        slot_index: int,
        position: int,
        entry: Any,
        nodes_by_name: Dict[str, Node],
        report: ConversionReport
    ) -> Optional[Connection]:
        target_name = entry.get("node") if isinstance(entry, dict) else None
        target = nodes_by_name.get(target_name) if isinstance(target_name, str) else None

        if target is None:
            issue = DanglingReference(
                f"Connection '{source.name}' -> '{target_name}' targets unknown node, skipped",
                source_name=source.name,
                target_name=target_name,
            )
            logger.warning(str(issue))
            report.add_dangling(issue)
            return None

        target_port = entry.get("index", 0)
        # Non-integer or out-of-range input indices fall back to the first input
        if isinstance(target_port, bool) or not isinstance(target_port, int) or not 0 <= target_port <= MAX_PORT:
            target_port = 0

        return Connection(
            id=connection_id(source.id, target.id, slot_index, position),
            source=source.id,
            target=target.id,
            source_port=slot_index,
            target_port=target_port,
        )
