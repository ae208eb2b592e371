"""
Builder session.
Coordinates load, local edits, save and execution for one open workflow.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from canvaslib.types import (
    Connection,
    ExecutionResult,
    GraphModel,
    Node,
    Position,
    SessionSnapshot,
    SessionState,
)
from ..conversion.exporter import StructureExporter
from ..conversion.importer import StructureImporter
from ..editor.graph_editor import GraphEditor
from ..engine.base import EngineClient, WireGraph
from ..errors import ConversionReport, NetworkFailure, StructureNotFound, ValidationRejected

logger = logging.getLogger(__name__)


class BuilderSession:
    """
    Stateful controller for one open graph.

    States: IDLE -> LOADING -> READY, with a dirty flag for local edits not
    yet confirmed persisted. Edits are synchronous; load/save/execute are
    coroutines serialized by a per-session lock, and execute always saves
    first and stops if the save fails.
    """

    def __init__(
        self,
        workflow_id: str,
        client: EngineClient,
        exporter: StructureExporter,
        importer: StructureImporter,
        editor: GraphEditor
    ):
        """
        Initialize session.

        Args:
            workflow_id: Workflow whose structure this session edits
            client: Persistence/execution collaborator
            exporter: Graph Model -> EngineGraph converter
            importer: EngineGraph -> Graph Model converter
            editor: Graph Model mutation service
        """
        self.workflow_id = workflow_id
        self.client = client
        self.exporter = exporter
        self.importer = importer
        self.editor = editor

        self.state = SessionState.IDLE
        self.graph = GraphModel()
        self.dirty = False
        self.closed = False
        self.engine_settings: Optional[Dict[str, Any]] = None
        self.last_execution: Optional[ExecutionResult] = None
        self.last_report = ConversionReport()

        self._revision = 0
        self._lock = asyncio.Lock()

    # ==================== LOAD ====================

    async def load(self) -> GraphModel:
        """
        Load the persisted structure, replacing the current Graph Model.

        A workflow with no saved structure loads as an empty graph.

        Raises:
            NetworkFailure: Collaborator failure; previous state is kept
            asyncio.CancelledError: Load was cancelled; previous state is kept
        """
        self._check_open()

        async with self._lock:
            previous = self.state
            self.state = SessionState.LOADING
            logger.info(f"Loading structure for workflow '{self.workflow_id}'")

            try:
                raw: Optional[WireGraph] = await self.client.get_structure(self.workflow_id)
            except StructureNotFound:
                logger.info(f"No saved structure for '{self.workflow_id}', starting empty")
                raw = None
            except BaseException as e:
                # Includes cancellation; LOADING never outlives the request
                if not self.closed:
                    self.state = previous
                logger.warning(f"Loading '{self.workflow_id}' aborted: {e!r}")
                raise

            if self.closed:
                logger.debug(f"Session '{self.workflow_id}' closed during load, response discarded")
                return self.graph

            graph, report = self.importer.import_with_report(raw)
            self.graph = graph
            self.last_report = report
            self.engine_settings = raw.get("settings") if isinstance(raw, dict) else None
            self.dirty = False
            self._revision += 1
            self.state = SessionState.READY

            logger.info(
                f"Loaded '{self.workflow_id}': {len(graph.nodes)} nodes, "
                f"{len(graph.connections)} connections"
            )
            return self.graph

    # ==================== LOCAL EDITS ====================

    def add_node(
        self,
        node_type: str,
        name: Optional[str] = None,
        position: Optional[Position] = None,
        parameters: Optional[Dict[str, Any]] = None
    ) -> Node:
        self._check_editable()
        node = self.editor.add_node(self.graph, node_type, name, position, parameters)
        self._touch()
        return node

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        self._check_editable()
        node = self.editor.move_node(self.graph, node_id, x, y)
        self._touch()
        return node

    def rename_node(self, node_id: str, name: str) -> Node:
        self._check_editable()
        node = self.editor.rename_node(self.graph, node_id, name)
        self._touch()
        return node

    def update_parameters(self, node_id: str, parameters: Dict[str, Any]) -> Node:
        self._check_editable()
        node = self.editor.update_parameters(self.graph, node_id, parameters)
        self._touch()
        return node

    def delete_node(self, node_id: str) -> Node:
        """Delete a node and every connection that references it."""
        self._check_editable()
        node = self.graph.get_node(node_id)
        self.editor.remove_node(self.graph, node_id)
        self._touch()
        return node

    def connect(self, source: str, target: str, source_port: int = 0, target_port: int = 0) -> Connection:
        self._check_editable()
        conn = self.editor.connect(self.graph, source, target, source_port, target_port)
        self._touch()
        return conn

    def disconnect(self, connection_id: str) -> Connection:
        self._check_editable()
        conn = self.editor.disconnect(self.graph, connection_id)
        self._touch()
        return conn

    # ==================== SAVE / EXECUTE ====================

    async def save(self) -> WireGraph:
        """
        Export the Graph Model and persist it.

        Raises:
            ValidationRejected: Graph has no nodes (no network call is made)
            NetworkFailure: Persisting failed; dirty flag is kept
        """
        self._check_open()
        self._check_not_empty("Add at least one node before saving")

        async with self._lock:
            return await self._save_locked()

    async def execute(self, input_data: Any = None) -> ExecutionResult:
        """
        Save, then execute the just-persisted structure.

        Raises:
            ValidationRejected: Graph has no nodes (no network call is made)
            NetworkFailure: Save or execution failed; execution is not
                attempted when the save fails
        """
        self._check_open()
        self._check_not_empty("Add at least one node before running the workflow")

        async with self._lock:
            await self._save_locked()

            logger.info(f"Executing workflow '{self.workflow_id}'")
            result = await self.client.execute(self.workflow_id, input_data)

            if not self.closed:
                self.last_execution = result
            logger.info(f"Execution {result.executionId} of '{self.workflow_id}': {result.status}")
            return result

    async def _save_locked(self) -> WireGraph:
        revision = self._revision
        engine_graph, report = self.exporter.export_with_report(self.graph)
        self.last_report = report

        try:
            persisted = await self.client.save_structure(
                self.workflow_id,
                engine_graph.nodes,
                engine_graph.connections,
                self.engine_settings,
            )
        except NetworkFailure as e:
            logger.error(f"Saving '{self.workflow_id}' failed: {e}")
            raise

        if self.closed:
            logger.debug(f"Session '{self.workflow_id}' closed during save, response discarded")
            return persisted

        # Edits made while the save was in flight are not part of what was persisted
        if self._revision == revision:
            self.dirty = False
        logger.info(f"Saved '{self.workflow_id}' ({len(engine_graph.nodes)} nodes)")
        return persisted

    # ==================== LIFECYCLE ====================

    def close(self) -> None:
        """Discard the session; responses still in flight are ignored."""
        self.closed = True
        self.state = SessionState.IDLE
        logger.debug(f"Session '{self.workflow_id}' closed")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            workflow_id=self.workflow_id,
            state=self.state,
            dirty=self.dirty,
            graph=self.graph,
            last_execution=self.last_execution,
        )

    def _touch(self) -> None:
        self._revision += 1
        self.dirty = True

    def _check_open(self) -> None:
        if self.closed:
            raise ValidationRejected(f"Session for '{self.workflow_id}' is closed")

    def _check_editable(self) -> None:
        self._check_open()
        if self.state == SessionState.LOADING:
            raise ValidationRejected("Graph is still loading")

    def _check_not_empty(self, message: str) -> None:
        if self.graph.is_empty():
            logger.warning(f"{message} (workflow '{self.workflow_id}')")
            raise ValidationRejected(message)
