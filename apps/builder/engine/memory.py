import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from canvaslib.types import EngineNode, ExecutionResult, SaveStructureRequest
from ..errors import NetworkFailure, StructureNotFound
from .base import EngineClient, WireGraph


class InMemoryEngineStore(EngineClient):
    """Dict-backed collaborator for local development and tests."""

    def __init__(self) -> None:
        self._structures: Dict[str, WireGraph] = {}
        self.executions: List[ExecutionResult] = []

    async def get_structure(self, workflow_id: str) -> WireGraph:
        if workflow_id not in self._structures:
            raise StructureNotFound(workflow_id)
        return copy.deepcopy(self._structures[workflow_id])

    async def save_structure(
        self,
        workflow_id: str,
        nodes: List[EngineNode],
        connections: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None
    ) -> WireGraph:
        request = SaveStructureRequest(nodes=nodes, connections=connections, settings=settings)
        self._structures[workflow_id] = request.model_dump(exclude_none=True)
        return copy.deepcopy(self._structures[workflow_id])

    async def execute(self, workflow_id: str, input_data: Any = None) -> ExecutionResult:
        if workflow_id not in self._structures:
            raise NetworkFailure(f"Workflow '{workflow_id}' has no saved structure", status_code=404)
        now = datetime.now(timezone.utc).isoformat()
        result = ExecutionResult(
            executionId=f"exec-{len(self.executions) + 1}",
            workflowId=workflow_id,
            status="success",
            finished=True,
            data={"input": input_data},
            startedAt=now,
            stoppedAt=now,
        )
        self.executions.append(result)
        return result
