from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from canvaslib.types import EngineNode, ExecutionResult

# EngineGraph in its JSON wire shape: {"nodes": [...], "connections": {...}, "settings": {...}}
WireGraph = Dict[str, Any]


class EngineClient(ABC):
    """
    Persistence/execution collaborator consumed by the Builder Session.

    Failures surface as ``StructureNotFound`` (nothing saved yet) or
    ``NetworkFailure`` (everything else).
    """

    @abstractmethod
    async def get_structure(self, workflow_id: str) -> WireGraph:
        raise NotImplementedError

    @abstractmethod
    async def save_structure(
        self,
        workflow_id: str,
        nodes: List[EngineNode],
        connections: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None
    ) -> WireGraph:
        """Full replace of the stored structure; returns what was persisted."""
        raise NotImplementedError

    @abstractmethod
    async def execute(self, workflow_id: str, input_data: Any = None) -> ExecutionResult:
        raise NotImplementedError
