from enum import Enum

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]

# Highest output/input port index a connection may use
MAX_PORT = 63


# ==================== GRAPH MODEL (builder side) ====================

class Position(BaseModel):
    x: Number = 0
    y: Number = 0

class Node(BaseModel):
    """
    Canvas node. Addressed by ``id`` everywhere inside the builder.

    Attributes:
        id: Unique opaque identifier within the graph
        type: Internal node-type tag (e.g. "webhook", "action")
        name: Display name; becomes the engine node name on export
        position: Canvas coordinates
        parameters: Engine-specific payload, passed through untouched
    """
    id: str
    type: str
    name: str
    position: Position = Field(default_factory=Position)
    parameters: Dict[str, Any] = Field(default_factory=dict)

class Connection(BaseModel):
    id: str
    source: str
    target: str
    source_port: int = Field(default=0, ge=0, le=MAX_PORT)
    target_port: int = Field(default=0, ge=0, le=MAX_PORT)

    def key(self) -> tuple:
        """Identity-free view of the connection: (source, target, ports)."""
        return (self.source, self.target, self.source_port, self.target_port)

class GraphModel(BaseModel):
    """In-memory node/connection graph edited by the user."""
    nodes: List[Node] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.nodes

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        for conn in self.connections:
            if conn.id == connection_id:
                return conn
        return None


# ==================== ENGINE GRAPH (wire format) ====================

class EngineNode(BaseModel):
    id: str
    name: str
    type: str
    typeVersion: int = 1
    position: List[Number] = Field(default_factory=lambda: [0, 0])
    parameters: Dict[str, Any] = Field(default_factory=dict)

class EngineConnectionTarget(BaseModel):
    node: str
    type: str = "main"
    index: int = 0

# { sourceNodeName: { "main": [ [target, ...], [target, ...] ] } }
EngineConnections = Dict[str, Dict[str, List[List[EngineConnectionTarget]]]]

class EngineGraph(BaseModel):
    nodes: List[EngineNode] = Field(default_factory=list)
    connections: Optional[EngineConnections] = None
    settings: Optional[Dict[str, Any]] = None

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict; absent connections/settings are omitted."""
        return self.model_dump(exclude_none=True)

class EngineWorkflow(EngineGraph):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    active: bool = False
    tags: Optional[List[str]] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


# ==================== COLLABORATOR DTOs ====================

class SaveStructureRequest(BaseModel):
    nodes: Optional[List[EngineNode]] = None
    connections: Optional[EngineConnections] = None
    settings: Optional[Dict[str, Any]] = None

class ExecuteWorkflowRequest(BaseModel):
    inputData: Optional[Any] = None

class ExecutionResult(BaseModel):
    executionId: str
    status: str
    workflowId: Optional[str] = None
    finished: bool = False
    data: Optional[Any] = None
    startedAt: Optional[str] = None
    stoppedAt: Optional[str] = None


# ==================== BUILDER API MODELS ====================

class SessionState(str, Enum):
    """Builder Session lifecycle state."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"

class NodeTypeInfo(BaseModel):
    """Palette entry: internal tag, default display name, engine type id."""
    tag: str
    display_name: str
    engine_type: str

class AddNodeRequest(BaseModel):
    type: str
    name: Optional[str] = None
    position: Optional[Position] = None
    parameters: Optional[Dict[str, Any]] = None

class UpdateNodeRequest(BaseModel):
    name: Optional[str] = None
    position: Optional[Position] = None
    parameters: Optional[Dict[str, Any]] = None

class ConnectRequest(BaseModel):
    source: str
    target: str
    source_port: int = Field(default=0, ge=0, le=MAX_PORT)
    target_port: int = Field(default=0, ge=0, le=MAX_PORT)

class RunRequest(BaseModel):
    input_data: Optional[Any] = None

class SessionSnapshot(BaseModel):
    workflow_id: str
    state: SessionState
    dirty: bool
    graph: GraphModel
    last_execution: Optional[ExecutionResult] = None
