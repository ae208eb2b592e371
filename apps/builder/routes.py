from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException
from canvaslib.di import container
from canvaslib.types import (
    AddNodeRequest,
    ConnectRequest,
    GraphModel,
    RunRequest,
    UpdateNodeRequest,
)

from .errors import NetworkFailure, ValidationRejected
from .session.manager import SessionManager
from .session.session import BuilderSession

router = APIRouter(prefix='/builder', tags=['BuilderApi'])

def sessions() -> SessionManager:
    return container.resolve('builder.sessions')

def _session(workflow_id: str) -> BuilderSession:
    try:
        return sessions().get(workflow_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])

def _rejected(e: ValidationRejected) -> HTTPException:
    return HTTPException(status_code=400, detail={"warning": str(e)})

def _network(e: NetworkFailure) -> HTTPException:
    return HTTPException(status_code=502, detail=str(e))

# ==================== PALETTE & CONVERSION ====================

@router.get('/node-types')
async def node_types():
    """Node types offered by the builder palette."""
    registry = container.resolve('builder.type_registry')
    return [info.model_dump() for info in registry.node_types()]

@router.post('/convert/export')
async def convert_export(graph: GraphModel):
    """Convert a builder graph to the engine wire format."""
    exporter = container.resolve('builder.exporter')
    structure, report = exporter.export_with_report(graph)
    return {
        "structure": structure.to_wire(),
        "report": report.to_dict()
    }

@router.post('/convert/import')
async def convert_import(structure: Dict[str, Any] = Body(...)):
    """Convert an engine wire graph to a builder graph."""
    importer = container.resolve('builder.importer')
    graph, report = importer.import_with_report(structure)
    return {
        "graph": graph.model_dump(),
        "report": report.to_dict()
    }

# ==================== SESSIONS ====================

@router.post('/sessions/{workflow_id}')
async def open_session(workflow_id: str):
    """Open (or reopen) a session and load the stored structure."""
    session = sessions().open(workflow_id)
    try:
        await session.load()
    except NetworkFailure as e:
        raise _network(e)
    except ValidationRejected as e:
        raise _rejected(e)
    return {
        **session.snapshot().model_dump(),
        "report": session.last_report.to_dict()
    }

@router.get('/sessions/{workflow_id}')
async def get_session(workflow_id: str):
    return _session(workflow_id).snapshot().model_dump()

@router.delete('/sessions/{workflow_id}')
async def close_session(workflow_id: str):
    return {"closed": sessions().close(workflow_id)}

# ==================== LOCAL EDITS ====================

@router.post('/sessions/{workflow_id}/nodes')
async def add_node(workflow_id: str, request: AddNodeRequest):
    session = _session(workflow_id)
    try:
        node = session.add_node(
            request.type,
            name=request.name,
            position=request.position,
            parameters=request.parameters
        )
    except ValidationRejected as e:
        raise _rejected(e)
    return node.model_dump()

@router.patch('/sessions/{workflow_id}/nodes/{node_id}')
async def update_node(workflow_id: str, node_id: str, request: UpdateNodeRequest):
    """Rename, move and/or replace parameters of a node."""
    session = _session(workflow_id)
    try:
        node = session.graph.get_node(node_id)
        if node is None:
            raise ValidationRejected(f"Node not found: {node_id}")
        if request.name is not None:
            node = session.rename_node(node_id, request.name)
        if request.position is not None:
            node = session.move_node(node_id, request.position.x, request.position.y)
        if request.parameters is not None:
            node = session.update_parameters(node_id, request.parameters)
    except ValidationRejected as e:
        raise _rejected(e)
    return node.model_dump()

@router.delete('/sessions/{workflow_id}/nodes/{node_id}')
async def delete_node(workflow_id: str, node_id: str):
    session = _session(workflow_id)
    try:
        session.delete_node(node_id)
    except ValidationRejected as e:
        raise _rejected(e)
    return session.snapshot().model_dump()

@router.post('/sessions/{workflow_id}/connections')
async def connect(workflow_id: str, request: ConnectRequest):
    session = _session(workflow_id)
    try:
        conn = session.connect(
            request.source,
            request.target,
            source_port=request.source_port,
            target_port=request.target_port
        )
    except ValidationRejected as e:
        raise _rejected(e)
    return conn.model_dump()

@router.delete('/sessions/{workflow_id}/connections/{connection_id}')
async def disconnect(workflow_id: str, connection_id: str):
    session = _session(workflow_id)
    try:
        conn = session.disconnect(connection_id)
    except ValidationRejected as e:
        raise _rejected(e)
    return conn.model_dump()

# ==================== SAVE & RUN ====================

@router.post('/sessions/{workflow_id}/save')
async def save(workflow_id: str):
    session = _session(workflow_id)
    try:
        persisted = await session.save()
    except ValidationRejected as e:
        raise _rejected(e)
    except NetworkFailure as e:
        raise _network(e)
    return {
        "saved": True,
        "dirty": session.dirty,
        "structure": persisted,
        "report": session.last_report.to_dict()
    }

@router.post('/sessions/{workflow_id}/run')
async def run(workflow_id: str, request: Optional[RunRequest] = None):
    """Save the graph, then execute it on the engine."""
    session = _session(workflow_id)
    try:
        result = await session.execute(request.input_data if request else None)
    except ValidationRejected as e:
        raise _rejected(e)
    except NetworkFailure as e:
        raise _network(e)
    return result.model_dump()
