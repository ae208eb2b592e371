from canvaslib.config import engine_settings
from canvaslib.di import container

from .registry.type_registry import TypeRegistry
from .conversion.node_mapper import NodeMapper
from .conversion.exporter import StructureExporter
from .conversion.importer import StructureImporter
from .editor.graph_editor import GraphEditor
from .engine.http_client import HttpEngineClient
from .engine.memory import InMemoryEngineStore
from .session.manager import SessionManager

# Conversion services
_registry = TypeRegistry()
_node_mapper = NodeMapper(_registry, type_version=engine_settings.type_version)
_exporter = StructureExporter(_node_mapper)
_importer = StructureImporter(_node_mapper)
_editor = GraphEditor(_registry)

# Engine collaborator
if engine_settings.backend == "memory":
    _engine = InMemoryEngineStore()
else:
    _engine = HttpEngineClient(engine_settings)

_sessions = SessionManager(
    client=_engine,
    exporter=_exporter,
    importer=_importer,
    editor=_editor
)

container.register('builder.type_registry', lambda: _registry)
container.register('builder.exporter', lambda: _exporter)
container.register('builder.importer', lambda: _importer)
container.register('builder.editor', lambda: _editor)
container.register('builder.engine', lambda: _engine)
container.register('builder.sessions', lambda: _sessions)
