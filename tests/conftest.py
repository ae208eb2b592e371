"""
Shared fixtures for the flowcanvas test suite.
"""
import os
import pytest

# Set env vars before any imports that read them; the memory backend keeps the
# routes tests off the network
os.environ["ENGINE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from canvaslib.types import Connection, GraphModel, Node, Position  # noqa: E402
from apps.builder.registry.type_registry import TypeRegistry  # noqa: E402
from apps.builder.conversion.node_mapper import NodeMapper  # noqa: E402
from apps.builder.conversion.exporter import StructureExporter  # noqa: E402
from apps.builder.conversion.importer import StructureImporter  # noqa: E402
from apps.builder.editor.graph_editor import GraphEditor  # noqa: E402


@pytest.fixture
def registry():
    """Default palette registry."""
    return TypeRegistry()


@pytest.fixture
def node_mapper(registry):
    return NodeMapper(registry, type_version=1)


@pytest.fixture
def exporter(node_mapper):
    return StructureExporter(node_mapper)


@pytest.fixture
def importer(node_mapper):
    return StructureImporter(node_mapper)


@pytest.fixture
def editor(registry):
    return GraphEditor(registry)


@pytest.fixture
def webhook_to_action():
    """A(webhook) -> B(action)."""
    return GraphModel(
        nodes=[
            Node(id="a", type="webhook", name="Webhook", position=Position(x=100, y=200),
                 parameters={"path": "orders", "httpMethod": "POST"}),
            Node(id="b", type="action", name="Set Fields", position=Position(x=350, y=200)),
        ],
        connections=[
            Connection(id="c1", source="a", target="b"),
        ]
    )


@pytest.fixture
def branching_graph():
    """Webhook fans out to email and database; database feeds file on port 1."""
    return GraphModel(
        nodes=[
            Node(id="n1", type="webhook", name="Webhook"),
            Node(id="n2", type="email", name="Notify"),
            Node(id="n3", type="database", name="Store", parameters={"table": "orders"}),
            Node(id="n4", type="file", name="Archive"),
        ],
        connections=[
            Connection(id="c1", source="n1", target="n2"),
            Connection(id="c2", source="n1", target="n3"),
            Connection(id="c3", source="n3", target="n4", source_port=1, target_port=0),
            Connection(id="c4", source="n1", target="n4", source_port=0, target_port=1),
        ]
    )
