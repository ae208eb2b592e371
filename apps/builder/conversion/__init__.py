"""
Structure conversion module.
Converts between the builder Graph Model and the engine wire graph.
"""
from .node_mapper import NodeMapper
from .exporter import StructureExporter
from .importer import StructureImporter

__all__ = ["NodeMapper", "StructureExporter", "StructureImporter"]
