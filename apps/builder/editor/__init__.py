"""
Graph editing module.
Applies canvas node and connection edits to the Graph Model.
"""
from .graph_editor import GraphEditor

__all__ = ["GraphEditor"]
