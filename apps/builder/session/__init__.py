"""
Builder session module.
Load/edit/save/execute state machine for open workflows.
"""
from .session import BuilderSession
from .manager import SessionManager

__all__ = ["BuilderSession", "SessionManager"]
