"""
Session manager.
Keeps one Builder Session per open workflow.
"""
import logging
from typing import Dict, List

from ..conversion.exporter import StructureExporter
from ..conversion.importer import StructureImporter
from ..editor.graph_editor import GraphEditor
from ..engine.base import EngineClient
from .session import BuilderSession

logger = logging.getLogger(__name__)


class SessionManager:
    """Creates, looks up and discards Builder Sessions by workflow id."""

    def __init__(
        self,
        client: EngineClient,
        exporter: StructureExporter,
        importer: StructureImporter,
        editor: GraphEditor
    ):
        self.client = client
        self.exporter = exporter
        self.importer = importer
        self.editor = editor
        self._sessions: Dict[str, BuilderSession] = {}

    def open(self, workflow_id: str) -> BuilderSession:
        """Return the open session for ``workflow_id``, creating it if needed."""
        session = self._sessions.get(workflow_id)
        if session is None:
            session = BuilderSession(
                workflow_id,
                client=self.client,
                exporter=self.exporter,
                importer=self.importer,
                editor=self.editor,
            )
            self._sessions[workflow_id] = session
            logger.info(f"Opened builder session for '{workflow_id}'")
        return session

    def get(self, workflow_id: str) -> BuilderSession:
        """
        Raises:
            KeyError: No session is open for the workflow
        """
        if workflow_id not in self._sessions:
            raise KeyError(f"No open session for workflow '{workflow_id}'")
        return self._sessions[workflow_id]

    def close(self, workflow_id: str) -> bool:
        """Close and forget a session. Returns False if none was open."""
        session = self._sessions.pop(workflow_id, None)
        if session is None:
            return False
        session.close()
        return True

    def list_open(self) -> List[str]:
        return list(self._sessions)
