"""
HTTP engine client.
Talks to the platform API that stores and runs engine workflows.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from canvaslib.config import EngineSettings, engine_settings
from canvaslib.types import (
    EngineNode,
    ExecuteWorkflowRequest,
    ExecutionResult,
    SaveStructureRequest,
)
from ..errors import NetworkFailure, StructureNotFound
from .base import EngineClient, WireGraph

logger = logging.getLogger(__name__)


class HttpEngineClient(EngineClient):
    """
    EngineClient over the platform REST API.

    Endpoints (relative to ``{API_BASE_URL}/api/{API_VERSION}``):
        GET  /workflows/{id}/n8n/structure
        PUT  /workflows/{id}/n8n/structure
        POST /workflows/{id}/n8n/execute
    """

    def __init__(
        self,
        config: Optional[EngineSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize client.

        Args:
            config: Engine settings (defaults to the global settings)
            transport: Optional httpx transport, e.g. a MockTransport in tests
        """
        self.config = config or engine_settings
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"

        return httpx.AsyncClient(
            base_url=self.config.api_root(),
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=self.transport,
        )

    def _structure_path(self, workflow_id: str) -> str:
        return f"/workflows/{workflow_id}/n8n/structure"

    async def get_structure(self, workflow_id: str) -> WireGraph:
        """
        Fetch the stored engine structure.

        Raises:
            StructureNotFound: Nothing has been saved for the workflow
            NetworkFailure: Any other transport or HTTP failure
        """
        response = await self._request("GET", self._structure_path(workflow_id))
        if response.status_code == 404:
            raise StructureNotFound(workflow_id)
        self._raise_for_status(response, f"Loading structure of '{workflow_id}'")
        return self._json(response)

    async def save_structure(
        self,
        workflow_id: str,
        nodes: List[EngineNode],
        connections: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None
    ) -> WireGraph:
        """
        Replace the stored engine structure.

        Raises:
            NetworkFailure: Transport or HTTP failure
        """
        payload = SaveStructureRequest(
            nodes=nodes,
            connections=connections,
            settings=settings,
        )
        logger.info(f"Saving structure of '{workflow_id}' ({len(nodes)} nodes)")

        response = await self._request(
            "PUT",
            self._structure_path(workflow_id),
            json=payload.model_dump(exclude_none=True),
        )
        self._raise_for_status(response, f"Saving structure of '{workflow_id}'")
        return self._json(response)

    async def execute(self, workflow_id: str, input_data: Any = None) -> ExecutionResult:
        """
        Trigger an engine execution of the stored structure.

        Raises:
            NetworkFailure: Transport or HTTP failure, or an unreadable response
        """
        payload = ExecuteWorkflowRequest(inputData=input_data)
        response = await self._request(
            "POST",
            f"/workflows/{workflow_id}/n8n/execute",
            json=payload.model_dump(exclude_none=True),
        )
        self._raise_for_status(response, f"Executing '{workflow_id}'")

        try:
            return ExecutionResult.model_validate(self._json(response))
        except ValueError as e:
            raise NetworkFailure(f"Unexpected execution response for '{workflow_id}': {e}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            raise NetworkFailure(f"{method} {path} timed out")
        except httpx.HTTPError as e:
            raise NetworkFailure(f"{method} {path} failed: {e}")

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if 200 <= response.status_code < 300:
            return
        logger.error(f"{action} failed with status {response.status_code}: {response.text}")
        raise NetworkFailure(
            f"{action} failed with status {response.status_code}",
            status_code=response.status_code,
        )

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise NetworkFailure(f"Invalid JSON from engine API: {e}", status_code=response.status_code)
        return data if isinstance(data, dict) else {}
