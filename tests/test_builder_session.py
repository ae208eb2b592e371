"""
Tests for the builder session state machine.

Covers:
1. Load: stored structure, never-saved workflow, network failure
2. Edits and the dirty flag
3. Save/execute preconditions and failure handling
4. Edits during an in-flight save, closing with requests in flight
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from apps.builder.engine.base import EngineClient
from apps.builder.engine.memory import InMemoryEngineStore
from apps.builder.errors import NetworkFailure, StructureNotFound, ValidationRejected
from apps.builder.session.manager import SessionManager
from apps.builder.session.session import BuilderSession
from canvaslib.types import ExecutionResult, SessionState


STORED = {
    "nodes": [
        {"id": "1", "name": "Hook", "type": "n8n-nodes-base.webhook",
         "typeVersion": 1, "position": [0, 0], "parameters": {}},
        {"id": "2", "name": "Set", "type": "n8n-nodes-base.set",
         "typeVersion": 1, "position": [200, 0], "parameters": {}},
    ],
    "connections": {"Hook": {"main": [[{"node": "Set", "type": "main", "index": 0}]]}},
    "settings": {"executionOrder": "v1"},
}


@pytest.fixture
def store():
    return InMemoryEngineStore()


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=EngineClient)
    client.get_structure.return_value = STORED
    client.save_structure.side_effect = lambda wf, nodes, connections=None, settings=None: {
        "nodes": [n.model_dump() for n in nodes]
    }
    client.execute.return_value = ExecutionResult(executionId="e1", status="success", finished=True)
    return client


@pytest.fixture
def make_session(exporter, importer, editor):
    def _make(client, workflow_id="wf-1"):
        return BuilderSession(workflow_id, client, exporter, importer, editor)
    return _make


class TestLoad:

    @pytest.mark.asyncio
    async def test_load_stored_structure(self, make_session, mock_client):
        session = make_session(mock_client)

        graph = await session.load()

        assert session.state == SessionState.READY
        assert session.dirty is False
        assert [n.type for n in graph.nodes] == ["webhook", "action"]
        assert len(graph.connections) == 1
        assert session.engine_settings == {"executionOrder": "v1"}
        mock_client.get_structure.assert_awaited_once_with("wf-1")

    @pytest.mark.asyncio
    async def test_never_saved_loads_empty(self, make_session, store):
        session = make_session(store)

        graph = await session.load()

        assert graph.is_empty()
        assert session.state == SessionState.READY

    @pytest.mark.asyncio
    async def test_not_found_from_client_loads_empty(self, make_session, mock_client):
        mock_client.get_structure.side_effect = StructureNotFound("wf-1")
        session = make_session(mock_client)

        await session.load()

        assert session.graph.is_empty()
        assert session.state == SessionState.READY

    @pytest.mark.asyncio
    async def test_network_failure_restores_state(self, make_session, mock_client):
        mock_client.get_structure.side_effect = NetworkFailure("boom", status_code=500)
        session = make_session(mock_client)

        with pytest.raises(NetworkFailure):
            await session.load()

        assert session.state == SessionState.IDLE
        assert session.graph.is_empty()

    @pytest.mark.asyncio
    async def test_unexpected_error_restores_state(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()
        mock_client.get_structure.side_effect = RuntimeError("collaborator bug")

        with pytest.raises(RuntimeError):
            await session.load()

        assert session.state == SessionState.READY
        assert session.add_node("email").name == "Email"

    @pytest.mark.asyncio
    async def test_cancelled_load_restores_state(self, make_session, mock_client):
        started = asyncio.Event()

        async def never_answers(workflow_id):
            started.set()
            await asyncio.Event().wait()

        mock_client.get_structure.side_effect = never_answers
        session = make_session(mock_client)

        task = asyncio.create_task(session.load())
        await started.wait()
        assert session.state == SessionState.LOADING
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.state == SessionState.IDLE
        session.add_node("webhook")
        assert session.dirty is True

    @pytest.mark.asyncio
    async def test_reload_discards_local_edits(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()
        session.add_node("email")
        assert session.dirty

        await session.load()

        assert len(session.graph.nodes) == 2
        assert session.dirty is False

    @pytest.mark.asyncio
    async def test_close_during_load_discards_response(self, make_session, mock_client):
        session = make_session(mock_client)

        async def close_then_answer(workflow_id):
            session.close()
            return STORED

        mock_client.get_structure.side_effect = close_then_answer

        await session.load()

        assert session.graph.is_empty()
        assert session.state == SessionState.IDLE


class TestEdits:

    @pytest.mark.asyncio
    async def test_edits_mark_dirty(self, make_session, store):
        session = make_session(store)
        await session.load()

        node = session.add_node("webhook")

        assert session.dirty is True
        assert session.graph.get_node(node.id) is node

    def test_edits_rejected_while_loading(self, make_session, store):
        session = make_session(store)
        session.state = SessionState.LOADING

        with pytest.raises(ValidationRejected):
            session.add_node("webhook")
        assert session.graph.is_empty()

    @pytest.mark.asyncio
    async def test_delete_node_cascades(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()

        removed = session.delete_node("1")

        assert removed.id == "1"
        assert session.graph.connections == []
        assert session.dirty is True

    @pytest.mark.asyncio
    async def test_rejected_edit_keeps_clean(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()

        with pytest.raises(ValidationRejected):
            session.connect("1", "ghost")

        assert session.dirty is False

    def test_closed_session_rejects_edits(self, make_session, store):
        session = make_session(store)
        session.close()

        with pytest.raises(ValidationRejected):
            session.add_node("webhook")


class TestSave:

    @pytest.mark.asyncio
    async def test_save_empty_graph_makes_no_call(self, make_session, mock_client):
        mock_client.get_structure.side_effect = StructureNotFound("wf-1")
        session = make_session(mock_client)
        await session.load()

        with pytest.raises(ValidationRejected):
            await session.save()

        mock_client.save_structure.assert_not_called()
        assert session.state == SessionState.READY
        assert session.dirty is False

    @pytest.mark.asyncio
    async def test_save_persists_and_clears_dirty(self, make_session, store):
        session = make_session(store)
        await session.load()
        hook = session.add_node("webhook")
        action = session.add_node("action")
        session.connect(hook.id, action.id)

        await session.save()

        stored = await store.get_structure("wf-1")
        assert session.dirty is False
        assert [n["type"] for n in stored["nodes"]] == ["n8n-nodes-base.webhook", "n8n-nodes-base.set"]
        assert stored["connections"] == {
            "Webhook": {"main": [[{"node": "Action", "type": "main", "index": 0}]]}
        }

    @pytest.mark.asyncio
    async def test_save_passes_loaded_settings(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()
        session.move_node("1", 50, 50)

        await session.save()

        args = mock_client.save_structure.await_args.args
        assert args[0] == "wf-1"
        assert len(args[1]) == 2
        assert args[3] == {"executionOrder": "v1"}

    @pytest.mark.asyncio
    async def test_failed_save_stays_dirty(self, make_session, mock_client):
        mock_client.save_structure.side_effect = NetworkFailure("down", status_code=503)
        session = make_session(mock_client)
        await session.load()
        session.add_node("email")

        with pytest.raises(NetworkFailure):
            await session.save()

        assert session.dirty is True
        assert session.state == SessionState.READY

    @pytest.mark.asyncio
    async def test_edit_during_save_stays_dirty(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()
        session.add_node("email")

        async def edit_while_saving(workflow_id, nodes, connections=None, settings=None):
            session.move_node("1", 10, 10)
            return {}

        mock_client.save_structure.side_effect = edit_while_saving

        await session.save()

        assert session.dirty is True

    @pytest.mark.asyncio
    async def test_close_during_save_discards_response(self, make_session, mock_client):
        session = make_session(mock_client)
        await session.load()
        session.add_node("email")

        async def close_while_saving(workflow_id, nodes, connections=None, settings=None):
            session.close()
            return {}

        mock_client.save_structure.side_effect = close_while_saving

        await session.save()

        assert session.dirty is True
        assert session.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_unknown_type_reported(self, make_session, store):
        session = make_session(store)
        await session.load()
        session.add_node("unknown-custom-type")

        await session.save()

        stored = await store.get_structure("wf-1")
        assert stored["nodes"][0]["type"] == "n8n-nodes-base.set"
        assert len(session.last_report.warnings) == 1


class TestExecute:

    @pytest.mark.asyncio
    async def test_execute_saves_first(self, make_session, store):
        session = make_session(store)
        await session.load()
        session.add_node("schedule")

        result = await session.execute({"order": 42})

        assert result.status == "success"
        assert result.data == {"input": {"order": 42}}
        assert session.dirty is False
        assert session.last_execution is result
        assert (await store.get_structure("wf-1"))["nodes"][0]["name"] == "Schedule"

    @pytest.mark.asyncio
    async def test_execute_empty_graph_makes_no_call(self, make_session, mock_client):
        mock_client.get_structure.side_effect = StructureNotFound("wf-1")
        session = make_session(mock_client)
        await session.load()

        with pytest.raises(ValidationRejected):
            await session.execute()

        mock_client.save_structure.assert_not_called()
        mock_client.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_save_skips_execution(self, make_session, mock_client):
        mock_client.save_structure.side_effect = NetworkFailure("down", status_code=500)
        session = make_session(mock_client)
        await session.load()

        with pytest.raises(NetworkFailure):
            await session.execute()

        mock_client.execute.assert_not_called()
        assert session.last_execution is None

    @pytest.mark.asyncio
    async def test_failed_execution_after_save(self, make_session, mock_client):
        mock_client.execute.side_effect = NetworkFailure("engine error", status_code=500)
        session = make_session(mock_client)
        await session.load()
        session.add_node("email")

        with pytest.raises(NetworkFailure):
            await session.execute()

        mock_client.save_structure.assert_awaited_once()
        assert session.dirty is False
        assert session.last_execution is None


class TestSessionManager:

    def test_open_reuses_session(self, store, exporter, importer, editor):
        manager = SessionManager(store, exporter, importer, editor)

        first = manager.open("wf-1")

        assert manager.open("wf-1") is first
        assert manager.list_open() == ["wf-1"]

    def test_get_unknown(self, store, exporter, importer, editor):
        manager = SessionManager(store, exporter, importer, editor)

        with pytest.raises(KeyError):
            manager.get("nope")

    def test_close(self, store, exporter, importer, editor):
        manager = SessionManager(store, exporter, importer, editor)
        session = manager.open("wf-1")

        assert manager.close("wf-1") is True
        assert session.closed
        assert manager.close("wf-1") is False
        assert manager.list_open() == []
