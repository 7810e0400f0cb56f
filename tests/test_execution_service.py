import asyncio

import pytest

from studio.core.exceptions import ExecutionError
from studio.models.execution import ChatMessage, RunResponse
from studio.models.graph import NodeKind, NodeUpdate
from studio.services.execution_service import ExecutionService
from studio.services.graph_state import GraphState


class StubClient:
    def __init__(self, response: RunResponse | None = None, error: ExecutionError | None = None):
        self.response = response or RunResponse(history=[ChatMessage(role="assistant", content="ok")])
        self.error = error
        self.requests = []
        self.release = None

    async def run(self, request):
        self.requests.append(request)
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.response

    async def get_history(self, execution_id=None):
        return [ChatMessage(role="user", content=f"history for {execution_id}")]


def build_state() -> GraphState:
    state = GraphState()
    agent = state.add_node(NodeKind.AGENT)
    state.update_node(agent.id, NodeUpdate(label="A"))
    return state


@pytest.mark.asyncio
async def test_run_dispatches_compiled_blueprint():
    client = StubClient(RunResponse(
        execution_id="run-1",
        history=[ChatMessage(role="assistant", content="hi")],
        final_state={"n": 1},
    ))
    service = ExecutionService(client)

    outcome = await service.run(build_state(), "Hello Agent")

    assert outcome.status == "completed"
    assert outcome.history[0].content == "hi"
    assert outcome.execution_id == "run-1"
    assert outcome.final_state == {"n": 1}
    assert outcome.blueprint["graph"]["entry"] == "A"
    sent = client.requests[0]
    assert sent.input == "Hello Agent"
    assert sent.graph.graph.entry == "A"
    assert service.is_running is False


@pytest.mark.asyncio
async def test_failed_run_becomes_system_message_and_resets():
    client = StubClient(error=ExecutionError("Failed to run agent: 503 Service Unavailable", status_code=503))
    service = ExecutionService(client)

    outcome = await service.run(build_state(), "hi")

    assert outcome.status == "failed"
    assert outcome.execution_id is None
    assert outcome.history == [
        ChatMessage(role="system", content="Error: Failed to run agent: 503 Service Unavailable"),
    ]
    assert service.is_running is False

    client.error = None
    retry = await service.run(build_state(), "hi")
    assert retry.status == "completed"
    assert len(client.requests) == 2


@pytest.mark.asyncio
async def test_in_flight_blueprint_is_unaffected_by_later_mutation():
    client = StubClient()
    client.release = asyncio.Event()
    service = ExecutionService(client)
    state = build_state()

    task = asyncio.create_task(service.run(state, "hi"))
    await asyncio.sleep(0)
    assert service.is_running is True

    tool = state.add_node(NodeKind.TOOL)
    state.update_node(state.nodes[0].id, NodeUpdate(label="renamed"))
    state.connect(state.nodes[0].id, tool.id)
    client.release.set()
    outcome = await task

    assert [n["name"] for n in outcome.blueprint["nodes"]] == ["A"]
    assert outcome.blueprint["edges"] == []
    assert client.requests[0].graph.graph.entry == "A"
    assert service.is_running is False


@pytest.mark.asyncio
async def test_get_history_delegates_to_client():
    service = ExecutionService(StubClient())

    history = await service.get_history("x1")

    assert history[0].content == "history for x1"
