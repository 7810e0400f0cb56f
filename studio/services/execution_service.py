# studio/services/execution_service.py
import logging

from studio.core.exceptions import ExecutionError
from studio.models.execution import ChatMessage, RunOutcome, RunRequest
from studio.services.blueprint_compiler import BlueprintCompiler
from studio.services.execution_client import ExecutionClient
from studio.services.graph_state import GraphState

logger = logging.getLogger(__name__)


class ExecutionService:
    def __init__(self, client: ExecutionClient, compiler: BlueprintCompiler | None = None):
        self.client = client
        self.compiler = compiler or BlueprintCompiler()
        self._in_flight = 0

    @property
    def is_running(self) -> bool:
        return self._in_flight > 0

    async def run(self, state: GraphState, user_input: str) -> RunOutcome:
        """
        Compiles the current graph and dispatches it to the runtime.

        The compiled Blueprint is an independent value, so the graph may keep
        changing while the request is in flight. A failed run is reported as a
        single system message instead of raising.
        """
        blueprint = self.compiler.compile(state.snapshot())
        self._in_flight += 1
        try:
            response = await self.client.run(RunRequest(graph=blueprint, input=user_input))
        except ExecutionError as exc:
            logger.error("Run failed for entry '%s': %s", blueprint.graph.entry, exc.message)
            return RunOutcome(
                status="failed",
                blueprint=blueprint.to_wire(),
                history=[ChatMessage(role="system", content=f"Error: {exc.message}")],
            )
        finally:
            self._in_flight -= 1

        return RunOutcome(
            status="completed",
            execution_id=response.execution_id,
            blueprint=blueprint.to_wire(),
            history=response.history,
            final_state=response.final_state,
        )

    async def get_history(self, execution_id: str | None = None) -> list[ChatMessage]:
        return await self.client.get_history(execution_id)
