# studio/services/graph_service.py
import logging
from studio.models.blueprint import Blueprint
from studio.models.execution import ChatMessage, RunOutcome
from studio.models.graph import (
    Edge, EdgeChange, GraphSnapshot, Node, NodeChange, NodeKind, NodeUpdate,
)
from studio.db.repositories.workspace_repository import WorkspaceRepository
from studio.core.exceptions import ExecutionError, NodeNotFoundException
from studio.services.blueprint_compiler import BlueprintCompiler
from studio.services.execution_service import ExecutionService

logger = logging.getLogger(__name__)

class GraphService:
    def __init__(
        self,
        repo: WorkspaceRepository,
        compiler: BlueprintCompiler,
        execution_service: ExecutionService | None = None,
    ):
        self.repo = repo
        self.compiler = compiler
        self.execution_service = execution_service

    def clear_workspace(self, user_id: str) -> None:
        """Drops every node and edge in the given user's workspace."""
        removed = self.repo.delete(user_id)
        logger.info("Cleared workspace %s (%d nodes)", user_id, removed)

    def get_graph(self, user_id: str) -> GraphSnapshot:
        return self.repo.get_or_create(user_id).snapshot()

    def create_node(self, kind: NodeKind, user_id: str) -> Node:
        return self.repo.get_or_create(user_id).add_node(kind)

    def get_node(self, node_id: str, user_id: str) -> Node | None:
        return self.repo.get_or_create(user_id).get_node(node_id)

    def update_node(self, node_id: str, node_update: NodeUpdate, user_id: str) -> Node:
        return self.repo.get_or_create(user_id).update_node(node_id, node_update)

    def apply_node_changes(self, changes: list[NodeChange], user_id: str) -> GraphSnapshot:
        state = self.repo.get_or_create(user_id)
        state.apply_node_changes(changes)
        return state.snapshot()

    def apply_edge_changes(self, changes: list[EdgeChange], user_id: str) -> GraphSnapshot:
        state = self.repo.get_or_create(user_id)
        state.apply_edge_changes(changes)
        return state.snapshot()

    def connect(self, source: str, target: str, user_id: str) -> Edge:
        edge = self.repo.get_or_create(user_id).connect(source, target)
        if edge is None:
            raise NodeNotFoundException("One or both nodes for the edge not found in this workspace.")
        return edge

    def compile_blueprint(self, user_id: str) -> Blueprint:
        return self.compiler.compile(self.repo.get_or_create(user_id).snapshot())

    async def run(self, user_input: str, user_id: str) -> RunOutcome:
        return await self._require_execution().run(self.repo.get_or_create(user_id), user_input)

    async def get_history(self, execution_id: str | None = None) -> list[ChatMessage]:
        return await self._require_execution().get_history(execution_id)

    def _require_execution(self) -> ExecutionService:
        if self.execution_service is None:
            raise ExecutionError("Execution runtime client is not available; the app has not started.")
        return self.execution_service
