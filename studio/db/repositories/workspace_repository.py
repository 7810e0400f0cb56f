# studio/db/repositories/workspace_repository.py
from typing import Callable
from studio.services.graph_state import GraphState

class WorkspaceRepository:
    """Keeps one GraphState per workspace ID for the lifetime of the process."""

    def __init__(self, state_factory: Callable[[], GraphState] = GraphState):
        self._state_factory = state_factory
        self._workspaces: dict[str, GraphState] = {}

    def __len__(self) -> int:
        return len(self._workspaces)

    def get_or_create(self, user_id: str) -> GraphState:
        state = self._workspaces.get(user_id)
        if state is None:
            state = self._state_factory()
            self._workspaces[user_id] = state
        return state

    def delete(self, user_id: str) -> int:
        """
        Drops the workspace for a given user.
        Returns the number of nodes it held.
        """
        state = self._workspaces.pop(user_id, None)
        return len(state) if state is not None else 0
