# studio/services/graph_state.py
import logging
from typing import Callable, Iterable
from uuid import uuid4

from studio.core.exceptions import LabelConflictException, NodeNotFoundException
from studio.models.graph import (
    Edge,
    EdgeChange,
    EdgeRemoveChange,
    EdgeSelectionChange,
    GraphSnapshot,
    Node,
    NodeChange,
    NodeKind,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectionChange,
    NodeUpdate,
    Position,
    empty_config_for,
)

logger = logging.getLogger(__name__)


_MAX_ID_ATTEMPTS = 16


def _short_id() -> str:
    return uuid4().hex[:8]


class GraphState:
    """
    The single owned source of truth for one workspace's graph.

    Every public method runs to completion and leaves the aggregate valid:
    no edge ever references a node that is not in the graph, and batches are
    committed only once every change in them has been applied.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] = _short_id,
        default_position: Position | None = None,
    ):
        self._id_factory = id_factory
        self._default_position = default_position or Position()
        self._nodes: list[Node] = []
        self._edges: list[Edge] = []

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(node.model_copy(deep=True) for node in self._nodes)

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(edge.model_copy(deep=True) for edge in self._edges)

    def add_node(self, kind: NodeKind) -> Node:
        kind = NodeKind(kind)
        taken_ids = {node.id for node in self._nodes}
        taken_labels = {node.label for node in self._nodes}
        node_id = self._draw_id(
            taken_ids, lambda candidate: f"{kind.value}_{candidate}" not in taken_labels
        )
        label = f"{kind.value}_{node_id}"

        node = Node(
            id=node_id,
            kind=kind,
            label=label,
            position=self._default_position.model_copy(),
            config=empty_config_for(kind),
        )
        self._nodes = [*self._nodes, node]
        logger.debug("Added %s node %s", kind.value, node_id)
        return node.model_copy(deep=True)

    def get_node(self, node_id: str) -> Node | None:
        node = self._find_node(node_id)
        return node.model_copy(deep=True) if node else None

    def update_node(self, node_id: str, node_update: NodeUpdate) -> Node:
        node = self._find_node(node_id)
        if node is None:
            raise NodeNotFoundException(f"Node '{node_id}' not found.")

        label = node.label
        if node_update.label is not None and node_update.label != node.label:
            if any(other.label == node_update.label for other in self._nodes if other.id != node_id):
                raise LabelConflictException(node_update.label)
            label = node_update.label

        config = node.config
        if node_update.config is not None:
            if node_update.config.kind != node.kind.value:
                raise ValueError(
                    f"Config of kind '{node_update.config.kind}' cannot be attached to a '{node.kind.value}' node."
                )
            config = node_update.config.model_copy(deep=True)

        updated = node.model_copy(update={"label": label, "config": config})
        self._nodes = [updated if n.id == node_id else n for n in self._nodes]
        return updated.model_copy(deep=True)

    def apply_node_changes(self, changes: Iterable[NodeChange]) -> None:
        nodes = {node.id: node for node in self._nodes}
        removed: set[str] = set()

        for change in changes:
            node = nodes.get(change.id)
            if node is None:
                logger.debug("Skipping %s change for unknown node %s", change.type, change.id)
                continue
            if isinstance(change, NodeRemoveChange):
                del nodes[change.id]
                removed.add(change.id)
            elif isinstance(change, NodePositionChange):
                if change.position is not None:
                    nodes[change.id] = node.model_copy(update={"position": change.position.model_copy()})
            elif isinstance(change, NodeSelectionChange):
                nodes[change.id] = node.model_copy(update={"selected": change.selected})

        edges = self._edges
        if removed:
            edges = [e for e in edges if e.source not in removed and e.target not in removed]
            logger.debug(
                "Removed nodes %s and %d dependent edge(s)",
                sorted(removed), len(self._edges) - len(edges),
            )

        # dict preserves the original insertion order of surviving nodes
        self._nodes = list(nodes.values())
        self._edges = edges

    def apply_edge_changes(self, changes: Iterable[EdgeChange]) -> None:
        edges = {edge.id: edge for edge in self._edges}

        for change in changes:
            edge = edges.get(change.id)
            if edge is None:
                logger.debug("Skipping %s change for unknown edge %s", change.type, change.id)
                continue
            if isinstance(change, EdgeRemoveChange):
                del edges[change.id]
            elif isinstance(change, EdgeSelectionChange):
                edges[change.id] = edge.model_copy(update={"selected": change.selected})

        self._edges = list(edges.values())

    def connect(self, source: str, target: str) -> Edge | None:
        """Adds an edge when both endpoints exist. Self-loops and parallel edges are allowed."""
        if self._find_node(source) is None or self._find_node(target) is None:
            logger.debug("Refusing to connect %s -> %s: endpoint missing", source, target)
            return None

        taken = {edge.id[2:] for edge in self._edges if edge.id.startswith("e_")}
        edge_id = f"e_{self._draw_id(taken)}"

        edge = Edge(id=edge_id, source=source, target=target)
        self._edges = [*self._edges, edge]
        return edge.model_copy()

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(nodes=self.nodes, edges=self.edges)

    def clear(self) -> None:
        self._nodes = []
        self._edges = []

    def _draw_id(self, taken: set[str], accept=lambda candidate: True) -> str:
        """Draws from the injected factory, falling back to random ids if it keeps repeating itself."""
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in taken and accept(candidate):
                return candidate
        logger.warning("id factory repeated itself %d times; using random ids", _MAX_ID_ATTEMPTS)
        while True:
            candidate = uuid4().hex
            if candidate not in taken and accept(candidate):
                return candidate

    def _find_node(self, node_id: str) -> Node | None:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None
