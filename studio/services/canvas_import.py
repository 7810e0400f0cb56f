# studio/services/canvas_import.py
import json
import logging
from pathlib import Path
from typing import Any
from pydantic import BaseModel, Field

from studio.models.graph import NodeConfig, NodeKind, NodePositionChange, NodeUpdate, Position
from studio.services.graph_state import GraphState

logger = logging.getLogger(__name__)

# Shape of a graph exported from the canvas. Node ids in the file are only
# used to wire up edges; the GraphState assigns fresh ids on import.
class CanvasNode(BaseModel):
    id: str
    kind: NodeKind
    label: str | None = None
    position: Position | None = None
    config: NodeConfig | None = None

class CanvasEdge(BaseModel):
    source: str
    target: str

class CanvasExport(BaseModel):
    nodes: list[CanvasNode] = Field(default_factory=list)
    edges: list[CanvasEdge] = Field(default_factory=list)


def import_canvas(data: dict[str, Any], state: GraphState | None = None) -> GraphState:
    """
    Replays a canvas export into a GraphState through its public mutation surface.
    Edges whose endpoints are not in the export are dropped, same as connect().
    """
    export = CanvasExport.model_validate(data)
    state = state or GraphState()
    id_map: dict[str, str] = {}

    for canvas_node in export.nodes:
        node = state.add_node(canvas_node.kind)
        id_map[canvas_node.id] = node.id
        if canvas_node.label is not None or canvas_node.config is not None:
            state.update_node(node.id, NodeUpdate(label=canvas_node.label, config=canvas_node.config))
        if canvas_node.position is not None:
            state.apply_node_changes([NodePositionChange(id=node.id, position=canvas_node.position)])

    for canvas_edge in export.edges:
        source = id_map.get(canvas_edge.source, canvas_edge.source)
        target = id_map.get(canvas_edge.target, canvas_edge.target)
        if state.connect(source, target) is None:
            logger.warning("Dropped edge %s -> %s: endpoint not in export", canvas_edge.source, canvas_edge.target)

    return state


def load_canvas_file(path: Path, state: GraphState | None = None) -> GraphState:
    with path.open("r", encoding="utf-8") as handle:
        return import_canvas(json.load(handle), state)
