# studio/models/graph.py
from enum import Enum
from typing import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class NodeKind(str, Enum):
    AGENT = "agent"
    TOOL = "tool"
    SUBGRAPH = "subgraph"

    @property
    def is_entry_eligible(self) -> bool:
        return self is NodeKind.AGENT

    @property
    def has_model_config(self) -> bool:
        return self is NodeKind.AGENT

    @property
    def has_tool_config(self) -> bool:
        return self in (NodeKind.AGENT, NodeKind.TOOL)


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class AgentConfig(BaseModel):
    kind: Literal["agent"] = "agent"
    model: str | None = None
    instructions: str | None = None
    tools: list[str] | None = None


class ToolConfig(BaseModel):
    kind: Literal["tool"] = "tool"
    tools: list[str] | None = None


class SubgraphConfig(BaseModel):
    kind: Literal["subgraph"] = "subgraph"


NodeConfig = Annotated[
    Union[AgentConfig, ToolConfig, SubgraphConfig],
    Field(discriminator="kind"),
]

_EMPTY_CONFIGS = {
    NodeKind.AGENT: AgentConfig,
    NodeKind.TOOL: ToolConfig,
    NodeKind.SUBGRAPH: SubgraphConfig,
}


def empty_config_for(kind: NodeKind):
    """Returns a config of the right variant with every optional field unset."""
    return _EMPTY_CONFIGS[NodeKind(kind)]()


class Node(BaseModel):
    id: str
    kind: NodeKind
    label: str = Field(min_length=1)
    position: Position = Field(default_factory=Position)
    selected: bool = False
    config: NodeConfig

    @model_validator(mode="after")
    def _config_matches_kind(self) -> "Node":
        if self.config.kind != self.kind.value:
            raise ValueError(
                f"Config of kind '{self.config.kind}' cannot be attached to a '{self.kind.value}' node."
            )
        return self


class Edge(BaseModel):
    id: str
    source: str
    target: str
    selected: bool = False


class GraphSnapshot(BaseModel):
    """Read-only copy of a graph's nodes and edges, in insertion order."""
    model_config = ConfigDict(frozen=True)

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()


class NodeCreate(BaseModel):
    kind: NodeKind


class NodeUpdate(BaseModel):
    label: str | None = Field(default=None, min_length=1)
    config: NodeConfig | None = None


class Connection(BaseModel):
    source: str
    target: str


# --- Change batches, shaped like the canvas library's change events ---

class NodePositionChange(BaseModel):
    type: Literal["position"] = "position"
    id: str
    position: Position | None = None
    dragging: bool | None = None


class NodeSelectionChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool


class NodeRemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


NodeChange = Annotated[
    Union[NodePositionChange, NodeSelectionChange, NodeRemoveChange],
    Field(discriminator="type"),
]


class EdgeSelectionChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool


class EdgeRemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


EdgeChange = Annotated[
    Union[EdgeSelectionChange, EdgeRemoveChange],
    Field(discriminator="type"),
]
