# studio/models/blueprint.py
import json
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field


class GraphConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: str
    max_steps: int


class BlueprintNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: Literal["agent", "tool", "subgraph"]
    model: str | None = None
    instructions: str | None = None
    tools: tuple[str, ...] | None = None


class BlueprintEdge(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(alias="from")
    to: str


class Blueprint(BaseModel):
    """The immutable execution descriptor handed to the runtime."""
    model_config = ConfigDict(frozen=True)

    project: str
    version: str
    graph: GraphConfig
    nodes: tuple[BlueprintNode, ...] = ()
    edges: tuple[BlueprintEdge, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with wire field names and unset fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_wire(), indent=indent, ensure_ascii=False)
