# studio/services/blueprint_compiler.py
"""
Lowers a graph snapshot into a Blueprint.

Lowering is a pure function of the snapshot and the compiler options:
nodes keep their order, edges are rewritten from node ids to node labels,
and the entry point is the first entry-eligible node. A dangling edge
endpoint is emitted as its raw id rather than failing the compile.
"""
import logging
from pydantic import BaseModel, ConfigDict

from studio.models.blueprint import Blueprint, BlueprintEdge, BlueprintNode, GraphConfig
from studio.models.graph import GraphSnapshot, Node, NodeKind

logger = logging.getLogger(__name__)


class CompilerOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str = "my-agent"
    version: str = "1.0.0"
    max_steps: int = 25
    default_model: str = "llama3"
    default_instructions: str = "Output system prompt"

    @classmethod
    def from_settings(cls, settings) -> "CompilerOptions":
        return cls(
            project=settings.BLUEPRINT_PROJECT,
            version=settings.BLUEPRINT_VERSION,
            max_steps=settings.BLUEPRINT_MAX_STEPS,
            default_model=settings.DEFAULT_AGENT_MODEL,
            default_instructions=settings.DEFAULT_AGENT_INSTRUCTIONS,
        )


class BlueprintCompiler:
    def __init__(self, options: CompilerOptions | None = None):
        self.options = options or CompilerOptions()

    def compile(self, snapshot: GraphSnapshot) -> Blueprint:
        bp_nodes = [self._lower_node(node) for node in snapshot.nodes]

        labels = {node.id: node.label for node in snapshot.nodes}
        bp_edges = []
        for edge in snapshot.edges:
            source = self._resolve_label(labels, edge.source, edge.id)
            target = self._resolve_label(labels, edge.target, edge.id)
            bp_edges.append(BlueprintEdge(from_=source, to=target))

        entry = next(
            (bp_node.name for bp_node in bp_nodes if NodeKind(bp_node.type).is_entry_eligible),
            "",
        )
        if not entry:
            logger.debug("Graph has no entry-eligible node; emitting empty entry.")

        return Blueprint(
            project=self.options.project,
            version=self.options.version,
            graph=GraphConfig(entry=entry, max_steps=self.options.max_steps),
            nodes=tuple(bp_nodes),
            edges=tuple(bp_edges),
        )

    def _lower_node(self, node: Node) -> BlueprintNode:
        fields = {"name": node.label, "type": node.kind.value}
        config = node.config

        if node.kind.has_model_config:
            fields["model"] = config.model or self.options.default_model
            fields["instructions"] = config.instructions or self.options.default_instructions

        if node.kind.has_tool_config and config.tools:
            fields["tools"] = tuple(config.tools)

        return BlueprintNode(**fields)

    @staticmethod
    def _resolve_label(labels: dict[str, str], node_id: str, edge_id: str) -> str:
        label = labels.get(node_id)
        if label is None:
            logger.debug("Edge %s references missing node %s; using raw id.", edge_id, node_id)
            return node_id
        return label


def compile_blueprint(snapshot: GraphSnapshot, options: CompilerOptions | None = None) -> Blueprint:
    return BlueprintCompiler(options).compile(snapshot)
