import itertools

import pytest

from studio.core.exceptions import LabelConflictException, NodeNotFoundException
from studio.models.graph import (
    AgentConfig,
    EdgeRemoveChange,
    EdgeSelectionChange,
    NodeKind,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectionChange,
    NodeUpdate,
    Position,
    ToolConfig,
)
from studio.services.graph_state import GraphState


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture
def state():
    return GraphState(id_factory=sequential_ids(), default_position=Position(x=10, y=20))


def test_add_node_generates_label_position_and_empty_config(state):
    node = state.add_node(NodeKind.AGENT)

    assert node.id == "n1"
    assert node.label == "agent_n1"
    assert node.position == Position(x=10, y=20)
    assert node.config == AgentConfig()
    assert node.config.model is None
    assert len(state) == 1


def test_add_node_accepts_plain_kind_strings(state):
    node = state.add_node("tool")
    assert node.kind is NodeKind.TOOL
    assert node.config == ToolConfig()


def test_add_node_redraws_id_when_generated_label_is_taken(state):
    first = state.add_node(NodeKind.AGENT)
    state.update_node(first.id, NodeUpdate(label="agent_n2"))

    second = state.add_node(NodeKind.AGENT)

    assert second.id == "n3"
    assert second.label == "agent_n3"


def test_repeating_id_factory_falls_back_to_random_ids():
    stuck = GraphState(id_factory=lambda: "same")
    first = stuck.add_node(NodeKind.AGENT)
    second = stuck.add_node(NodeKind.AGENT)

    assert first.id == "same"
    assert second.id != first.id
    assert second.label != first.label

    e1 = stuck.connect(first.id, second.id)
    e2 = stuck.connect(first.id, second.id)
    assert e1.id == "e_same"
    assert e2.id != e1.id
    assert len(stuck.edges) == 2


def test_connect_requires_both_endpoints(state):
    a = state.add_node(NodeKind.AGENT)

    assert state.connect(a.id, "missing") is None
    assert state.connect("missing", a.id) is None
    assert state.edges == ()


def test_connect_allows_self_loops_and_parallel_edges(state):
    a = state.add_node(NodeKind.AGENT)
    t = state.add_node(NodeKind.TOOL)

    first = state.connect(a.id, t.id)
    second = state.connect(a.id, t.id)
    loop = state.connect(a.id, a.id)

    assert first is not None and second is not None and loop is not None
    assert len({first.id, second.id, loop.id}) == 3
    assert [(e.source, e.target) for e in state.edges] == [(a.id, t.id), (a.id, t.id), (a.id, a.id)]


def test_removing_node_cascades_to_its_edges(state):
    a = state.add_node(NodeKind.AGENT)
    t = state.add_node(NodeKind.TOOL)
    s = state.add_node(NodeKind.SUBGRAPH)
    state.connect(a.id, t.id)
    state.connect(t.id, s.id)
    keep = state.connect(a.id, s.id)

    state.apply_node_changes([NodeRemoveChange(id=t.id)])

    assert [n.id for n in state.nodes] == [a.id, s.id]
    assert [e.id for e in state.edges] == [keep.id]


def test_node_changes_apply_in_order_and_skip_unknown_ids(state):
    a = state.add_node(NodeKind.AGENT)
    b = state.add_node(NodeKind.TOOL)

    state.apply_node_changes([
        NodePositionChange(id=a.id, position=Position(x=1, y=2), dragging=True),
        NodeSelectionChange(id=b.id, selected=True),
        NodePositionChange(id="ghost", position=Position(x=9, y=9)),
        NodePositionChange(id=a.id, position=Position(x=3, y=4)),
    ])

    nodes = {n.id: n for n in state.nodes}
    assert nodes[a.id].position == Position(x=3, y=4)
    assert nodes[b.id].selected is True
    assert [n.id for n in state.nodes] == [a.id, b.id]


def test_position_change_for_node_removed_earlier_in_batch_is_ignored(state):
    a = state.add_node(NodeKind.AGENT)

    state.apply_node_changes([
        NodeRemoveChange(id=a.id),
        NodePositionChange(id=a.id, position=Position(x=5, y=5)),
    ])

    assert state.nodes == ()


def test_edge_changes_select_and_remove(state):
    a = state.add_node(NodeKind.AGENT)
    t = state.add_node(NodeKind.TOOL)
    first = state.connect(a.id, t.id)
    second = state.connect(t.id, a.id)

    state.apply_edge_changes([
        EdgeSelectionChange(id=second.id, selected=True),
        EdgeRemoveChange(id=first.id),
        EdgeRemoveChange(id="ghost"),
    ])

    edges = state.edges
    assert [e.id for e in edges] == [second.id]
    assert edges[0].selected is True


def test_update_node_changes_label_and_config(state):
    a = state.add_node(NodeKind.AGENT)

    updated = state.update_node(a.id, NodeUpdate(label="planner", config=AgentConfig(model="gpt-4o")))

    assert updated.label == "planner"
    assert updated.config.model == "gpt-4o"
    assert state.get_node(a.id).label == "planner"


def test_update_node_rejects_taken_label(state):
    a = state.add_node(NodeKind.AGENT)
    b = state.add_node(NodeKind.TOOL)

    with pytest.raises(LabelConflictException):
        state.update_node(b.id, NodeUpdate(label=a.label))

    assert state.get_node(b.id).label == "tool_n2"


def test_update_node_rejects_config_of_other_kind(state):
    t = state.add_node(NodeKind.TOOL)

    with pytest.raises(ValueError):
        state.update_node(t.id, NodeUpdate(config=AgentConfig(model="llama3")))


def test_update_unknown_node_raises(state):
    with pytest.raises(NodeNotFoundException):
        state.update_node("ghost", NodeUpdate(label="x"))


def test_snapshot_is_isolated_from_state(state):
    a = state.add_node(NodeKind.AGENT)
    snapshot = state.snapshot()

    snapshot.nodes[0].label = "mutated"
    state.apply_node_changes([NodeRemoveChange(id=a.id)])

    assert snapshot.nodes[0].id == a.id
    assert state.nodes == ()


def test_returned_nodes_do_not_alias_internal_state(state):
    a = state.add_node(NodeKind.AGENT)
    a.label = "changed outside"

    assert state.get_node(a.id).label == "agent_n1"


def test_clear_empties_graph(state):
    a = state.add_node(NodeKind.AGENT)
    state.connect(a.id, a.id)

    state.clear()

    assert state.snapshot().nodes == ()
    assert state.snapshot().edges == ()
