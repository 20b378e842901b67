"""
Graph Editor Adapter — FlowGraph <-> visual editor (nodes, edges).

Editor conventions:
    - One node per question; node id = str(question id)
    - Every node has a "default" source handle; CHOICE nodes also have
      one "option-<index>" handle per option
    - Default edges are labelled "Default", branch edges "If: <option>"
    - Edge ids are derived from (source, kind, option, target) only, so the
      same logical edge always gets the same id across re-renders

Saving goes the other way: outgoing edges of each node become a
TransitionRule, which the codec encodes onto the question. A node with no
outgoing edges gets rule None, i.e. it falls back to linear order; the
previous rule is NOT preserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

from surveyflow.codec import encode_rule
from surveyflow.collaborators import QuestionStore
from surveyflow.config import FlowSettings
from surveyflow.diagnostics import Diagnostic, DiagnosticKind, EditorSaveError, record
from surveyflow.graph import FlowGraph
from surveyflow.model import EdgeKind, Question, QuestionId, TransitionRule

logger = logging.getLogger(__name__)

NODE_TYPE = "questionNode"
DEFAULT_HANDLE = "default"
OPTION_HANDLE_PREFIX = "option-"
DEFAULT_LABEL = "Default"
BRANCH_LABEL_PREFIX = "If: "

Position = Tuple[float, float]


def node_id(question_id: QuestionId) -> str:
    return str(question_id)


def option_handle(index: int) -> str:
    return f"{OPTION_HANDLE_PREFIX}{index}"


def _id_part(value) -> str:
    # quote() leaves "-" alone; it is the separator here.
    return quote(str(value), safe="").replace("-", "%2D")


def edge_id(source: QuestionId, kind: EdgeKind, target: QuestionId, option: Optional[str] = None) -> str:
    """
    Deterministic edge identifier.

    Examples:
        edge_id(1, EdgeKind.DEFAULT, 2)              -> "e-1-default-2"
        edge_id(1, EdgeKind.BRANCH, 3, "Not sure")   -> "e-1-branch-Not%20sure-3"
    """
    if kind is EdgeKind.DEFAULT:
        return f"e-{_id_part(source)}-default-{_id_part(target)}"
    return f"e-{_id_part(source)}-branch-{_id_part(option or '')}-{_id_part(target)}"


@dataclass
class EditorNode:
    """A question as the editor renders it."""

    id: str
    question: Question
    position: Position = (0.0, 0.0)
    type: str = NODE_TYPE


@dataclass(frozen=True)
class EditorEdge:
    """
    A connection drawn in the editor.

    Properties:
        id: Deterministic edge id (see edge_id)
        source: Source node id
        target: Target node id
        source_handle: "default" or "option-<index>" (None = default)
        label: "Default" or "If: <option>"
    """

    id: str
    source: str
    target: str
    source_handle: Optional[str] = DEFAULT_HANDLE
    label: Optional[str] = DEFAULT_LABEL


def _default_edge(source: EditorNode, target: str) -> EditorEdge:
    return EditorEdge(
        id=edge_id(source.id, EdgeKind.DEFAULT, target),
        source=source.id,
        target=target,
        source_handle=DEFAULT_HANDLE,
        label=DEFAULT_LABEL,
    )


def _branch_edge(source: EditorNode, index: int, target: str) -> EditorEdge:
    option = source.question.options[index]
    return EditorEdge(
        id=edge_id(source.id, EdgeKind.BRANCH, target, option),
        source=source.id,
        target=target,
        source_handle=option_handle(index),
        label=f"{BRANCH_LABEL_PREFIX}{option}",
    )


def _handle_index(handle: Optional[str]) -> Optional[int]:
    if handle is None or not handle.startswith(OPTION_HANDLE_PREFIX):
        return None
    suffix = handle[len(OPTION_HANDLE_PREFIX):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def _is_default(edge: EditorEdge) -> bool:
    if edge.source_handle == DEFAULT_HANDLE:
        return True
    # Handle-less edges are defaults unless labelled as a branch.
    if edge.source_handle is None:
        return not (edge.label or "").startswith(BRANCH_LABEL_PREFIX)
    return False


def _edge_option(edge: EditorEdge, node: EditorNode) -> Optional[str]:
    """Option an edge branches on: by handle index, else by its "If: " label."""
    options = node.question.options
    index = _handle_index(edge.source_handle)
    if index is not None and index < len(options):
        return options[index]
    label = edge.label or ""
    if label.startswith(BRANCH_LABEL_PREFIX):
        option = label[len(BRANCH_LABEL_PREFIX):]
        if option in options:
            return option
    return None


def _same_anchor(edge: EditorEdge, other: EditorEdge, node: EditorNode) -> bool:
    if _is_default(other):
        return _is_default(edge)
    return not _is_default(edge) and _edge_option(edge, node) == _edge_option(other, node)


@dataclass
class EditableGraph:
    """
    Mutable editor state: what the canvas shows.

    Connection rules:
        - No handle (or "default") creates the node's DEFAULT edge
        - An option handle creates a BRANCH edge for that option
        - Either way, an existing edge from the same anchor is replaced
    """

    nodes: List[EditorNode] = field(default_factory=list)
    edges: List[EditorEdge] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[EditorNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def outgoing(self, node_id: str) -> List[EditorEdge]:
        return [e for e in self.edges if e.source == node_id]

    def _require_node(self, node_id: str) -> EditorNode:
        n = self.node(node_id)
        if n is None:
            raise ValueError(f"Unknown node: {node_id!r}")
        return n

    def _anchor_edge(self, source: EditorNode, source_handle: Optional[str], target: str) -> EditorEdge:
        if source_handle in (None, DEFAULT_HANDLE):
            return _default_edge(source, target)
        index = _handle_index(source_handle)
        if index is None or not source.question.is_choice or index >= len(source.question.options):
            raise ValueError(f"Node {source.id!r} has no handle {source_handle!r}")
        return _branch_edge(source, index, target)

    def connect(self, source: str, target: str, source_handle: Optional[str] = None) -> EditorEdge:
        """Draw an edge, replacing whatever left the same anchor before."""
        source_node = self._require_node(source)
        self._require_node(target)
        new_edge = self._anchor_edge(source_node, source_handle, target)

        self.edges = [
            e for e in self.edges
            if e.source != source or not _same_anchor(e, new_edge, source_node)
        ] + [new_edge]
        return new_edge

    def disconnect(self, edge_id: str) -> bool:
        before = len(self.edges)
        self.edges = [e for e in self.edges if e.id != edge_id]
        return len(self.edges) != before

    def set_connections(
        self,
        node_id: str,
        default: Optional[str] = None,
        branches: Optional[Mapping[str, str]] = None,
    ) -> List[EditorEdge]:
        """
        Replace every outgoing edge of a node at once.

        Args:
            node_id: Source node
            default: Target node of the default edge (None = no default)
            branches: Option value -> target node (options not on the
                question are ignored)

        Returns:
            The node's new outgoing edges
        """
        source = self._require_node(node_id)
        new_edges: List[EditorEdge] = []
        if default is not None:
            self._require_node(default)
            new_edges.append(_default_edge(source, default))
        if branches and source.question.is_choice:
            for index, option in enumerate(source.question.options):
                target = branches.get(option)
                if target is None:
                    continue
                self._require_node(target)
                new_edges.append(_branch_edge(source, index, target))

        self.edges = [e for e in self.edges if e.source != node_id] + new_edges
        return new_edges


def _layout(index: int, settings: FlowSettings) -> Position:
    return (float(settings.layout_x), float(settings.layout_y_start + index * settings.layout_y_step))


def to_editable_graph(
    graph: FlowGraph,
    positions: Optional[Mapping[str, Position]] = None,
    settings: Optional[FlowSettings] = None,
) -> EditableGraph:
    """
    Render a FlowGraph for the editor.

    Args:
        graph: Built flow graph
        positions: Saved node positions by node id (others get the default
            single-column layout)
        settings: Layout settings (defaults if omitted)
    """
    settings = settings or FlowSettings()
    positions = positions or {}

    nodes: List[EditorNode] = []
    by_id: Dict[QuestionId, EditorNode] = {}
    for index, q in enumerate(graph.questions):
        nid = node_id(q.id)
        n = EditorNode(id=nid, question=q, position=positions.get(nid, _layout(index, settings)))
        nodes.append(n)
        by_id[q.id] = n

    edges: List[EditorEdge] = []
    for e in graph.edges:
        source = by_id[e.from_id]
        target = node_id(e.to_id)
        if e.kind is EdgeKind.DEFAULT:
            edges.append(_default_edge(source, target))
        else:
            edges.append(_branch_edge(source, source.question.options.index(e.option), target))

    return EditableGraph(nodes=nodes, edges=edges)


def _rule_from_edges(
    node: EditorNode,
    edges: Sequence[EditorEdge],
    question_ids: Mapping[str, QuestionId],
    diagnostics: Optional[List[Diagnostic]],
) -> TransitionRule:
    q = node.question
    default_next: Optional[QuestionId] = None
    branches: Dict[str, QuestionId] = {}

    for e in edges:
        target = question_ids.get(e.target)
        if target is None:
            record(diagnostics, DiagnosticKind.DANGLING_EDGE,
                   f"Edge {e.id} points at unknown node {e.target!r}", q.id, logger)
            continue

        if _is_default(e):
            if default_next is None:
                default_next = target
            else:
                logger.warning("Question %s has more than one default edge; keeping the first", q.id)
            continue

        option = _edge_option(e, node) if q.is_choice else None
        if option is None:
            record(diagnostics, DiagnosticKind.ORPHANED_BRANCH,
                   f"Edge {e.id} does not match a current option", q.id, logger)
            continue
        branches.setdefault(option, target)

    return TransitionRule(default_next_id=default_next, branches=branches)


def from_editable_graph(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    questions: Sequence[Question],
    diagnostics: Optional[List[Diagnostic]] = None,
) -> List[Question]:
    """
    Re-derive every question's rule from the editor state.

    Questions keep their input order. A question without a node is returned
    unchanged; one with a node takes the node's payload (the editor may
    have changed text or options) and a freshly encoded rule.
    Calling this twice on the same input gives byte-identical rules.
    """
    question_ids: Dict[str, QuestionId] = {node_id(q.id): q.id for q in questions}
    nodes_by_id = {n.id: n for n in nodes}
    outgoing: Dict[str, List[EditorEdge]] = {}
    for e in edges:
        outgoing.setdefault(e.source, []).append(e)

    updated: List[Question] = []
    for q in questions:
        n = nodes_by_id.get(node_id(q.id))
        if n is None:
            updated.append(q)
            continue
        rule = _rule_from_edges(n, outgoing.get(n.id, []), question_ids, diagnostics)
        updated.append(n.question.with_rule(encode_rule(rule)))
    return updated


def changed_questions(before: Sequence[Question], after: Sequence[Question]) -> List[QuestionId]:
    """Ids of questions in `after` that differ from their `before` version."""
    previous = {q.id: q for q in before}
    return [q.id for q in after if previous.get(q.id) != q]


def save_editable_graph(
    survey_id: Any,
    editable: EditableGraph,
    questions: Sequence[Question],
    store: QuestionStore,
) -> List[Question]:
    """
    Persist the editor state through a QuestionStore.

    Only questions whose content or rule changed are sent. The editable
    graph is never modified, so a failed save can simply be retried.

    Returns:
        The full updated question list

    Raises:
        EditorSaveError: The store rejected the save
    """
    updated = from_editable_graph(editable.nodes, editable.edges, questions)
    changed = set(changed_questions(questions, updated))
    if not changed:
        logger.debug("Survey %s: nothing to save", survey_id)
        return updated

    to_save = [q for q in updated if q.id in changed]
    try:
        store.save_questions(survey_id, to_save)
    except Exception as e:
        logger.error("Saving survey %s flow failed: %s", survey_id, e)
        raise EditorSaveError(f"Failed to save survey flow: {e}") from e
    logger.info("Survey %s: saved %d changed question(s)", survey_id, len(to_save))
    return updated


__all__ = [
    "EditorNode",
    "EditorEdge",
    "EditableGraph",
    "edge_id",
    "node_id",
    "option_handle",
    "to_editable_graph",
    "from_editable_graph",
    "changed_questions",
    "save_editable_graph",
    "DEFAULT_HANDLE",
]
