"""
Graphviz DOT diagram generator for survey flows.

Converts a FlowGraph into Graphviz DOT format for visualization.

Supports two modes:
    - SIMPLE: Question flow only (branch edges labelled with their option)
    - DETAILED: Adds answer kind, required flag, options and the dashed
      linear-order fallback edges the traversal engine would take
"""

from enum import Enum
from typing import List

from surveyflow.graph import FlowGraph
from surveyflow.model import EdgeKind, Question, QuestionId


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"
    DETAILED = "detailed"


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    # Backslashes first, then quotes; newlines become DOT line breaks
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _dot_id(question_id: QuestionId) -> str:
    return _escape_dot_string(f"q{question_id}")


def _node_label(question: Question, mode: DotMode) -> str:
    label = question.text or str(question.id)
    if len(label) > 40:
        label = label[:37] + "..."
    if mode == DotMode.DETAILED:
        info = [question.kind.value + (" *" if question.required else "")]
        if question.options:
            info.append(" / ".join(question.options))
        label = label + "\n(" + "\n".join(info) + ")"
    return label


def generate_dot(graph: FlowGraph, mode: DotMode = DotMode.SIMPLE) -> str:
    """
    Generate Graphviz DOT format for a flow graph.

    Args:
        graph: FlowGraph to visualize
        mode: Visualization mode (SIMPLE, DETAILED)

    Returns:
        String containing DOT graph definition
    """
    lines: List[str] = []

    lines.append("digraph survey {")
    lines.append("  rankdir=TB;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    entry = graph.entry_point()
    if entry is not None:
        lines.append('  START [shape=ellipse, fillcolor=lightgreen, label="START"];')

    for q in graph.questions:
        label = _escape_dot_string(_node_label(q, mode))
        lines.append(f"  {_dot_id(q.id)} [label={label}];")

    if entry is not None:
        lines.append(f"  START -> {_dot_id(entry)};")

    for e in graph.edges:
        attrs = ""
        if e.kind is EdgeKind.BRANCH:
            attrs = f" [label={_escape_dot_string(e.option)}, color=deeppink]"
        lines.append(f"  {_dot_id(e.from_id)} -> {_dot_id(e.to_id)}{attrs};")

    if mode == DotMode.DETAILED:
        for q in graph.questions:
            if graph.neighbors(q.id, EdgeKind.DEFAULT) is not None:
                continue
            linear = graph.linear_successor(q.id)
            if linear is not None:
                lines.append(f"  {_dot_id(q.id)} -> {_dot_id(linear)} [style=dashed, color=grey];")

    lines.append("}")

    return "\n".join(lines)


def save_dot_file(graph: FlowGraph, filename: str, mode: DotMode = DotMode.SIMPLE) -> None:
    """
    Generate DOT and save to file.

    Args:
        graph: FlowGraph to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
    """
    dot = generate_dot(graph, mode=mode)
    with open(filename, 'w') as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
