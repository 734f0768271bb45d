"""Trace annotations painting the evaluated path onto a copy of the graph."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from models.schemas import Graph

TAKEN_COLOR = "#02ab40"
REJECTED_COLOR = "#FF0072"

EDGE_STROKE_WIDTH = 5
MARKER_TYPE = "arrowclosed"
MARKER_SIZE = 12


class TraceOutcome(str, Enum):
    """Semantic outcome of a visit."""

    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    NOT_TAKEN = "not-taken"
    REACHED = "reached"


class NodeAnnotation(BaseModel):
    """Visual state written into a node's data."""

    computed: Any = Field(description="Outcome label: yes, no or null; [true] on a reached output")
    color: str = Field(description="Node colour")
    result: Any = Field(default=None, description="Per-condition results")


class EdgeAnnotation(BaseModel):
    """Visual state written onto an edge."""

    animated: bool = True
    style: dict[str, Any] = Field(default_factory=dict)
    marker_end: dict[str, Any] = Field(default_factory=dict)


def _node_state(outcome: TraceOutcome) -> tuple[Any, str]:
    if outcome is TraceOutcome.SATISFIED:
        return "yes", TAKEN_COLOR
    if outcome is TraceOutcome.UNSATISFIED:
        return "no", TAKEN_COLOR
    if outcome is TraceOutcome.REACHED:
        return [True], TAKEN_COLOR
    return "null", REJECTED_COLOR


class TraceAnnotator:
    """
    Collects node and edge annotations during one traversal.

    The graph being evaluated is never touched; :meth:`apply` merges the
    collected annotations into a deep copy. Later writes for the same id
    replace earlier ones.
    """

    def __init__(self) -> None:
        self.node_annotations: dict[str, NodeAnnotation] = {}
        self.edge_annotations: dict[str, EdgeAnnotation] = {}

    def mark_node(
        self,
        node_id: str,
        outcome: TraceOutcome,
        result: Any = None,
    ) -> None:
        """Record a node visit."""
        computed, color = _node_state(outcome)
        self.node_annotations[node_id] = NodeAnnotation(computed=computed, color=color, result=result)

    def mark_edge(self, edge_id: str, outcome: TraceOutcome) -> None:
        """Record an edge as taken (green) or not taken (red)."""
        color = REJECTED_COLOR if outcome is TraceOutcome.NOT_TAKEN else TAKEN_COLOR
        self.edge_annotations[edge_id] = EdgeAnnotation(
            animated=True,
            style={"strokeWidth": EDGE_STROKE_WIDTH, "stroke": color},
            marker_end={
                "type": MARKER_TYPE,
                "width": MARKER_SIZE,
                "height": MARKER_SIZE,
                "color": color,
            },
        )

    def node_color(self, node_id: str) -> str | None:
        annotation = self.node_annotations.get(node_id)
        return annotation.color if annotation else None

    def edge_color(self, edge_id: str) -> str | None:
        annotation = self.edge_annotations.get(edge_id)
        return annotation.style.get("stroke") if annotation else None

    def apply(self, graph: Graph) -> Graph:
        """Return a deep copy of graph with every recorded annotation merged in."""
        annotated = graph.model_copy(deep=True)

        for node in annotated.nodes:
            node_annotation = self.node_annotations.get(node.id)
            if node_annotation is None:
                continue
            node.data.computed = node_annotation.computed
            node.data.color = node_annotation.color
            if node_annotation.result is not None:
                node.data.result = node_annotation.result

        for edge in annotated.edges:
            edge_annotation = self.edge_annotations.get(edge.id)
            if edge_annotation is None:
                continue
            edge.animated = edge_annotation.animated
            edge.style = dict(edge_annotation.style)
            edge.marker_end = dict(edge_annotation.marker_end)

        return annotated
