"""Pydantic schemas for rule graphs, rule documents and evaluation results."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


# =============================================================================
# Expression Schemas
# =============================================================================


class Operand(BaseModel):
    """One step of an operand chain on either side of an expression."""

    model_config = ConfigDict(extra="allow")

    op1: str | int | float | None = Field(
        default=None,
        description="Attribute name, literal, special-function descriptor, or null to reuse the previous value",
    )
    operator: str | None = Field(default=None, description="Arithmetic operator (+, -, *, /)")
    op2: str | int | float | None = Field(default=None, description="Literal right operand of operator")


class Expression(BaseModel):
    """A single comparison between two operand chains."""

    model_config = ConfigDict(extra="allow")

    lhs: list[Operand] = Field(default_factory=list, description="Left-hand operand chain")
    comparator: str = Field(description="One of >, <, ==, !=, >=, <=")
    rhs: list[Operand] = Field(default_factory=list, description="Right-hand operand chain")


class Condition(BaseModel):
    """One row of a condition node."""

    model_config = ConfigDict(extra="allow")

    expression: Expression = Field(description="Comparison evaluated for this row")
    boolean: str | None = Field(
        default=None, description="Logical operator (&&, ||) linking this row to the next"
    )


# =============================================================================
# Node Schemas
# =============================================================================


class NodeData(BaseModel):
    """Payload shared by every node: the trace annotation fields."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    computed: Any = Field(default=None, description="Outcome label written by the trace")
    color: str | None = Field(default=None, description="Trace colour")
    result: Any = Field(default=None, description="Per-condition results written by the trace")


class AttributeNodeData(NodeData):
    """Attribute node payload; carries no evaluation semantics."""


class ConditionNodeData(NodeData):
    """Condition node payload."""

    conditions: list[Condition] | None = Field(default=None, description="Condition rows")
    rule: str | None = Field(default=None, description="Aggregation mode: Any, All or unset")


class OutputField(BaseModel):
    """A single derived output value."""

    model_config = ConfigDict(extra="allow")

    field: str = Field(description="Output attribute name")
    value: Any = Field(default=None, description="Output value")


class OutputNodeData(NodeData):
    """Output node payload."""

    output_fields: list[OutputField] = Field(
        default_factory=list, alias="outputFields", description="Fields produced when reached"
    )


class BaseNode(BaseModel):
    """Fields common to every node variant."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(description="Node id, unique within the graph")

    @model_validator(mode="after")
    def _always_dump_type(self) -> BaseNode:
        # The type tag selects the variant on the way back in.
        self.model_fields_set.update(("type", "data"))
        return self


class AttributeNode(BaseNode):
    """Visual entry node listing the rule's input attributes."""

    type: Literal["attributeNode"] = "attributeNode"
    data: AttributeNodeData = Field(default_factory=AttributeNodeData)


class ConditionNode(BaseNode):
    """Branching node evaluated against the input record."""

    type: Literal["conditionalNode", "conditionNode"] = "conditionalNode"
    data: ConditionNodeData = Field(default_factory=ConditionNodeData)


class OutputNode(BaseNode):
    """Terminal node producing output fields."""

    type: Literal["outputNode"] = "outputNode"
    data: OutputNodeData = Field(default_factory=OutputNodeData)


Node = Annotated[
    Union[AttributeNode, ConditionNode, OutputNode],
    Field(discriminator="type"),
]


# =============================================================================
# Graph Schemas
# =============================================================================


class Edge(BaseModel):
    """Directed edge between two nodes."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(description="Edge id, unique within the graph")
    source: str = Field(description="Source node id")
    target: str = Field(description="Target node id")
    source_handle: str | None = Field(
        default=None, alias="sourceHandle", description="Outcome label the edge is taken under"
    )
    target_handle: str | None = Field(default=None, alias="targetHandle")
    animated: bool | None = Field(default=None, description="Set by the trace on visited edges")
    style: dict[str, Any] | None = Field(default=None, description="Stroke style set by the trace")
    marker_end: dict[str, Any] | str | None = Field(
        default=None, alias="markerEnd", description="Arrow marker set by the trace"
    )


class Graph(BaseModel):
    """A complete rule definition: nodes plus directed edges."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> Graph:
        for kind, items in (("node", self.nodes), ("edge", self.edges)):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {kind} id: {item.id}")
                seen.add(item.id)
        return self

    @model_validator(mode="after")
    def _always_dump_lists(self) -> Graph:
        self.model_fields_set.update(("nodes", "edges"))
        return self

    @classmethod
    def from_json(cls, text: str | bytes) -> Graph:
        """Parse a graph from its editor JSON form."""
        return cls.model_validate_json(text)

    def to_json(self, indent: int | None = None) -> str:
        """Serialize back to the editor JSON form."""
        return self.model_dump_json(by_alias=True, exclude_unset=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def get_node(self, node_id: str) -> AttributeNode | ConditionNode | OutputNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def entry_edge(self, root_id: str) -> Edge | None:
        """Return the first edge leaving the root marker."""
        for edge in self.edges:
            if edge.source == root_id:
                return edge
        return None

    def outgoing_edges(self, node_id: str, handle: str | None = None) -> list[Edge]:
        """Edges leaving node_id, optionally restricted to one source handle."""
        return [
            e
            for e in self.edges
            if e.source == node_id and (handle is None or e.source_handle == handle)
        ]


# =============================================================================
# Rule Document Schemas
# =============================================================================


class RuleDefinition(BaseModel):
    """A stored rule as supplied by rule storage."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = Field(description="Rule title")
    description: str | None = Field(default=None, description="Rule description")
    input_attributes: list[Any] = Field(
        default_factory=list, alias="inputAttributes", description="Input attribute names"
    )
    output_attributes: list[Any] = Field(
        default_factory=list, alias="outputAttributes", description="Output attribute names"
    )
    condition: Graph = Field(default_factory=Graph, description="Rule graph")
    tested: bool = Field(default=False, description="Whether the rule has been test-evaluated")

    @field_validator("condition", mode="before")
    @classmethod
    def _parse_condition(cls, value: Any) -> Any:
        # Rule storage keeps the graph as a JSON string.
        if isinstance(value, (str, bytes)):
            return json.loads(value) if value.strip() else {}
        if value is None:
            return {}
        return value

    @field_serializer("condition")
    def _serialize_condition(self, condition: Graph) -> str:
        return condition.to_json()


# =============================================================================
# Evaluation Result Schemas
# =============================================================================


class EvaluationResult(BaseModel):
    """Outcome of evaluating one input record against a graph."""

    output_fields: list[OutputField] = Field(
        default_factory=list, description="Output fields of the reached output node"
    )
    annotated_graph: Graph = Field(description="Copy of the graph painted with the taken path")
    visited_nodes: list[str] = Field(
        default_factory=list, description="Ids of nodes evaluated along the path, in order"
    )
    matched: bool = Field(default=False, description="Whether an output node was reached")


class RuleTestReport(BaseModel):
    """Result of test-evaluating a stored rule."""

    rule: RuleDefinition = Field(description="Rule with its condition replaced by the annotated graph")
    output: list[OutputField] | None = Field(
        default=None, description="Output fields, or None when no output node was reached"
    )


class BatchRow(BaseModel):
    """One evaluated record from a batch run."""

    row_index: int = Field(description="Position of the record in the batch")
    values: dict[str, Any] = Field(
        default_factory=dict, description="Input record with the first output field written in"
    )
    output_fields: list[OutputField] = Field(default_factory=list)
    matched: bool = Field(default=False)
