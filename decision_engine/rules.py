"""Decision engine walking a rule graph from its entry edge to an output node."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from config.settings import get_settings
from decision_engine.annotator import TraceAnnotator, TraceOutcome
from decision_engine.conditions import ConditionEvaluator
from decision_engine.errors import GraphCycleDetected, GraphMalformed, TraversalLimitExceeded
from models.schemas import (
    AttributeNode,
    BatchRow,
    ConditionNode,
    EvaluationResult,
    Graph,
    OutputField,
    OutputNode,
    RuleDefinition,
    RuleTestReport,
)

logger = structlog.get_logger(__name__)

YES = "yes"
NO = "no"

GraphNode = AttributeNode | ConditionNode | OutputNode


class DecisionEngine:
    """Deterministic evaluator for authored rule graphs."""

    # ==========================================================================
    # Single Record Evaluation
    # ==========================================================================

    @staticmethod
    def evaluate(
        graph: Graph,
        input_record: dict[str, Any],
        root_id: str | None = None,
        now: datetime | None = None,
        max_steps: int | None = None,
    ) -> EvaluationResult:
        """
        Evaluate a graph against one input record.

        Rules:
        - Start at the target of the first edge leaving root_id
        - Condition node: follow edges whose sourceHandle is "yes"/"no" per its outcome
        - One candidate: advance; several: first candidate whose own condition
          passes wins, the rest are painted as not taken
        - No candidate: stop with empty output (not an error)
        - Output node: stop and return its outputFields

        Raises GraphMalformed when there is no entry edge or its target is missing.
        """
        settings = get_settings()
        root_id = root_id if root_id is not None else settings.root_node_id
        max_steps = max_steps if max_steps is not None else settings.max_traversal_steps
        now = now or datetime.now(timezone.utc)
        trace = TraceAnnotator()

        entry = graph.entry_edge(root_id)
        if entry is None:
            logger.warning("graph_missing_entry_edge", root_id=root_id)
            raise GraphMalformed(f"No edge leaves the root node '{root_id}'", node_id=root_id)

        node = graph.get_node(entry.target)
        if node is None:
            logger.warning("graph_dangling_entry_edge", edge_id=entry.id, target=entry.target)
            raise GraphMalformed(
                f"Entry edge '{entry.id}' points at unknown node '{entry.target}'",
                node_id=entry.target,
            )

        DecisionEngine._mark_entry(graph, node, entry.id, trace)
        logger.debug("evaluation_started", entry_node=node.id, nodes=len(graph.nodes))

        visited: list[str] = []
        output_fields: list[OutputField] = []
        matched = False

        while True:
            if isinstance(node, OutputNode):
                trace.mark_node(node.id, TraceOutcome.REACHED)
                visited.append(node.id)
                output_fields = list(node.data.output_fields)
                matched = True
                break

            if node.id in visited:
                raise GraphCycleDetected(f"Node '{node.id}' was reached twice", node_id=node.id)
            if len(visited) >= max_steps:
                raise TraversalLimitExceeded(
                    f"Traversal exceeded {max_steps} steps", node_id=node.id, limit=max_steps
                )
            visited.append(node.id)

            candidates = DecisionEngine._branch(graph, node, input_record, now, trace)
            next_node = DecisionEngine._select_candidate(
                graph, node, candidates, input_record, now, trace
            )
            if next_node is None:
                logger.info("evaluation_no_matching_branch", node_id=node.id)
                break
            node = next_node

        logger.info(
            "evaluation_finished",
            matched=matched,
            path=visited,
            outputs=[f.field for f in output_fields],
        )
        return EvaluationResult(
            output_fields=output_fields,
            annotated_graph=trace.apply(graph),
            visited_nodes=visited,
            matched=matched,
        )

    @staticmethod
    def _mark_entry(graph: Graph, first: GraphNode, entry_edge_id: str, trace: TraceAnnotator) -> None:
        """Paint attribute nodes satisfied and the edges into the first node taken."""
        trace.mark_edge(entry_edge_id, TraceOutcome.SATISFIED)
        for candidate in graph.nodes:
            if not isinstance(candidate, AttributeNode):
                continue
            trace.mark_node(candidate.id, TraceOutcome.SATISFIED, True)
            for edge in graph.outgoing_edges(candidate.id):
                if edge.target == first.id:
                    trace.mark_edge(edge.id, TraceOutcome.SATISFIED)

    @staticmethod
    def _branch(
        graph: Graph,
        node: GraphNode,
        input_record: dict[str, Any],
        now: datetime,
        trace: TraceAnnotator,
    ) -> list[GraphNode]:
        """Evaluate the current node and return the targets of the edges it takes."""
        if isinstance(node, AttributeNode):
            edges = graph.outgoing_edges(node.id)
            trace.mark_node(node.id, TraceOutcome.SATISFIED, True)
        else:
            passed, results = ConditionEvaluator.evaluate_conditions(
                node.data.conditions, node.data.rule, input_record, now
            )
            label = YES if passed else NO
            trace.mark_node(
                node.id, TraceOutcome.SATISFIED if passed else TraceOutcome.UNSATISFIED, results
            )
            edges = graph.outgoing_edges(node.id, handle=label)
            if not node.data.conditions and not edges:
                raise GraphMalformed(
                    f"Condition node '{node.id}' has no conditions and no '{label}' edge",
                    node_id=node.id,
                )
            logger.debug("node_evaluated", node_id=node.id, outcome=label, results=results)

        candidates: list[GraphNode] = []
        for edge in edges:
            trace.mark_edge(edge.id, TraceOutcome.SATISFIED)
            target = graph.get_node(edge.target)
            if target is not None:
                candidates.append(target)
        return candidates

    @staticmethod
    def _select_candidate(
        graph: Graph,
        node: GraphNode,
        candidates: list[GraphNode],
        input_record: dict[str, Any],
        now: datetime,
        trace: TraceAnnotator,
    ) -> GraphNode | None:
        """
        Pick the next node among the branch targets.

        With several targets every condition candidate is evaluated; the first
        that passes is selected and every failing one is painted not taken,
        together with its inbound edge from the current node.
        """
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        selected: GraphNode | None = None
        for candidate in candidates:
            if isinstance(candidate, ConditionNode):
                passed, results = ConditionEvaluator.evaluate_conditions(
                    candidate.data.conditions, candidate.data.rule, input_record, now
                )
            else:
                passed, results = True, []

            if passed:
                if selected is None:
                    selected = candidate
                continue

            logger.debug("fan_out_candidate_rejected", node_id=candidate.id, results=results)
            trace.mark_node(candidate.id, TraceOutcome.NOT_TAKEN, results)
            for edge in graph.outgoing_edges(node.id):
                if edge.target == candidate.id:
                    trace.mark_edge(edge.id, TraceOutcome.NOT_TAKEN)

        return selected

    # ==========================================================================
    # Rule Documents and Batches
    # ==========================================================================

    @staticmethod
    def test_rule(
        rule: RuleDefinition,
        input_record: dict[str, Any],
        root_id: str | None = None,
        now: datetime | None = None,
    ) -> RuleTestReport:
        """Evaluate a stored rule and return it with its annotated graph and tested flag set."""
        result = DecisionEngine.evaluate(rule.condition, input_record, root_id=root_id, now=now)
        tested_rule = rule.model_copy(update={"condition": result.annotated_graph, "tested": True})
        return RuleTestReport(
            rule=tested_rule,
            output=result.output_fields if result.matched else None,
        )

    @staticmethod
    def evaluate_batch(
        graph: Graph,
        records: list[dict[str, Any]],
        root_id: str | None = None,
        now: datetime | None = None,
    ) -> list[BatchRow]:
        """
        Evaluate many records against one graph.

        Each returned row is a copy of its record with the first output
        field's value written under that field's name.
        """
        now = now or datetime.now(timezone.utc)
        rows: list[BatchRow] = []

        for index, record in enumerate(records):
            result = DecisionEngine.evaluate(graph, record, root_id=root_id, now=now)
            values = dict(record)
            if result.output_fields:
                first = result.output_fields[0]
                values[first.field] = first.value
            rows.append(
                BatchRow(
                    row_index=index,
                    values=values,
                    output_fields=result.output_fields,
                    matched=result.matched,
                )
            )

        logger.info(
            "batch_finished",
            rows=len(rows),
            matched=sum(1 for r in rows if r.matched),
        )
        return rows
