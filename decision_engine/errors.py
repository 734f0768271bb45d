"""Exceptions raised by the decision engine."""

from __future__ import annotations


class RuleEngineError(Exception):
    """Base exception for rule evaluation errors."""

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id


class GraphMalformed(RuleEngineError):
    """The graph cannot be evaluated: no entry edge, dangling entry, or a dead condition node."""


class GraphCycleDetected(GraphMalformed):
    """Traversal returned to a node it already evaluated."""


class TraversalLimitExceeded(GraphMalformed):
    """Traversal visited more nodes than the configured budget allows."""

    def __init__(self, message: str, node_id: str | None = None, limit: int = 0) -> None:
        super().__init__(message, node_id)
        self.limit = limit
