"""
Core workflow engine components

This module contains the execution engine, the node evaluator and the graph model.
"""

from .engine import WorkflowEngine, RunState, HaltReason
from .evaluator import NodeEvaluator, NodeEvaluationError
from .graph import WorkflowGraph
from .runner import NodeRunner
from .errors import (
    WorkflowError,
    WorkflowConfigurationError,
    WorkflowExecutionError,
    NodeExecutionError
)
from .models import (
    NodeType,
    BranchType,
    IterationMode,
    LogStatus,
    Connection,
    Workflow,
    WorkflowNode,
    ExecutionLog,
    BranchDecision,
    NodeOutcome,
    RunContext,
    StepResult,
    parse_node
)

__all__ = [
    "WorkflowEngine",
    "RunState",
    "HaltReason",
    "NodeEvaluator",
    "NodeEvaluationError",
    "WorkflowGraph",
    "NodeRunner",
    "WorkflowError",
    "WorkflowConfigurationError",
    "WorkflowExecutionError",
    "NodeExecutionError",
    "NodeType",
    "BranchType",
    "IterationMode",
    "LogStatus",
    "Connection",
    "Workflow",
    "WorkflowNode",
    "ExecutionLog",
    "BranchDecision",
    "NodeOutcome",
    "RunContext",
    "StepResult",
    "parse_node"
]
