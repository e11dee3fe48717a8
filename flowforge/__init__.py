"""
FlowForge

Execution engine for visual workflows: a graph of typed nodes (start, end,
HTTP request, script, condition, delay, clipboard) joined by edges.
"""

__version__ = "1.0.0"

from .engine.engine import WorkflowEngine
from .engine.evaluator import NodeEvaluator
from .engine.models import Workflow, Connection, ExecutionLog, NodeType
from .engine.errors import WorkflowError, WorkflowConfigurationError, WorkflowExecutionError

__all__ = [
    "WorkflowEngine",
    "NodeEvaluator",
    "Workflow",
    "Connection",
    "ExecutionLog",
    "NodeType",
    "WorkflowError",
    "WorkflowConfigurationError",
    "WorkflowExecutionError"
]
