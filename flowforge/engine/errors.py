from typing import List, Optional

from .models import ExecutionLog


class WorkflowError(Exception):
    """Run-level failure. Always carries the trace collected before it."""

    def __init__(self, message: str, trace: Optional[List[ExecutionLog]] = None):
        super().__init__(message)
        self.message = message
        self.trace: List[ExecutionLog] = list(trace or [])


class WorkflowConfigurationError(WorkflowError):
    """The graph cannot be run at all (no START node)."""


class WorkflowExecutionError(WorkflowError):
    """A node failed fatally; the trace ends with its error entry."""

    def __init__(self, message: str, node_id: str, trace: Optional[List[ExecutionLog]] = None):
        super().__init__(message, trace)
        self.node_id = node_id


class NodeExecutionError(Exception):
    """Raised by the node runner after recording the failing entry."""

    def __init__(self, node_id: str, message: str, entries: Optional[List[ExecutionLog]] = None):
        super().__init__(message)
        self.node_id = node_id
        self.message = message
        self.entries: List[ExecutionLog] = list(entries or [])
