"""
Workflow definitions

In-memory workflow storage and the built-in sample workflow.
"""

from .samples import create_sample_workflow, INITIAL_CODE
from .store import WorkflowStore

__all__ = [
    "create_sample_workflow",
    "INITIAL_CODE",
    "WorkflowStore"
]
