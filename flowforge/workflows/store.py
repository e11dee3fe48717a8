from typing import Dict, List, Optional
import logging

from flowforge.engine.models import Workflow, now_ms

logger = logging.getLogger(__name__)


class WorkflowStore:
    """In-memory store of workflow definitions keyed by workflow id"""

    def __init__(self):
        self.workflows: Dict[str, Workflow] = {}

    def save(self, workflow: Workflow) -> Workflow:
        """Create or replace a workflow and stamp its modification time."""
        stored = workflow.model_copy(update={"last_modified": now_ms()})
        self.workflows[stored.id] = stored
        logger.info(f"Saved workflow {stored.id} ({len(stored.nodes)} nodes, {len(stored.edges)} edges)")
        return stored

    def get(self, workflow_id: str) -> Optional[Workflow]:
        return self.workflows.get(workflow_id)

    def delete(self, workflow_id: str) -> bool:
        return self.workflows.pop(workflow_id, None) is not None

    def list(self) -> List[Workflow]:
        return sorted(self.workflows.values(), key=lambda w: w.last_modified, reverse=True)

    def stats(self) -> Dict[str, int]:
        return {
            "workflows": len(self.workflows),
            "nodes": sum(len(w.nodes) for w in self.workflows.values()),
            "edges": sum(len(w.edges) for w in self.workflows.values()),
        }
