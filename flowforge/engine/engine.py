from typing import Dict, Any, Optional, List, Iterable, Union
from enum import Enum
import logging
import uuid

from flowforge.core import config

from .errors import NodeExecutionError, WorkflowConfigurationError, WorkflowExecutionError
from .evaluator import NodeEvaluator
from .graph import WorkflowGraph
from .models import BaseNode, Connection, ExecutionLog, RunContext, StepResult
from .runner import NodeRunner

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    HALTED = "halted"


class HaltReason(str, Enum):
    COMPLETED = "completed"
    STEP_BUDGET_EXHAUSTED = "step_budget_exhausted"
    FAILED = "failed"
    NO_START_NODE = "no_start_node"


class WorkflowEngine:
    """Core workflow execution engine"""

    def __init__(
        self,
        nodes: Iterable[Union[BaseNode, Dict[str, Any]]],
        edges: Iterable[Union[Connection, Dict[str, Any]]],
        evaluator: Optional[NodeEvaluator] = None,
        max_steps: Optional[int] = None,
    ):
        """
        Snapshot the graph for the runs of this engine.

        Nodes and edges may be model instances or their editor JSON dicts.
        The evaluator carries the collaborators (interpreter, HTTP transport,
        clipboard, timer); a default one is built when none is given.
        """
        self.graph = WorkflowGraph(nodes, edges)
        self.evaluator = evaluator or NodeEvaluator()
        self.runner = NodeRunner(self.graph, self.evaluator)
        self.max_steps = config.MAX_STEPS if max_steps is None else max_steps

        self.state = RunState.NOT_STARTED
        self.halt_reason: Optional[HaltReason] = None
        self.step_count = 0
        self.run_id: Optional[str] = None

    async def execute(self) -> List[ExecutionLog]:
        """
        Walk the graph from the START node and return the trace.

        Raises WorkflowConfigurationError when there is no START node and
        WorkflowExecutionError when a node fails fatally; both carry the
        trace collected so far. Running out of steps is not an error.
        """
        trace: List[ExecutionLog] = []
        context = RunContext(run_id=str(uuid.uuid4()))
        self.run_id = context.run_id
        self.step_count = 0
        self.halt_reason = None

        start = self.graph.find_start_node()
        if start is None:
            self._halt(HaltReason.NO_START_NODE)
            logger.error(f"[{context.run_id}] No START node found")
            raise WorkflowConfigurationError("No START node found.", trace=trace)

        self.state = RunState.RUNNING
        logger.info(f"[{context.run_id}] Run started at {start.id}")

        current_node: Optional[str] = start.id
        current_input: Any = {}
        incoming_edge: Optional[Connection] = None

        # Continue until no next node or the step budget is spent
        while current_node and self.step_count < self.max_steps:
            try:
                result = await self.step(current_node, current_input, incoming_edge, context)
            except NodeExecutionError as e:
                trace.extend(e.entries)
                self._halt(HaltReason.FAILED)
                logger.error(f"[{context.run_id}] Run failed at {e.node_id}: {e.message}")
                raise WorkflowExecutionError(e.message, node_id=e.node_id, trace=trace) from e

            trace.extend(result.entries)
            current_input = result.output
            # Iteration mode comes from the first edge joining the two nodes
            incoming_edge = (
                self.graph.find_edge_between(current_node, result.next_node_id)
                if result.next_node_id else None
            )
            current_node = result.next_node_id
            self.step_count += 1

        if current_node:
            self._halt(HaltReason.STEP_BUDGET_EXHAUSTED)
            logger.warning(
                f"[{context.run_id}] Step budget of {self.max_steps} exhausted before {current_node}"
            )
        else:
            self._halt(HaltReason.COMPLETED)
            logger.info(f"[{context.run_id}] Run completed in {self.step_count} steps")

        return trace

    async def step(
        self,
        node_id: str,
        input: Any,
        incoming_edge: Optional[Connection],
        context: RunContext,
    ) -> StepResult:
        """Execute a single node hop; returns the next hop and its trace entries."""
        return await self.runner.run(node_id, input, incoming_edge, context)

    def validate(self) -> List[str]:
        """Structural issues of the graph, see WorkflowGraph.validate."""
        return self.graph.validate()

    def _halt(self, reason: HaltReason) -> None:
        self.state = RunState.HALTED
        self.halt_reason = reason
