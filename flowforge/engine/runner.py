from typing import Any, List, Optional
import copy
import logging

from .errors import NodeExecutionError
from .evaluator import NodeEvaluator
from .graph import WorkflowGraph
from .models import (
    BaseNode, BranchDecision, BranchType, Connection, ExecutionLog, IterationMode,
    LogStatus, NodeOutcome, NodeType, RunContext, StepResult
)

logger = logging.getLogger(__name__)

ITERATING_MODES = (IterationMode.MAP, IterationMode.FOR_EACH)


class NodeRunner:
    """
    Runs one node for one driver step.

    The incoming edge decides whether the node sees the whole input or each
    element of an input list in turn (map / forEach). The runner then picks the
    outgoing edge and returns the trace entries for the step instead of
    appending to shared state, so every step can be tested on its own.
    """

    def __init__(self, graph: WorkflowGraph, evaluator: NodeEvaluator):
        self.graph = graph
        self.evaluator = evaluator

    async def run(
        self,
        node_id: str,
        input: Any,
        incoming_edge: Optional[Connection],
        context: RunContext,
    ) -> StepResult:
        node = self.graph.get_node(node_id)
        if node is None:
            logger.warning(f"[{context.run_id}] Node {node_id} not found, stopping")
            return StepResult(next_node_id=None, output=None)

        iterate = (
            incoming_edge is not None
            and incoming_edge.iteration in ITERATING_MODES
            and isinstance(input, list)
        )

        try:
            if iterate:
                output, entry = await self._run_iterated(node, input, incoming_edge.iteration, context)
                # Iterated conditions only aggregate booleans and never branch
                branch = None
            else:
                outcome = await self.evaluator.evaluate(node, input, context)
                output, entry, branch = self._single_entry(node, outcome)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"[{context.run_id}] {node.id}: {message}")
            entry = ExecutionLog(node_id=node.id, status=LogStatus.ERROR, output={"error": message})
            raise NodeExecutionError(node.id, message, entries=[entry]) from e

        edge = self._next_edge(node, branch)
        if branch is not None:
            # The boolean picked the edge; the data flowing on is the condition's input
            output = branch.original_input

        logger.info(f"[{context.run_id}] {node.id}: {entry.status.value} -> {edge.target if edge else 'end'}")
        return StepResult(
            next_node_id=edge.target if edge else None,
            output=output,
            edge=edge,
            entries=[entry],
        )

    async def _run_iterated(self, node: BaseNode, items: list, mode: IterationMode, context: RunContext):
        """Evaluate the node once per item, strictly in order."""
        results: List[Any] = []
        messages: List[str] = [f"Iterated {len(items)} items"]
        status = LogStatus.SUCCESS

        for index, item in enumerate(items):
            outcome = await self.evaluator.evaluate(node, item, context)
            value = outcome.output
            if isinstance(value, BranchDecision):
                value = value.value
            results.append(value)
            if outcome.status == LogStatus.ERROR:
                status = LogStatus.ERROR
            messages.extend(f"[{index}] {m}" for m in outcome.messages)

        output = items if mode == IterationMode.FOR_EACH else results
        entry = ExecutionLog(node_id=node.id, status=status, output=_snapshot(output), logs=messages)
        return output, entry

    def _single_entry(self, node: BaseNode, outcome: NodeOutcome):
        branch = outcome.output if isinstance(outcome.output, BranchDecision) else None
        recorded = {"result": branch.value} if branch is not None else outcome.output
        entry = ExecutionLog(
            node_id=node.id,
            status=outcome.status,
            output=_snapshot(recorded),
            logs=list(outcome.messages),
        )
        return outcome.output, entry, branch

    def _next_edge(self, node: BaseNode, branch: Optional[BranchDecision]) -> Optional[Connection]:
        if node.type == NodeType.END:
            return None
        if branch is not None:
            return self.graph.find_edge(node.id, BranchType.TRUE if branch.value else BranchType.FALSE)
        if node.type == NodeType.CONDITION:
            return self.graph.find_edge(node.id, BranchType.DEFAULT)
        edge = self.graph.find_edge(node.id, BranchType.DEFAULT)
        if edge is None:
            outgoing = self.graph.outgoing(node.id)
            edge = outgoing[0] if outgoing else None
        return edge


def _snapshot(value: Any) -> Any:
    """Deep copy of an output for the trace; uncopyable values are kept as-is."""
    try:
        return copy.deepcopy(value)
    except Exception:
        return value
