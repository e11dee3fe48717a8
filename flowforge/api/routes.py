from fastapi import APIRouter, HTTPException, Response
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
import logging

from flowforge.engine.engine import WorkflowEngine
from flowforge.engine.errors import WorkflowError, WorkflowExecutionError
from flowforge.engine.evaluator import NodeEvaluator
from flowforge.engine.graph import WorkflowGraph
from flowforge.engine.models import Connection, ExecutionLog, Workflow, WorkflowNode
from flowforge.tools.transport import HttpTransport, TransportError
from flowforge.workflows.samples import create_sample_workflow
from flowforge.workflows.store import WorkflowStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Global instances
store = WorkflowStore()
relay_transport = HttpTransport()


def build_evaluator() -> NodeEvaluator:
    """Fresh evaluator per run so no collaborator state leaks between runs."""
    return NodeEvaluator()


# Request/Response models
class GraphPayload(BaseModel):
    nodes: List[WorkflowNode] = []
    edges: List[Connection] = []


class RunResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    run_id: Optional[str] = Field(default=None, alias="runId")
    status: str
    halt_reason: Optional[str] = Field(default=None, alias="haltReason")
    steps: int
    error: Optional[str] = None
    failed_node: Optional[str] = Field(default=None, alias="failedNode")
    trace: List[ExecutionLog]


class ValidateResponse(BaseModel):
    valid: bool
    issues: List[str]


class ProxyEnvelope(BaseModel):
    url: str
    method: str = "GET"
    headers: Dict[str, str] = {}
    body: Optional[str] = None


async def execute_graph(nodes: list, edges: list) -> RunResponse:
    """Run a graph and fold success or failure into one response."""
    engine = WorkflowEngine(nodes, edges, evaluator=build_evaluator())
    error = None
    failed_node = None
    try:
        trace = await engine.execute()
        status = "completed"
    except WorkflowError as e:
        trace = e.trace
        status = "failed"
        error = e.message
        if isinstance(e, WorkflowExecutionError):
            failed_node = e.node_id

    return RunResponse(
        run_id=engine.run_id,
        status=status,
        halt_reason=engine.halt_reason.value if engine.halt_reason else None,
        steps=engine.step_count,
        error=error,
        failed_node=failed_node,
        trace=trace
    )


@router.post("/workflows", response_model=Workflow)
async def save_workflow(workflow: Workflow):
    """Create or replace a workflow definition"""
    return store.save(workflow)


@router.get("/workflows")
async def list_workflows():
    """List stored workflows"""
    return {
        "workflows": [
            {
                "id": workflow.id,
                "name": workflow.name,
                "node_count": len(workflow.nodes),
                "edge_count": len(workflow.edges),
                "lastModified": workflow.last_modified
            }
            for workflow in store.list()
        ],
        "stats": store.stats()
    }


@router.get("/workflows/{workflow_id}", response_model=Workflow)
async def get_workflow(workflow_id: str):
    """Fetch a stored workflow"""
    workflow = store.get(workflow_id)
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


@router.delete("/workflows/{workflow_id}")
async def delete_workflow(workflow_id: str):
    """Delete a stored workflow"""
    if not store.delete(workflow_id):
        raise HTTPException(status_code=404, detail="Workflow not found")
    return {"message": f"Workflow '{workflow_id}' deleted"}


@router.post("/workflows/{workflow_id}/run", response_model=RunResponse)
async def run_stored_workflow(workflow_id: str):
    """Run a stored workflow and return its trace"""
    workflow = store.get(workflow_id)
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return await execute_graph(workflow.nodes, workflow.edges)


@router.post("/run", response_model=RunResponse)
async def run_graph(payload: GraphPayload):
    """
    Run an inline graph.

    A failed run still answers 200: the trace up to and including the failing
    node is the result, and `status` tells the caller the run stopped.
    """
    return await execute_graph(payload.nodes, payload.edges)


@router.post("/validate", response_model=ValidateResponse)
async def validate_graph(payload: GraphPayload):
    """Report structural problems of an inline graph"""
    issues = WorkflowGraph(payload.nodes, payload.edges).validate()
    return ValidateResponse(valid=not issues, issues=issues)


@router.get("/node-types")
async def list_node_types():
    """List node types the engine can evaluate"""
    return {"node_types": build_evaluator().list_handlers()}


@router.post("/proxy")
async def proxy_request(envelope: ProxyEnvelope):
    """
    Relay an outbound call for REQUEST nodes with `useProxy` set.

    The upstream status and body are passed back unchanged.
    """
    method = envelope.method.upper()
    body = None if method in ("GET", "HEAD") else envelope.body
    try:
        upstream = await relay_transport.send(method, envelope.url, envelope.headers, body)
    except TransportError as e:
        logger.warning(f"Proxy call to {envelope.url} failed: {e}")
        raise HTTPException(status_code=502, detail=f"Upstream request failed: {e}")

    return Response(
        content=upstream.text,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "text/plain")
    )


@router.post("/demo/sample", response_model=RunResponse)
async def demo_sample():
    """Run the built-in sample workflow"""
    sample = create_sample_workflow()
    return await execute_graph(sample.nodes, sample.edges)
