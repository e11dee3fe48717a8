from typing import Dict, Any, List, Optional, Union, Literal, Annotated
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from dataclasses import dataclass, field
from enum import Enum
import time


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


class NodeType(str, Enum):
    START = "START"
    END = "END"
    REQUEST = "REQUEST"
    SCRIPT = "SCRIPT"
    CONDITION = "CONDITION"
    DELAY = "DELAY"
    CLIPBOARD = "CLIPBOARD"


class BranchType(str, Enum):
    DEFAULT = "default"
    TRUE = "true"
    FALSE = "false"


class IterationMode(str, Enum):
    DEFAULT = "default"
    MAP = "map"
    FOR_EACH = "forEach"


class LogStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Position(BaseModel):
    """Canvas position, kept for round-tripping editor documents"""
    x: float = 0
    y: float = 0


class NodeData(BaseModel):
    """Fields shared by every node type"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    label: str = ""


class StartData(NodeData):
    init_value: Optional[Any] = Field(default=None, alias="initValue")


class RequestData(NodeData):
    url: str = ""
    method: str = "GET"
    headers: Optional[Union[str, Dict[str, Any]]] = None
    body: Optional[Any] = None
    use_proxy: bool = Field(default=False, alias="useProxy")


class ScriptData(NodeData):
    code: str = ""


class ConditionData(NodeData):
    condition: str = ""


class DelayData(NodeData):
    delay_ms: Optional[float] = Field(default=None, alias="delayMs")


class BaseNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    position: Position = Field(default_factory=Position)


class StartNode(BaseNode):
    type: Literal["START"] = "START"
    data: StartData = Field(default_factory=StartData)


class EndNode(BaseNode):
    type: Literal["END"] = "END"
    data: NodeData = Field(default_factory=NodeData)


class RequestNode(BaseNode):
    type: Literal["REQUEST"] = "REQUEST"
    data: RequestData = Field(default_factory=RequestData)


class ScriptNode(BaseNode):
    type: Literal["SCRIPT"] = "SCRIPT"
    data: ScriptData = Field(default_factory=ScriptData)


class ConditionNode(BaseNode):
    type: Literal["CONDITION"] = "CONDITION"
    data: ConditionData = Field(default_factory=ConditionData)


class DelayNode(BaseNode):
    type: Literal["DELAY"] = "DELAY"
    data: DelayData = Field(default_factory=DelayData)


class ClipboardNode(BaseNode):
    type: Literal["CLIPBOARD"] = "CLIPBOARD"
    data: NodeData = Field(default_factory=NodeData)


# One variant per node type, selected by the "type" tag
WorkflowNode = Annotated[
    Union[StartNode, EndNode, RequestNode, ScriptNode, ConditionNode, DelayNode, ClipboardNode],
    Field(discriminator="type"),
]

_node_adapter = TypeAdapter(WorkflowNode)


def parse_node(raw: Dict[str, Any]) -> BaseNode:
    """Build the typed node variant from its editor JSON."""
    return _node_adapter.validate_python(raw)


class Connection(BaseModel):
    """Directed edge between two nodes"""
    id: str
    source: str
    target: str
    type: BranchType = BranchType.DEFAULT
    iteration: IterationMode = IterationMode.DEFAULT

    @field_validator("type", "iteration", mode="before")
    @classmethod
    def _default_when_missing(cls, value: Any) -> Any:
        # The editor omits or nulls these on plain edges
        return "default" if value in (None, "") else value


class Workflow(BaseModel):
    """Persisted workflow document"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = "My Workflow"
    nodes: List[WorkflowNode] = []
    edges: List[Connection] = []
    last_modified: int = Field(default_factory=now_ms, alias="lastModified")


class ExecutionLog(BaseModel):
    """Trace entry for one node step"""
    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(alias="nodeId")
    status: LogStatus
    output: Any = None
    timestamp: int = Field(default_factory=now_ms)
    logs: List[str] = []


@dataclass
class BranchDecision:
    """Result of a CONDITION node: which edge to take and what to forward"""
    value: bool
    original_input: Any


@dataclass
class NodeOutcome:
    """What a node handler produced for a single input"""
    output: Any
    status: LogStatus = LogStatus.SUCCESS
    messages: List[str] = field(default_factory=list)


@dataclass
class RunContext:
    """Per-run values visible to node handlers"""
    run_id: str
    started_at: int = field(default_factory=now_ms)


@dataclass
class StepResult:
    """Outcome of one driver step: where to go next and with what"""
    next_node_id: Optional[str]
    output: Any
    edge: Optional[Connection] = None
    entries: List[ExecutionLog] = field(default_factory=list)
