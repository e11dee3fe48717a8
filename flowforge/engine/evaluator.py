from typing import Dict, Any, Callable, Awaitable, Optional
import asyncio
import json
import logging

from flowforge.core import config
from flowforge.tools.interpreter import PythonInterpreter, ScriptConsole, EvaluationError
from flowforge.tools.transport import HttpTransport, TransportError
from flowforge.tools.clipboard import create_clipboard

from .models import (
    BaseNode, NodeType, NodeOutcome, BranchDecision, LogStatus, RunContext
)

logger = logging.getLogger(__name__)

Handler = Callable[[BaseNode, Any, RunContext], Awaitable[NodeOutcome]]


class NodeEvaluationError(Exception):
    """A node could not produce an output; fatal to the run."""


class NodeEvaluator:
    """Registry of per-node-type handlers plus the collaborators they use"""

    def __init__(
        self,
        interpreter=None,
        transport: Optional[HttpTransport] = None,
        clipboard=None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """Initialize with the default handler for every node type."""
        self.interpreter = interpreter or PythonInterpreter()
        self.transport = transport or HttpTransport()
        self.clipboard = clipboard if clipboard is not None else create_clipboard()
        self.sleep = sleep or asyncio.sleep
        self.handlers: Dict[NodeType, Handler] = {}
        self._register_default_handlers()

    def register(self, node_type: NodeType, handler: Handler) -> None:
        """Register (or replace) the handler for a node type."""
        self.handlers[NodeType(node_type)] = handler

    def get(self, node_type: NodeType) -> Handler:
        """Retrieve the handler for a node type."""
        node_type = NodeType(node_type)
        if node_type not in self.handlers:
            raise ValueError(f"No handler registered for node type '{node_type.value}'")
        return self.handlers[node_type]

    def list_handlers(self) -> list:
        """Get list of node types that can be evaluated."""
        return [t.value for t in self.handlers]

    def _register_default_handlers(self):
        self.register(NodeType.START, self.evaluate_start)
        self.register(NodeType.END, self.evaluate_end)
        self.register(NodeType.DELAY, self.evaluate_delay)
        self.register(NodeType.CLIPBOARD, self.evaluate_clipboard)
        self.register(NodeType.SCRIPT, self.evaluate_script)
        self.register(NodeType.REQUEST, self.evaluate_request)
        self.register(NodeType.CONDITION, self.evaluate_condition)

    async def evaluate(self, node: BaseNode, input: Any, context: RunContext) -> NodeOutcome:
        """Run one node against one input value."""
        return await self.get(node.type)(node, input, context)

    # Default node handlers

    async def evaluate_start(self, node, input, context: RunContext) -> NodeOutcome:
        """Seed the run from the node's init value; the incoming input is ignored."""
        init_value = node.data.init_value
        output: Dict[str, Any] = {"startTime": context.started_at}

        if init_value is None or init_value == "":
            return NodeOutcome(output=output)

        parsed = init_value
        if isinstance(init_value, str):
            try:
                parsed = json.loads(init_value)
            except ValueError:
                parsed = init_value  # Plain text init value

        if isinstance(parsed, dict):
            output.update(parsed)
        else:
            output["value"] = parsed
        return NodeOutcome(output=output)

    async def evaluate_end(self, node, input, context: RunContext) -> NodeOutcome:
        return NodeOutcome(output=input)

    async def evaluate_delay(self, node, input, context: RunContext) -> NodeOutcome:
        delay_ms = node.data.delay_ms
        if delay_ms is None:
            delay_ms = config.DEFAULT_DELAY_MS
        # Non-positive delays only yield to the event loop
        await self.sleep(max(delay_ms, 0) / 1000)
        return NodeOutcome(output=input, messages=[f"Waited {max(delay_ms, 0):g} ms"])

    async def evaluate_clipboard(self, node, input, context: RunContext) -> NodeOutcome:
        """Copy the input to the clipboard. A failed write does not stop the run."""
        if isinstance(input, (dict, list)):
            text = json.dumps(input, indent=2, default=str)
        else:
            text = str(input)

        try:
            await self.clipboard.write_text(text)
        except Exception as e:
            logger.warning(f"[{context.run_id}] Clipboard write failed on {node.id}: {e}")
            return NodeOutcome(
                output=input,
                status=LogStatus.ERROR,
                messages=[f"Clipboard write failed: {e}"],
            )
        return NodeOutcome(output=input, messages=["Copied to clipboard"])

    async def evaluate_script(self, node, input, context: RunContext) -> NodeOutcome:
        """
        Run the node's code as an async function body.

        Bindings: `input`, `console` (console.log buffers lines, and so does
        print) and `http` (the transport, for scripts making their own calls).
        Returning nothing passes the input through unchanged.
        """
        console = ScriptConsole()
        bindings = {
            "input": input,
            "console": console,
            "print": console.log,
            "http": self.transport,
        }
        try:
            result = await self.interpreter.run_script(node.data.code, bindings)
        except EvaluationError as e:
            raise NodeEvaluationError(f"Script Error: {e}") from e

        output = input if result is None else result
        return NodeOutcome(output=output, messages=console.lines)

    async def evaluate_request(self, node, input, context: RunContext) -> NodeOutcome:
        data = node.data
        method = (data.method or "GET").upper()
        messages = []

        extra_headers = _parse_headers(data.headers)
        if extra_headers is None:
            messages.append("Invalid headers JSON, using empty headers")
            extra_headers = {}
        headers = {"Content-Type": "application/json", **extra_headers}

        body = None
        if method not in ("GET", "HEAD") and data.body is not None:
            body = data.body if isinstance(data.body, str) else json.dumps(data.body)

        try:
            if data.use_proxy:
                response = await self.transport.send_via_proxy(method, data.url, headers, body)
            else:
                response = await self.transport.send(method, data.url, headers, body)
        except TransportError as e:
            raise NodeEvaluationError(f"Request failed: {e}") from e

        if not response.ok:
            raise NodeEvaluationError(f"HTTP {response.status_code}: {response.reason}")

        try:
            output = json.loads(response.text)
        except ValueError:
            output = response.text

        messages.append(f"{method} {data.url} -> {response.status_code}")
        return NodeOutcome(output=output, messages=messages)

    async def evaluate_condition(self, node, input, context: RunContext) -> NodeOutcome:
        """Evaluate the boolean expression; the decision picks the outgoing edge."""
        try:
            value = bool(self.interpreter.evaluate_expression(node.data.condition, {"input": input}))
        except EvaluationError as e:
            raise NodeEvaluationError(f"Condition Error: {e}") from e

        return NodeOutcome(
            output=BranchDecision(value=value, original_input=input),
            messages=[f"Condition: {str(value).lower()}"],
        )


def _parse_headers(raw) -> Optional[Dict[str, str]]:
    """Header mapping from the node's JSON text; None when it is not a JSON object."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        parsed = raw
    else:
        try:
            parsed = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(parsed, dict):
        return None
    return {str(k): str(v) for k, v in parsed.items()}
