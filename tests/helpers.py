"""
Builders shared by the test modules.
"""

import httpx

from flowforge.engine.evaluator import NodeEvaluator
from flowforge.tools.clipboard import MemoryClipboard
from flowforge.tools.transport import HttpTransport

PROXY_URL = "http://relay.test/api/v1/proxy"


def node(node_id, node_type, **data):
    """Editor-shaped node JSON."""
    data.setdefault("label", node_id)
    return {"id": node_id, "type": node_type, "position": {"x": 0, "y": 0}, "data": data}


def edge(source, target, type=None, iteration=None, edge_id=None):
    """Editor-shaped edge JSON."""
    raw = {"id": edge_id or f"{source}->{target}", "source": source, "target": target}
    if type is not None:
        raw["type"] = type
    if iteration is not None:
        raw["iteration"] = iteration
    return raw


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers the requested durations."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"ok": True})


def make_transport(handler=ok_handler, proxy_url=PROXY_URL) -> HttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(proxy_url=proxy_url, client=client)


def make_evaluator(handler=ok_handler, clipboard=None, sleep=None) -> NodeEvaluator:
    """Evaluator wired to in-process fakes: no network, no real waiting."""
    return NodeEvaluator(
        transport=make_transport(handler),
        clipboard=clipboard if clipboard is not None else MemoryClipboard(),
        sleep=sleep if sleep is not None else SleepRecorder(),
    )
