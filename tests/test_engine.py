"""
Tests for the execution driver: traversal, branching, iteration, step budget
and failure handling of a whole run.
"""

import httpx
import pytest

from flowforge.engine.engine import WorkflowEngine, RunState, HaltReason
from flowforge.engine.errors import WorkflowConfigurationError, WorkflowExecutionError
from flowforge.engine.models import LogStatus
from flowforge.tools.clipboard import DisabledClipboard, MemoryClipboard

from tests.helpers import node, edge, make_evaluator


def ids(trace):
    return [entry.node_id for entry in trace]


@pytest.mark.asyncio
async def test_missing_start_node_fails_with_empty_trace():
    engine = WorkflowEngine(
        [node("a", "SCRIPT", code="return 1"), node("end", "END")],
        [edge("a", "end")],
        evaluator=make_evaluator(),
    )

    with pytest.raises(WorkflowConfigurationError) as exc_info:
        await engine.execute()

    assert exc_info.value.trace == []
    assert engine.state == RunState.HALTED
    assert engine.halt_reason == HaltReason.NO_START_NODE


@pytest.mark.asyncio
async def test_linear_chain_has_one_entry_per_node_in_order():
    nodes = [
        node("start", "START"),
        node("wait", "DELAY", delayMs=5),
        node("script", "SCRIPT", code="return input"),
        node("end", "END"),
    ]
    edges = [edge("start", "wait"), edge("wait", "script"), edge("script", "end")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "wait", "script", "end"]
    assert all(entry.status == LogStatus.SUCCESS for entry in trace)
    assert engine.step_count == 4
    assert engine.halt_reason == HaltReason.COMPLETED


@pytest.mark.asyncio
async def test_start_script_end_scenario():
    nodes = [
        node("start", "START", initValue='{"value":5}'),
        node("script", "SCRIPT", code='return {"value": input["value"] + 1}'),
        node("end", "END"),
    ]
    edges = [edge("start", "script"), edge("script", "end")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert len(trace) == 3
    assert trace[0].output["value"] == 5
    assert "startTime" in trace[0].output
    assert trace[1].output == {"value": 6}
    assert trace[2].output == {"value": 6}


@pytest.mark.asyncio
async def test_start_time_flows_on_when_script_keeps_the_object():
    nodes = [
        node("start", "START", initValue='{"value":5}'),
        node("script", "SCRIPT", code='return {**input, "value": input["value"] + 1}'),
        node("end", "END"),
    ]
    edges = [edge("start", "script"), edge("script", "end")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    end_output = trace[-1].output
    assert end_output["value"] == 6
    assert end_output["startTime"] == trace[0].output["startTime"]


def branching_graph(condition, with_false_edge=True):
    nodes = [
        node("start", "START", initValue='{"value": 5}'),
        node("check", "CONDITION", condition=condition),
        node("a", "SCRIPT", code="return input"),
        node("b", "SCRIPT", code="return input"),
    ]
    edges = [
        edge("start", "check"),
        edge("check", "a", type="true"),
    ]
    if with_false_edge:
        edges.append(edge("check", "b", type="false"))
    return nodes, edges


@pytest.mark.asyncio
async def test_condition_true_follows_true_edge_with_original_input():
    nodes, edges = branching_graph('input["value"] > 3')
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "check", "a"]
    assert trace[1].output == {"result": True}
    assert trace[2].output == trace[0].output
    assert trace[2].output["value"] == 5


@pytest.mark.asyncio
async def test_condition_false_follows_false_edge():
    nodes, edges = branching_graph('input["value"] > 10')
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "check", "b"]
    assert trace[1].output == {"result": False}


@pytest.mark.asyncio
async def test_condition_without_matching_edge_ends_the_run():
    nodes, edges = branching_graph('input["value"] > 10', with_false_edge=False)
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "check"]
    assert engine.halt_reason == HaltReason.COMPLETED


def iteration_graph(mode, target):
    nodes = [
        node("start", "START", initValue="[1, 2, 3]"),
        node("items", "SCRIPT", code='return input["value"]'),
        target,
        node("end", "END"),
    ]
    edges = [
        edge("start", "items"),
        edge("items", target["id"], iteration=mode),
        edge(target["id"], "end"),
    ]
    return nodes, edges


@pytest.mark.asyncio
async def test_map_collects_per_item_results():
    nodes, edges = iteration_graph("map", node("times10", "SCRIPT", code="return input * 10"))
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "items", "times10", "end"]
    assert trace[2].output == [10, 20, 30]
    assert trace[2].logs[0] == "Iterated 3 items"
    assert trace[3].output == [10, 20, 30]


@pytest.mark.asyncio
async def test_for_each_keeps_the_original_array():
    nodes, edges = iteration_graph("forEach", node("times10", "SCRIPT", code="return input * 10"))
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert trace[2].output == [1, 2, 3]
    assert trace[3].output == [1, 2, 3]


@pytest.mark.asyncio
async def test_for_each_runs_side_effects_per_item_in_order():
    clipboard = MemoryClipboard()
    nodes, edges = iteration_graph("forEach", node("copy", "CLIPBOARD"))
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator(clipboard=clipboard))

    await engine.execute()

    assert clipboard.history == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_iteration_mode_on_non_array_input_runs_once():
    nodes = [
        node("start", "START", initValue='{"value": 2}'),
        node("double", "SCRIPT", code='return input["value"] * 2'),
    ]
    edges = [edge("start", "double", iteration="map")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert trace[1].output == 4


@pytest.mark.asyncio
async def test_iterated_condition_aggregates_booleans_and_takes_default_edge():
    nodes = [
        node("start", "START", initValue="[1, 5, 9]"),
        node("items", "SCRIPT", code='return input["value"]'),
        node("check", "CONDITION", condition="input > 3"),
        node("after", "SCRIPT", code="return input"),
        node("yes", "SCRIPT", code="return input"),
    ]
    edges = [
        edge("start", "items"),
        edge("items", "check", iteration="map"),
        edge("check", "yes", type="true"),
        edge("check", "after"),
    ]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "items", "check", "after"]
    assert trace[2].output == [False, True, True]
    assert trace[3].output == [False, True, True]


@pytest.mark.asyncio
async def test_cycle_stops_at_step_budget():
    nodes = [
        node("start", "START", initValue='{"n": 0}'),
        node("inc", "SCRIPT", code='return {"n": input["n"] + 1}'),
        node("again", "DELAY", delayMs=0),
    ]
    edges = [edge("start", "inc"), edge("inc", "again"), edge("again", "inc")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator(), max_steps=25)

    trace = await engine.execute()

    assert len(trace) == 25
    assert engine.step_count == 25
    assert engine.halt_reason == HaltReason.STEP_BUDGET_EXHAUSTED
    assert all(entry.status == LogStatus.SUCCESS for entry in trace)


@pytest.mark.asyncio
async def test_clipboard_failure_does_not_stop_the_run():
    nodes = [
        node("start", "START", initValue='{"value": 1}'),
        node("copy", "CLIPBOARD"),
        node("next", "SCRIPT", code="return input"),
        node("end", "END"),
    ]
    edges = [edge("start", "copy"), edge("copy", "next"), edge("next", "end")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator(clipboard=DisabledClipboard()))

    trace = await engine.execute()

    assert ids(trace) == ["start", "copy", "next", "end"]
    assert trace[1].status == LogStatus.ERROR
    assert trace[1].logs[0].startswith("Clipboard write failed")
    assert trace[2].output == trace[0].output
    assert engine.halt_reason == HaltReason.COMPLETED


@pytest.mark.asyncio
async def test_script_error_stops_run_and_keeps_partial_trace():
    nodes = [
        node("start", "START"),
        node("boom", "SCRIPT", code='raise ValueError("bad data")'),
        node("end", "END"),
    ]
    edges = [edge("start", "boom"), edge("boom", "end")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    with pytest.raises(WorkflowExecutionError) as exc_info:
        await engine.execute()

    error = exc_info.value
    assert error.node_id == "boom"
    assert ids(error.trace) == ["start", "boom"]
    assert error.trace[-1].status == LogStatus.ERROR
    assert error.trace[-1].output == {"error": "Script Error: ValueError: bad data"}
    assert engine.halt_reason == HaltReason.FAILED


@pytest.mark.asyncio
async def test_request_error_status_stops_run_and_keeps_partial_trace():
    def handler(request):
        return httpx.Response(500)

    nodes = [
        node("start", "START"),
        node("fetch", "REQUEST", url="http://api.test/items"),
        node("end", "END"),
    ]
    edges = [edge("start", "fetch"), edge("fetch", "end")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator(handler))

    with pytest.raises(WorkflowExecutionError) as exc_info:
        await engine.execute()

    error = exc_info.value
    assert error.node_id == "fetch"
    assert ids(error.trace) == ["start", "fetch"]
    assert error.trace[-1].output == {"error": "HTTP 500: Internal Server Error"}
    assert engine.halt_reason == HaltReason.FAILED


@pytest.mark.asyncio
async def test_broken_condition_stops_run_and_keeps_partial_trace():
    nodes, edges = branching_graph('input["missing"] > 1')
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    with pytest.raises(WorkflowExecutionError) as exc_info:
        await engine.execute()

    error = exc_info.value
    assert error.node_id == "check"
    assert ids(error.trace) == ["start", "check"]
    assert error.trace[-1].status == LogStatus.ERROR
    assert error.trace[-1].output["error"].startswith("Condition Error: KeyError")
    assert engine.halt_reason == HaltReason.FAILED


@pytest.mark.asyncio
async def test_incoming_edge_is_first_edge_joining_the_two_nodes():
    nodes = [
        node("start", "START", initValue="[1, 2]"),
        node("items", "SCRIPT", code='return input["value"]'),
        node("check", "CONDITION", condition="len(input) > 5"),
        node("b", "SCRIPT", code='return "once"'),
    ]
    edges = [
        edge("start", "items"),
        edge("items", "check"),
        edge("check", "b", type="true", edge_id="plain"),
        edge("check", "b", type="false", iteration="map", edge_id="mapped"),
    ]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "items", "check", "b"]
    assert trace[2].output == {"result": False}
    assert trace[3].output == "once"


@pytest.mark.asyncio
async def test_end_node_outgoing_edges_are_not_followed():
    nodes = [node("start", "START"), node("end", "END"), node("after", "SCRIPT", code="return 1")]
    edges = [edge("start", "end"), edge("end", "after")]
    engine = WorkflowEngine(nodes, edges, evaluator=make_evaluator())

    trace = await engine.execute()

    assert ids(trace) == ["start", "end"]


@pytest.mark.asyncio
async def test_dangling_edge_ends_the_run_quietly():
    engine = WorkflowEngine(
        [node("start", "START")],
        [edge("start", "ghost")],
        evaluator=make_evaluator(),
    )

    trace = await engine.execute()

    assert ids(trace) == ["start"]
    assert engine.halt_reason == HaltReason.COMPLETED


@pytest.mark.asyncio
async def test_each_execute_is_independent():
    nodes = [node("start", "START"), node("end", "END")]
    engine = WorkflowEngine(nodes, [edge("start", "end")], evaluator=make_evaluator())

    first = await engine.execute()
    first_run = engine.run_id
    second = await engine.execute()

    assert len(first) == len(second) == 2
    assert engine.run_id != first_run
    assert engine.step_count == 2


@pytest.mark.asyncio
async def test_trace_entries_are_not_changed_by_later_in_place_edits():
    nodes = [
        node("start", "START", initValue='{"tags": []}'),
        node("mutate", "SCRIPT", code='input["tags"].append("x")'),
    ]
    engine = WorkflowEngine(nodes, [edge("start", "mutate")], evaluator=make_evaluator())

    trace = await engine.execute()

    assert trace[0].output["tags"] == []
    assert trace[1].output["tags"] == ["x"]
