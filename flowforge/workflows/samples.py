from flowforge.engine.models import (
    Workflow, StartNode, ScriptNode, ConditionNode, ClipboardNode, EndNode,
    StartData, ScriptData, ConditionData, NodeData, Connection, Position
)


# Default body for new SCRIPT nodes
INITIAL_CODE = '''# Custom logic
# input: previous node output
data = input if isinstance(input, dict) else {}
return {**data, "value": data.get("value", 0) + 1}
'''


def create_sample_workflow() -> Workflow:
    """Create the counter demo workflow"""

    nodes = [
        StartNode(
            id="start",
            position=Position(x=80, y=160),
            data=StartData(label="Start", init_value='{"value": 1, "items": [1, 2, 3]}')
        ),
        ScriptNode(
            id="increment",
            position=Position(x=300, y=160),
            data=ScriptData(label="Increment", code=INITIAL_CODE)
        ),
        ConditionNode(
            id="is_big",
            position=Position(x=520, y=160),
            data=ConditionData(label="Value > 1?", condition='input["value"] > 1')
        ),
        ScriptNode(
            id="extract_items",
            position=Position(x=740, y=60),
            data=ScriptData(label="Items", code='return input["items"]')
        ),
        ScriptNode(
            id="double_items",
            position=Position(x=960, y=60),
            data=ScriptData(label="Double", code="return input * 2")
        ),
        ClipboardNode(
            id="copy",
            position=Position(x=740, y=260),
            data=NodeData(label="Copy result")
        ),
        EndNode(
            id="end",
            position=Position(x=1180, y=160),
            data=NodeData(label="End")
        )
    ]

    edges = [
        Connection(id="e1", source="start", target="increment"),
        Connection(id="e2", source="increment", target="is_big"),
        Connection(id="e3", source="is_big", target="extract_items", type="true"),
        Connection(id="e4", source="is_big", target="copy", type="false"),
        # Runs the doubling script once per item
        Connection(id="e5", source="extract_items", target="double_items", iteration="map"),
        Connection(id="e6", source="double_items", target="end"),
        Connection(id="e7", source="copy", target="end"),
    ]

    return Workflow(
        id="sample",
        name="Counter Demo",
        nodes=nodes,
        edges=edges
    )
