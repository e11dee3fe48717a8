#!/usr/bin/env python3
"""
Demo script: store a workflow over the REST API, run it and print the trace
"""

import json
import requests

BASE_URL = "http://localhost:8000"


def build_workflow():
    """Start -> Script -> Condition -> (true) Clipboard / (false) End"""
    return {
        "id": "demo",
        "name": "REST demo",
        "nodes": [
            {"id": "start", "type": "START", "position": {"x": 0, "y": 0},
             "data": {"label": "Start", "initValue": '{"value": 5}'}},
            {"id": "bump", "type": "SCRIPT", "position": {"x": 200, "y": 0},
             "data": {"label": "Bump", "code": 'console.log("got", input)\nreturn {"value": input["value"] + 1}'}},
            {"id": "check", "type": "CONDITION", "position": {"x": 400, "y": 0},
             "data": {"label": "Big?", "condition": 'input["value"] > 3'}},
            {"id": "copy", "type": "CLIPBOARD", "position": {"x": 600, "y": -80},
             "data": {"label": "Copy"}},
            {"id": "end", "type": "END", "position": {"x": 800, "y": 0},
             "data": {"label": "End"}}
        ],
        "edges": [
            {"id": "e1", "source": "start", "target": "bump"},
            {"id": "e2", "source": "bump", "target": "check"},
            {"id": "e3", "source": "check", "target": "copy", "type": "true"},
            {"id": "e4", "source": "check", "target": "end", "type": "false"},
            {"id": "e5", "source": "copy", "target": "end"}
        ]
    }


def print_trace(result):
    """Print one line per trace entry"""
    status_emoji = {"success": "✅", "error": "❌"}
    for entry in result["trace"]:
        emoji = status_emoji.get(entry["status"], "📝")
        print(f"{emoji} {entry['nodeId']}: {json.dumps(entry['output'])}")
        for line in entry.get("logs", []):
            print(f"   📝 {line}")

    print(f"📋 Run {result['status']} ({result['haltReason']}, {result['steps']} steps)")
    if result.get("error"):
        print(f"❌ {result['failedNode']}: {result['error']}")


def main():
    """Run the REST demo"""
    print("🌐 FLOWFORGE REST DEMO")
    print("=" * 50)

    try:
        requests.get(f"{BASE_URL}/health", timeout=2)
        print("✅ Server is running")
    except requests.exceptions.ConnectionError:
        print("❌ Server not running. Please start with: python -m flowforge.main")
        return

    save_response = requests.post(f"{BASE_URL}/api/v1/workflows", json=build_workflow())
    if save_response.status_code != 200:
        print(f"❌ Failed to save workflow: {save_response.text}")
        return
    workflow_id = save_response.json()["id"]
    print(f"📊 Saved workflow: {workflow_id}")

    run_response = requests.post(f"{BASE_URL}/api/v1/workflows/{workflow_id}/run")
    if run_response.status_code != 200:
        print(f"❌ Failed to run workflow: {run_response.text}")
        return

    print_trace(run_response.json())


if __name__ == "__main__":
    main()
