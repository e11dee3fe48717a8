"""
Collaborators used by node handlers

Script interpreter, HTTP transport and clipboard sinks.
"""

from .interpreter import PythonInterpreter, ScriptInterpreter, ScriptConsole, EvaluationError
from .transport import HttpTransport, HttpResponse, TransportError
from .clipboard import (
    MemoryClipboard,
    DisabledClipboard,
    CommandClipboard,
    ClipboardError,
    create_clipboard
)

__all__ = [
    "PythonInterpreter",
    "ScriptInterpreter",
    "ScriptConsole",
    "EvaluationError",
    "HttpTransport",
    "HttpResponse",
    "TransportError",
    "MemoryClipboard",
    "DisabledClipboard",
    "CommandClipboard",
    "ClipboardError",
    "create_clipboard"
]
