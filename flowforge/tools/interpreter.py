"""
Script and expression interpreter used by SCRIPT and CONDITION nodes.

The engine only talks to the `ScriptInterpreter` protocol, so a host can swap
in a different language runtime. `PythonInterpreter` evaluates Python source
with a restricted set of builtins. It isolates exceptions, nothing more: it is
not a security sandbox.
"""

from typing import Dict, Any, List, Protocol
import ast
import asyncio
import datetime
import json
import math
import re
import time
import logging

logger = logging.getLogger(__name__)

_SCRIPT_FUNCTION = "__flowforge_script__"


class EvaluationError(Exception):
    """User code failed to compile or raised while running."""


class ScriptInterpreter(Protocol):
    async def run_script(self, source: str, bindings: Dict[str, Any]) -> Any:
        ...

    def evaluate_expression(self, source: str, bindings: Dict[str, Any]) -> Any:
        ...


class ScriptConsole:
    """Buffers lines written by a script instead of emitting them."""

    def __init__(self):
        self.lines: List[str] = []

    def log(self, *args: Any) -> None:
        self.lines.append(" ".join(_format_arg(a) for a in args))

    # console.info / console.warn read naturally in scripts too
    info = log
    warn = log
    error = log


def _format_arg(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


SAFE_BUILTINS: Dict[str, Any] = {
    "True": True, "False": False, "None": None,
    "abs": abs, "all": all, "any": any, "bool": bool, "dict": dict,
    "enumerate": enumerate, "filter": filter, "float": float, "int": int,
    "isinstance": isinstance, "len": len, "list": list, "map": map,
    "max": max, "min": min, "range": range, "reversed": reversed,
    "round": round, "set": set, "sorted": sorted, "str": str, "sum": sum,
    "tuple": tuple, "zip": zip,
    "Exception": Exception, "ValueError": ValueError, "KeyError": KeyError,
    "TypeError": TypeError,
}

SAFE_MODULES: Dict[str, Any] = {
    "asyncio": asyncio,
    "datetime": datetime,
    "json": json,
    "math": math,
    "re": re,
    "time": time,
}


class PythonInterpreter:
    """Runs Python source against explicit bindings."""

    def __init__(self, builtins: Dict[str, Any] = None, modules: Dict[str, Any] = None):
        self.builtins = dict(SAFE_BUILTINS if builtins is None else builtins)
        self.modules = dict(SAFE_MODULES if modules is None else modules)

    def _globals(self) -> Dict[str, Any]:
        return {"__builtins__": self.builtins, **self.modules}

    def _compile_script(self, source: str, names: List[str]):
        """
        Graft the parsed script body into an async function taking `names`.

        The body is parsed on its own so its text, multi-line strings
        included, reaches the compiler unchanged.
        """
        module = ast.parse(f"async def {_SCRIPT_FUNCTION}({', '.join(names)}):\n    pass\n")
        body = compile(
            source or "", "<script>", "exec",
            ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT
        ).body
        # Empty or comment-only scripts keep the template's pass
        if body:
            module.body[0].body = body
        return compile(module, "<script>", "exec")

    async def run_script(self, source: str, bindings: Dict[str, Any]) -> Any:
        """
        Run `source` as the body of an async function whose parameters are
        the binding names. The function's return value is returned; a body
        without `return` yields None.
        """
        namespace = self._globals()
        try:
            exec(self._compile_script(source, list(bindings)), namespace)
            return await namespace[_SCRIPT_FUNCTION](**bindings)
        except Exception as e:
            raise EvaluationError(_describe(e)) from e

    def evaluate_expression(self, source: str, bindings: Dict[str, Any]) -> Any:
        """Evaluate a single expression such as `input["value"] > 3`."""
        try:
            code = compile((source or "False").strip(), "<condition>", "eval")
            # Bindings go in globals so comprehensions can see them
            return eval(code, {**self._globals(), **bindings})
        except Exception as e:
            raise EvaluationError(_describe(e)) from e


def _describe(error: Exception) -> str:
    if isinstance(error, SyntaxError):
        return f"invalid syntax: {error.msg}"
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__
