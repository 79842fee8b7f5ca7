"""
Runtime subsystem
-----------------

Scripting runtime adapter and the environment the orchestrator owns.

    from runtime import RuntimeEnvironment, PythonScriptRuntime
"""

from .script_runtime import ExecutionContext, ScriptEnvironment, ScriptRuntime, PythonScriptRuntime
from .runtime_environment import RuntimeEnvironment, detached_environments
from .runtime_info import RuntimeInfo

__all__ = [
    "ExecutionContext",
    "ScriptEnvironment",
    "ScriptRuntime",
    "PythonScriptRuntime",
    "RuntimeEnvironment",
    "detached_environments",
    "RuntimeInfo",
]
