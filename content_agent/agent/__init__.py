from .executor import ToolExecutor, ToolInputError
from .loop import AgentLoop, run_agent
from .tools import TOOL_SPECS, TOOLS_BY_NAME, ToolName

__all__ = [
    "AgentLoop",
    "TOOL_SPECS",
    "TOOLS_BY_NAME",
    "ToolExecutor",
    "ToolInputError",
    "ToolName",
    "run_agent",
]
