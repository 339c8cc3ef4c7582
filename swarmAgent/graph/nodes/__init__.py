"""Graph node builders."""

from .approval import build_approval_node
from .completion import build_completion_node
from .decomposer import build_decomposer_node, select_roles
from .executor import build_executor_node
from .selector import build_selector_node
from .synthesizer import build_synthesizer_node
from .tool_execution import build_tool_execution_node

__all__ = [
    "build_approval_node",
    "build_completion_node",
    "build_decomposer_node",
    "build_executor_node",
    "build_selector_node",
    "build_synthesizer_node",
    "build_tool_execution_node",
    "select_roles",
]
