"""Assistant conversation loop and tools."""

from lucia.assistant.client import AssistantClient
from lucia.assistant.conversation import ConversationLoop, TurnResult, TurnState
from lucia.assistant.tools import TOOLS_SCHEMA, CatalogTools, ToolRegistry, create_tool_registry

__all__ = [
    "AssistantClient",
    "ConversationLoop",
    "TurnResult",
    "TurnState",
    "TOOLS_SCHEMA",
    "CatalogTools",
    "ToolRegistry",
    "create_tool_registry",
]
