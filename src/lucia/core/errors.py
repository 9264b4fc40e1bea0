"""
Error taxonomy shared by the tools, the conversation loop and the sync job.

Tool handlers never let these escape (they become ``{"error": ...}`` payloads);
the conversation loop raises them and the HTTP layer maps them to responses.
"""

from typing import Any, Dict, List, Optional


class LuciaError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFound(LuciaError):
    """No catalog or price row matched the lookup."""


class AmbiguousMatch(LuciaError):
    """More than one row matched where exactly one was expected."""


class UpstreamFailure(LuciaError):
    """An external API, service or network call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[Dict] = None):
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class ConfigMissing(LuciaError):
    """Required configuration values are absent."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class RunFailedTerminal(LuciaError):
    """The assistant run ended in a terminal status other than ``completed``."""

    def __init__(self, status: str, last_error: Any = None):
        self.status = status
        self.last_error = last_error
        super().__init__(f"Assistant run ended with status '{status}'")


class RunTimeout(LuciaError):
    """The assistant run did not reach a terminal status before the deadline."""

    def __init__(self, run_id: str, status: str, elapsed: float):
        self.run_id = run_id
        self.status = status
        self.elapsed = elapsed
        super().__init__(f"Assistant run {run_id} still '{status}' after {elapsed:.1f}s")


class EmptyReply(LuciaError):
    """The run completed but produced no assistant message."""


class ToolArgumentsError(LuciaError):
    """A tool call carried an argument payload that is not a JSON object."""

    def __init__(self, tool_name: str, tool_call_id: str, raw_arguments: Any):
        self.tool_name = tool_name
        self.tool_call_id = tool_call_id
        self.raw_arguments = raw_arguments
        super().__init__(f"Malformed arguments for tool '{tool_name}' (call {tool_call_id})")
