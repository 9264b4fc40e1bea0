"""Core infrastructure: configuration, errors, service context."""

from lucia.core.config import (
    Settings,
    configure_logging,
    get_config_summary,
    validate_config,
)
from lucia.core.errors import (
    AmbiguousMatch,
    ConfigMissing,
    EmptyReply,
    LuciaError,
    NotFound,
    RunFailedTerminal,
    RunTimeout,
    ToolArgumentsError,
    UpstreamFailure,
)

__all__ = [
    "Settings",
    "configure_logging",
    "get_config_summary",
    "validate_config",
    "AmbiguousMatch",
    "ConfigMissing",
    "EmptyReply",
    "LuciaError",
    "NotFound",
    "RunFailedTerminal",
    "RunTimeout",
    "ToolArgumentsError",
    "UpstreamFailure",
]
