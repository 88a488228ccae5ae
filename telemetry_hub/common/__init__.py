"""
Common Utilities

Shared modules used across the hub:
- commands.py - Command envelopes and operator request parsing
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .commands import (
    CommandEnvelope,
    CommandName,
    CommandScope,
    GenericCommand,
    SetUpdateInterval,
    MAX_ID,
    MAX_PERIOD_SECONDS,
    parse_command,
)
from .exceptions import (
    HubError,
    AuthenticationError,
    ValidationError,
    StorageError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
)

__all__ = [
    # Commands
    "CommandEnvelope",
    "CommandName",
    "CommandScope",
    "GenericCommand",
    "SetUpdateInterval",
    "MAX_ID",
    "MAX_PERIOD_SECONDS",
    "parse_command",
    # Exceptions
    "HubError",
    "AuthenticationError",
    "ValidationError",
    "StorageError",
    # Logging
    "setup_logging",
    "get_service_logger",
]
