"""
Custom Exception Classes for the Telemetry Hub

Hierarchical exception structure shared by services, stores and routers.
Routers never build error bodies from these messages; main.py maps each
class to a status code and a short fixed text.
"""


class HubError(Exception):
    """Base exception for all telemetry hub errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(HubError):
    """Missing or wrong shared secret"""

    def __init__(self, message: str, role: str | None = None):
        self.role = role
        super().__init__(f"Authentication Error: {message}")


class ValidationError(HubError):
    """Malformed request input (node id, cursor, body, command)"""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(f"Validation Error: {message}")


class StorageError(HubError):
    """Relational or key-value store failure"""

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(f"Storage Error: {message}")
