"""
Authentication Dependencies

Provides FastAPI dependencies for:
- Shared-secret API key checks, one secret per caller role
- Probe node identification

Usage:
    from telemetry_hub.dependencies.auth import require_api_key, Role

    @router.get("/download")
    def download(_: None = Depends(require_api_key(Role.COLLECTOR))):
        # Caller presented the collector secret
        pass
"""

import secrets
from enum import Enum
from typing import Optional

from fastapi import Depends, Header

from ..common.commands import MAX_ID
from ..common.exceptions import AuthenticationError, ValidationError
from ..common.logging_setup import get_service_logger
from ..config import Settings, get_settings

logger = get_service_logger("dependencies.auth")


# ============================================
# ROLES
# ============================================

class Role(str, Enum):
    """Caller roles, each with its own secret"""
    PROBE = "probe"
    COLLECTOR = "collector"
    OPERATOR = "operator"


def secret_for_role(settings: Settings, role: Role) -> str:
    """Configured secret for a role"""
    return {
        Role.PROBE: settings.probe_api_key,
        Role.COLLECTOR: settings.log_collector_api_key,
        Role.OPERATOR: settings.cli_api_key,
    }[role]


# ============================================
# API KEY DEPENDENCY
# ============================================

def require_api_key(role: Role):
    """
    Dependency factory for shared-secret authentication.

    Compares the X-Api-Key header with the role's configured secret in
    constant time. An unset secret rejects every request.

    Raises:
        AuthenticationError: Header missing or secret mismatch
    """
    def api_key_checker(
        x_api_key: Optional[str] = Header(None, alias="X-Api-Key"),
        settings: Settings = Depends(get_settings),
    ) -> None:
        expected = secret_for_role(settings, role)

        if x_api_key is None:
            raise AuthenticationError("Missing X-Api-Key header", role=role.value)

        if not expected or not secrets.compare_digest(
            x_api_key.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning(f"Rejected {role.value} request: API key mismatch")
            raise AuthenticationError("Invalid API key", role=role.value)

    return api_key_checker


# ============================================
# NODE IDENTITY
# ============================================

def get_node_id(
    x_node_id: Optional[str] = Header(None, alias="X-Node-Id"),
) -> int:
    """
    Parse the uploading node's id from the X-Node-Id header.

    Raises:
        ValidationError: Header missing, not an integer, or out of range
    """
    if x_node_id is None:
        raise ValidationError("Missing X-Node-Id header", field="X-Node-Id")

    try:
        node_id = int(x_node_id.strip())
    except ValueError:
        raise ValidationError("Invalid node ID", field="X-Node-Id")

    if not 0 <= node_id <= MAX_ID:
        raise ValidationError("Invalid node ID", field="X-Node-Id")

    return node_id
