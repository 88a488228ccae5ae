"""
Ingestion Service

Handles a probe's periodic exchange: store its logs, give retention a
chance to run, hand back whatever commands are waiting for it.
"""

from typing import Iterable

from ..common.commands import MAX_ID, CommandEnvelope
from ..common.exceptions import ValidationError
from ..common.logging_setup import get_service_logger
from ..storage.hub_db import HubDatabase
from .command_queue import CommandQueue
from .retention import RetentionManager

logger = get_service_logger("services.ingestion")


class IngestionService:
    """Probe upload handler"""

    def __init__(
        self,
        db: HubDatabase,
        retention: RetentionManager,
        queue: CommandQueue,
    ):
        self.db = db
        self.retention = retention
        self.queue = queue

    def upload(
        self,
        node_id: int,
        logs: Iterable[tuple[str, str]],
    ) -> list[CommandEnvelope]:
        """
        Store a node's log lines and return its pending commands.

        Timestamps are stored exactly as the probe sent them. Inserts are
        all-or-nothing; if they fail the error propagates and the node's
        commands stay queued for its next upload.

        Args:
            node_id: Uploading node
            logs: (timestamp, message) pairs, possibly empty (heartbeat)

        Returns:
            Drained command envelopes, oldest first
        """
        if not 0 <= node_id <= MAX_ID:
            raise ValidationError(f"node id must be between 0 and {MAX_ID}", field="node_id")

        logs = list(logs)
        logger.debug(
            f"Received upload request. Node_id: {node_id}, "
            f"uploaded logline count: {len(logs)}"
        )

        self.db.insert_log_messages(node_id, logs)
        self.retention.maybe_run()

        commands = self.queue.drain(node_id)
        if commands:
            logger.info(
                f"Delivering {len(commands)} commands to node {node_id}",
                extra={"node_id": node_id, "commands": [c.command for c in commands]},
            )
        return commands
