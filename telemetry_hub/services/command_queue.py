"""
Command Queue

Per-node FIFO of pending commands, delivered at most once.
"""

from ..common.commands import CommandEnvelope
from ..common.logging_setup import get_service_logger
from ..common.timestamp import format_timestamp, utc_now
from ..storage.hub_db import HubDatabase

logger = get_service_logger("services.command_queue")


class CommandQueue:
    """Enqueue for one node or all known nodes; drain on read"""

    def __init__(self, db: HubDatabase):
        self.db = db

    def enqueue(self, node_id: int, envelope: CommandEnvelope) -> None:
        """Queue a command for a single node"""
        self.db.insert_commands([node_id], format_timestamp(utc_now()), envelope.to_json())
        logger.debug(f"Queued {envelope.command} for node {node_id}")

    def broadcast_enqueue(self, envelope: CommandEnvelope) -> list[int]:
        """
        Queue a command for every node that has ever uploaded.

        Nodes with no log history are not reachable by broadcast.

        Returns:
            Node ids the command was queued for
        """
        node_ids = self.db.insert_command_for_known_nodes(
            format_timestamp(utc_now()), envelope.to_json()
        )
        logger.debug(f"Queued {envelope.command} for {len(node_ids)} nodes")
        return node_ids

    def drain(self, node_id: int) -> list[CommandEnvelope]:
        """
        Take every pending command for a node, oldest first.

        Taken rows are deleted in the same transaction they are read in.
        Rows that no longer decode are dropped with a warning.
        """
        envelopes = []
        for row in self.db.pop_commands(node_id):
            try:
                envelopes.append(CommandEnvelope.from_json(row.command))
            except ValueError as e:
                logger.warning(f"Dropping undecodable command {row.id} for node {node_id}: {e}")
        return envelopes
