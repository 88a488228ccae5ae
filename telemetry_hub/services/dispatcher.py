"""
Command Dispatcher

Operator entry point. Routes a command to one node or to every known node,
and keeps the tracked maximum upload interval in step with cadence changes.
"""

from dataclasses import dataclass, field
from typing import Any

from ..common.commands import (
    CommandScope,
    GenericCommand,
    SetUpdateInterval,
    parse_command,
)
from ..common.logging_setup import get_service_logger
from .command_queue import CommandQueue
from .interval_tracker import IntervalTracker

logger = get_service_logger("services.dispatcher")


@dataclass
class DispatchResult:
    """What a submitted command did"""
    command: str
    scope: CommandScope
    node_ids: list[int] = field(default_factory=list)
    max_upload_interval: int | None = None  # Set when the tracked interval changed


class CommandDispatcher:
    """Builds envelopes, queues them, updates the interval tracker"""

    def __init__(self, queue: CommandQueue, tracker: IntervalTracker):
        self.queue = queue
        self.tracker = tracker

    def submit(
        self,
        command: Any,
        parameters: dict[str, Any] | None = None,
    ) -> DispatchResult:
        """
        Queue an operator command.

        A node_id (or "node id") parameter targets that node; otherwise the
        command goes to every node that has ever uploaded.

        For set_update_interval with both active_period and inactive_period:
        - broadcast: the tracked interval becomes max(active, inactive)
        - targeted: the tracked interval is raised to it, never lowered,
          since other nodes may still report on a slower cadence

        Raises:
            ValidationError: Malformed command or parameters; nothing queued
        """
        parsed = parse_command(command, parameters)
        return self.dispatch(parsed)

    def dispatch(self, parsed: GenericCommand) -> DispatchResult:
        """Queue an already-parsed command"""
        envelope = parsed.envelope

        if parsed.scope is CommandScope.TARGETED:
            self.queue.enqueue(parsed.node_id, envelope)
            node_ids = [parsed.node_id]
        else:
            node_ids = self.queue.broadcast_enqueue(envelope)

        result = DispatchResult(command=parsed.name, scope=parsed.scope, node_ids=node_ids)

        if isinstance(parsed, SetUpdateInterval) and parsed.candidate_interval is not None:
            candidate = parsed.candidate_interval
            if parsed.scope is CommandScope.BROADCAST:
                result.max_upload_interval = self.tracker.overwrite(candidate)
            elif self.tracker.raise_to(candidate):
                result.max_upload_interval = candidate

        logger.info(
            f"Dispatched {result.command} ({result.scope.value}) to {len(node_ids)} nodes",
            extra={"node_ids": node_ids},
        )
        return result
