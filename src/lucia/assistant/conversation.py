#!/usr/bin/env python3
"""
Conversation Loop for Lucia.

Drives one chat turn against the assistant service:

1. Ensure a thread exists (create one when the caller has none)
2. Append the user's message and start a run
3. Poll the run until it leaves the active statuses, answering every
   ``requires_action`` round through the ToolRegistry
4. Return the last assistant message the run produced

Usage:
    loop = ConversationLoop(assistant_client, registry, assistant_id="asst_...")
    result = loop.run_turn("Quanto custa a caneta?", thread_id=None)
    print(result.reply, result.thread_id)
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from lucia.assistant.client import AssistantClient
from lucia.assistant.tools import ToolRegistry
from lucia.core.errors import EmptyReply, RunFailedTerminal, RunTimeout

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Observable states of one conversation turn."""

    NO_THREAD = "no_thread"
    THREAD_READY = "thread_ready"
    RUN_QUEUED = "run_queued"
    RUN_IN_PROGRESS = "run_in_progress"
    RUN_REQUIRES_ACTION = "run_requires_action"

    # === TERMINAL ===
    RUN_COMPLETED = "run_completed"
    RUN_FAILED = "run_failed"
    TIMEOUT = "timeout"


# Run statuses that keep the polling loop alive
ACTIVE_RUN_STATUSES = {"queued", "in_progress", "requires_action"}

RUN_STATUS_STATES = {
    "queued": TurnState.RUN_QUEUED,
    "in_progress": TurnState.RUN_IN_PROGRESS,
    "requires_action": TurnState.RUN_REQUIRES_ACTION,
    "completed": TurnState.RUN_COMPLETED,
}


@dataclass
class TurnResult:
    """Outcome of a completed conversation turn."""
    reply: str
    thread_id: str
    run_id: str
    status: str
    tool_calls: int = 0
    polls: int = 0
    states: List[TurnState] = field(default_factory=list)


def extract_reply_text(message: Any) -> Optional[str]:
    """Return the first text block of an assistant message, if any."""
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "text" and getattr(block, "text", None) is not None:
            return block.text.value
    return None


class ConversationLoop:
    """
    Bounded polling state machine around one assistant run.

    Clock and sleep are injectable so the loop can be driven in tests without
    real delays.
    """

    def __init__(
        self,
        assistant: AssistantClient,
        registry: ToolRegistry,
        assistant_id: str,
        poll_interval: float = 1.0,
        run_timeout: float = 600.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            assistant: Assistant service adapter
            registry: Tool registry used for ``requires_action`` rounds
            assistant_id: Assistant the runs are bound to
            poll_interval: Seconds to sleep between status reads
            run_timeout: Seconds after run creation before giving up
            sleep: Sleep function
            clock: Monotonic clock function
        """
        self.assistant = assistant
        self.registry = registry
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.run_timeout = run_timeout
        self.sleep = sleep
        self.clock = clock

    def run_turn(self, message: str, thread_id: Optional[str] = None) -> TurnResult:
        """
        Process one user message and return the assistant's reply.

        Raises:
            RunFailedTerminal: The run ended in a non-completed terminal status
            RunTimeout: The run was still active when the deadline passed
            EmptyReply: The run completed without an assistant message
            ToolArgumentsError: A tool call carried a malformed payload
            UpstreamFailure: The assistant service call failed
        """
        states: List[TurnState] = []

        def enter(state: TurnState) -> None:
            if not states or states[-1] != state:
                logger.debug(f"Turn state -> {state.value}")
                states.append(state)

        if not thread_id:
            enter(TurnState.NO_THREAD)
            thread_id = self.assistant.create_thread()
            logger.info(f"Created thread {thread_id}")
        enter(TurnState.THREAD_READY)

        self.assistant.add_user_message(thread_id, message)
        run = self.assistant.create_run(thread_id, self.assistant_id)
        logger.info(f"Started run {run.id} on thread {thread_id}")

        started = self.clock()
        deadline = started + self.run_timeout
        polls = 0
        tool_calls = 0
        enter(RUN_STATUS_STATES.get(run.status, TurnState.RUN_QUEUED))

        while run.status in ACTIVE_RUN_STATUSES:
            if self.clock() >= deadline:
                enter(TurnState.TIMEOUT)
                logger.error(f"Run {run.id} timed out in status '{run.status}'")
                raise RunTimeout(run.id, run.status, self.clock() - started)

            self.sleep(self.poll_interval)
            run = self.assistant.retrieve_run(thread_id, run.id)
            polls += 1
            enter(RUN_STATUS_STATES.get(run.status, TurnState.RUN_FAILED))

            if run.status == "requires_action":
                pending = run.required_action.submit_tool_outputs.tool_calls
                logger.info(f"Run {run.id} requires action: {len(pending)} tool call(s)")

                outputs = self.registry.dispatch(pending)
                tool_calls += len(pending)

                run = self.assistant.submit_tool_outputs(thread_id, run.id, outputs)
                enter(RUN_STATUS_STATES.get(run.status, TurnState.RUN_FAILED))

        if run.status != "completed":
            last_error = getattr(run, "last_error", None)
            enter(TurnState.RUN_FAILED)
            logger.error(f"Run {run.id} ended with status '{run.status}': {last_error}")
            raise RunFailedTerminal(run.status, last_error)

        messages = self.assistant.list_run_messages(thread_id, run.id)
        replies = [m for m in messages if m.run_id == run.id and m.role == "assistant"]
        reply = extract_reply_text(replies[-1]) if replies else None
        if reply is None:
            raise EmptyReply(f"Run {run.id} completed without an assistant message")

        logger.info(f"Run {run.id} completed after {polls} poll(s) and {tool_calls} tool call(s)")
        return TurnResult(
            reply=reply,
            thread_id=thread_id,
            run_id=run.id,
            status=run.status,
            tool_calls=tool_calls,
            polls=polls,
            states=states,
        )
