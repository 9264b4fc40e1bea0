"""
Thin adapter over the OpenAI Assistants API (threads, messages, runs).

Keeps the conversation loop independent of SDK call signatures and wraps SDK
errors as UpstreamFailure.
"""

import logging
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from lucia.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)


class AssistantClient:
    """Thread/run operations used by one conversation turn."""

    def __init__(self, openai_client: Optional[OpenAI] = None, api_key: Optional[str] = None):
        self.openai = openai_client or OpenAI(api_key=api_key)

    def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except openai.APIStatusError as e:
            raise UpstreamFailure(f"OpenAI {operation} failed: {e}", status_code=e.status_code)
        except openai.OpenAIError as e:
            raise UpstreamFailure(f"OpenAI {operation} failed: {e}")

    def create_thread(self) -> str:
        thread = self._call("thread creation", self.openai.beta.threads.create)
        logger.debug(f"Created thread {thread.id}")
        return thread.id

    def add_user_message(self, thread_id: str, content: str) -> Any:
        return self._call(
            "message creation",
            self.openai.beta.threads.messages.create,
            thread_id,
            role="user",
            content=content,
        )

    def create_run(self, thread_id: str, assistant_id: str) -> Any:
        return self._call(
            "run creation",
            self.openai.beta.threads.runs.create,
            thread_id,
            assistant_id=assistant_id,
        )

    def retrieve_run(self, thread_id: str, run_id: str) -> Any:
        return self._call(
            "run retrieval",
            self.openai.beta.threads.runs.retrieve,
            run_id,
            thread_id=thread_id,
        )

    def submit_tool_outputs(self, thread_id: str, run_id: str, tool_outputs: List[Dict[str, str]]) -> Any:
        return self._call(
            "tool output submission",
            self.openai.beta.threads.runs.submit_tool_outputs,
            run_id,
            thread_id=thread_id,
            tool_outputs=tool_outputs,
        )

    def list_run_messages(self, thread_id: str, run_id: str) -> List[Any]:
        """List the thread's messages created by a run, oldest first, across all pages."""

        def fetch_all() -> List[Any]:
            page = self.openai.beta.threads.messages.list(thread_id, run_id=run_id, order="asc")
            # Iterating the cursor page follows `after` until has_more is false
            return list(page)

        return self._call("message listing", fetch_all)
