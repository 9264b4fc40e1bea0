"""
Process-wide service context.

Built once at startup from Settings and injected into request handlers.
Owns the long-lived clients (database engine, OpenAI, HTTP) and the
single-flight guard that keeps catalog syncs from overlapping.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

import httpx

from lucia.assistant.client import AssistantClient
from lucia.assistant.conversation import ConversationLoop
from lucia.assistant.tools import CatalogTools, ToolRegistry, create_tool_registry
from lucia.catalog.store import CatalogStore
from lucia.core.config import Settings
from lucia.integrations.stricker.client import StrickerClient
from lucia.pipelines.sync import CatalogSync

logger = logging.getLogger(__name__)


@dataclass
class LuciaContext:
    """Long-lived dependencies shared by all requests."""
    settings: Settings
    store: CatalogStore
    assistant: Optional[AssistantClient] = None
    http_client: httpx.Client = field(default_factory=httpx.Client)
    sync_lock: threading.Lock = field(default_factory=threading.Lock)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LuciaContext":
        """Create clients from configuration. Call validate_config() first."""
        store = CatalogStore.from_url(settings.database_url, schema=settings.catalog_schema)
        assistant = AssistantClient(api_key=settings.openai_api_key) if settings.openai_api_key else None
        logger.info("Service context initialized")
        return cls(settings=settings, store=store, assistant=assistant)

    def tool_registry(self) -> ToolRegistry:
        tools = CatalogTools(
            self.store,
            webhook_url=self.settings.lead_webhook_url,
            webhook_timeout=self.settings.lead_webhook_timeout,
            http_client=self.http_client,
        )
        return create_tool_registry(tools, max_workers=self.settings.tool_max_workers)

    def conversation(self) -> ConversationLoop:
        """Build a conversation loop for one turn."""
        if self.assistant is None:
            raise RuntimeError("Assistant client is not configured")
        return ConversationLoop(
            self.assistant,
            self.tool_registry(),
            assistant_id=self.settings.assistant_id,
            poll_interval=self.settings.poll_interval,
            run_timeout=self.settings.run_timeout,
        )

    def catalog_sync(self) -> CatalogSync:
        """Build a sync job with a fresh vendor client (tokens are per job)."""
        client = StrickerClient(
            self.settings.stricker_api_url,
            self.settings.stricker_access_key,
            lang=self.settings.stricker_lang,
        )
        return CatalogSync(client, self.store)

    def close(self) -> None:
        self.http_client.close()
        self.store.dispose()
