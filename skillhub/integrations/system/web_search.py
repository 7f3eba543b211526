"""Web search through a SearXNG instance."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..base import PlatformIntegration, tool
from ..clients import HTTPClient
from ..schema import ParameterSpec, ToolDefinition

logger = logging.getLogger(__name__)

MAX_RESULTS = 10


class WebSearchIntegration(PlatformIntegration):
    type = "system.searxng_tool"
    name = "Web Search"

    def __init__(
        self,
        searxng_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.searxng_url = searxng_url
        self.timeout = timeout
        self.transport = transport
        super().__init__()

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="SearXNG_tool",
                description=(
                    "Use this tool to search in web, currently you have these "
                    "search engines enabled: google, duckduckgo"
                ),
                parameters=(
                    ParameterSpec(
                        name="search_string",
                        type="string",
                        required=True,
                        description="The search query string to search for on the web",
                    ),
                ),
            )
        ]

    @tool("SearXNG_tool")
    async def search(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        query = parameters["search_string"]
        if not self.searxng_url:
            logger.info("No SearXNG instance configured; returning simulated result")
            return {"success": True, "message": "Tool execution simulated - SearXNG_tool"}

        async with HTTPClient(
            self.searxng_url, "searxng", timeout=self.timeout, transport=self.transport
        ) as client:
            data = await client.get("/search", params={"q": query, "format": "json"})

        results = [
            {
                "title": item.get("title"),
                "url": item.get("url"),
                "content": item.get("content"),
            }
            for item in data.get("results", [])[:MAX_RESULTS]
        ]
        return {"success": True, "query": query, "results": results}
