"""Text extraction from web pages."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from ..base import PlatformIntegration, tool
from ..clients import HTTPClient
from ..schema import ParameterSpec, ToolDefinition
from ...errors import InvalidParametersError

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 50000


class WebPageReaderIntegration(PlatformIntegration):
    type = "system.read_page_tool"
    name = "Web Page Reader"

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport
        super().__init__()

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="read_page_tool",
                description=(
                    "Call this tool to extract the text from webpage. Dont call that "
                    "for private pages (as sharepoint pages)."
                ),
                parameters=(
                    ParameterSpec(
                        name="url",
                        type="string",
                        required=True,
                        description="The URL of the web page to read and extract text from",
                    ),
                ),
            )
        ]

    @tool("read_page_tool")
    async def read_page(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        url = parameters["url"]
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidParametersError("read_page_tool", ["url"])

        origin = f"{parsed.scheme}://{parsed.netloc}"
        async with HTTPClient(origin, "web", timeout=self.timeout, transport=self.transport) as client:
            response = await client.request("GET", url, follow_redirects=True)

        soup = BeautifulSoup(response.text, "html.parser")
        title = soup.title.text.strip() if soup.title else None
        for element in soup(["script", "style", "nav", "footer", "header", "noscript"]):
            element.decompose()
        content = soup.body.get_text("\n", strip=True) if soup.body else soup.get_text("\n", strip=True)

        truncated = len(content) > MAX_CONTENT_CHARS
        logger.debug(f"Read {len(content)} characters from {origin}")
        return {
            "success": True,
            "url": url,
            "title": title,
            "content": content[:MAX_CONTENT_CHARS],
            "truncated": truncated,
        }
