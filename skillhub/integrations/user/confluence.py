"""Confluence Cloud integration."""

import html
from typing import Any, Dict, List, Optional

from .atlassian import AtlassianIntegration
from ..base import tool
from ..schema import ParameterSpec, ToolDefinition


def to_storage_format(content: str, content_format: str) -> str:
    """Convert page content into Confluence storage format."""
    if content_format == "html":
        return content
    paragraphs = [p.strip() for p in content.split("\n\n") if p.strip()]
    return "".join(f"<p>{html.escape(p).replace(chr(10), '<br/>')}</p>" for p in paragraphs)


class ConfluenceIntegration(AtlassianIntegration):
    type = "confluence"
    name = "Confluence"
    product = "confluence"
    prompt_template = "confluence.xml.j2"
    setup_instructions = (
        "API token: create a token at https://id.atlassian.com/manage-profile/security/api-tokens "
        "and enter your Confluence URL, email and the token. "
        "OAuth 2.0: save the configuration, then connect with Atlassian and choose your site."
    )

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="confluence_search",
                description=(
                    "Search for Confluence pages using CQL (Confluence Query Language). Returns: "
                    "Array of pages with results[].id, results[].title, results[].status, "
                    "results[]._links.webui"
                ),
                parameters=(
                    ParameterSpec(name="query", type="string", required=True, description="CQL query"),
                    ParameterSpec(
                        name="limit",
                        type="integer",
                        description="Maximum number of results (default: 25)",
                    ),
                ),
            ),
            ToolDefinition(
                name="confluence_get_page",
                description=(
                    "Get detailed content of a specific Confluence page. Returns: Page object with "
                    "id, status, title, spaceId, parentId, version.number, body.storage.value"
                ),
                parameters=(
                    ParameterSpec(name="pageId", type="string", required=True, description="The page ID"),
                ),
            ),
            ToolDefinition(
                name="confluence_create_page",
                description=(
                    "Create a new page in Confluence. Supports plain text or HTML content. Returns: "
                    "Created page object with id, title, spaceId, version.number, _links.webui"
                ),
                parameters=(
                    ParameterSpec(name="spaceId", type="string", required=True, description="Space ID"),
                    ParameterSpec(name="title", type="string", required=True, description="Page title"),
                    ParameterSpec(name="content", type="string", required=True, description="Page content"),
                    ParameterSpec(name="parentId", type="string", description="Parent page ID"),
                    ParameterSpec(
                        name="contentFormat",
                        type="string",
                        description="Format of content: text (default) or html",
                    ),
                ),
            ),
        ]

    @tool("confluence_search")
    async def search(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get(
                "/wiki/rest/api/search",
                params={"cql": parameters["query"], "limit": parameters.get("limit") or 25},
            )

    @tool("confluence_get_page")
    async def get_page(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get(
                f"/wiki/api/v2/pages/{parameters['pageId']}",
                params={"body-format": "storage"},
            )

    @tool("confluence_create_page")
    async def create_page(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "spaceId": parameters["spaceId"],
            "status": "current",
            "title": parameters["title"],
            "body": {
                "representation": "storage",
                "value": to_storage_format(parameters["content"], parameters.get("contentFormat") or "text"),
            },
        }
        if parameters.get("parentId"):
            payload["parentId"] = parameters["parentId"]

        async with self.client(credentials) as client:
            return await client.post("/wiki/api/v2/pages", json=payload)
