"""Trello integration."""

from typing import Any, Dict, List, Optional

import httpx

from ..base import PersonalizedIntegration, tool
from ..clients import HTTPClient, RateLimiter
from ..schema import CredentialField, ParameterSpec, ToolDefinition

TRELLO_API_URL = "https://api.trello.com/1"


class TrelloIntegration(PersonalizedIntegration):
    type = "trello"
    name = "Trello"
    prompt_template = "trello.xml.j2"
    setup_instructions = (
        "Get your API key at https://trello.com/app-key, then follow the Token link on the "
        "same page to generate an API token."
    )

    def __init__(
        self,
        app_url: str = "http://localhost:8000",
        requests_per_minute: int = 100,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        # One limiter for all instances: Trello limits per token and per key
        self.rate_limiter = RateLimiter(requests_per_minute=requests_per_minute)
        self.timeout = timeout
        self.transport = transport
        super().__init__(app_url)

    def get_credential_fields(self) -> List[CredentialField]:
        return [
            CredentialField(
                name="api_key",
                type="text",
                label="API Key",
                placeholder="Your Trello API Key",
                description="Your Trello API Key from https://trello.com/app-key",
            ),
            CredentialField(
                name="api_token",
                type="password",
                label="API Token",
                description="Your Trello API Token, generated from the Token link on the API key page",
            ),
        ]

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="trello_search",
                description=(
                    "Search across all Trello boards, cards, and lists using a query string. Returns: "
                    "Object with arrays of boards, cards, and lists matching the search term."
                ),
                parameters=(
                    ParameterSpec(name="query", type="string", required=True, description="Search query"),
                ),
            ),
            ToolDefinition(
                name="trello_get_board_lists",
                description=(
                    "Get all lists on a specific Trello board. Lists are containers that hold cards "
                    "(e.g., \"To Do\", \"In Progress\", \"Done\"). Returns: Array of lists with id, name, pos."
                ),
                parameters=(
                    ParameterSpec(name="boardId", type="string", required=True, description="The board ID"),
                ),
            ),
            ToolDefinition(
                name="trello_create_card",
                description=(
                    "Create a new card in a specific list. Returns: Created card object with id, name, "
                    "desc, url, idList, idBoard."
                ),
                parameters=(
                    ParameterSpec(name="listId", type="string", required=True, description="The list ID"),
                    ParameterSpec(name="name", type="string", required=True, description="Card title"),
                    ParameterSpec(name="desc", type="string", description="Card description"),
                    ParameterSpec(name="due", type="string", description="Due date (ISO 8601)"),
                ),
            ),
        ]

    def client(self, credentials: Optional[Dict[str, Any]]) -> HTTPClient:
        credentials = credentials or {}
        return HTTPClient(
            TRELLO_API_URL,
            self.type,
            params={"key": credentials.get("api_key", ""), "token": credentials.get("api_token", "")},
            timeout=self.timeout,
            rate_limiter=self.rate_limiter,
            transport=self.transport,
        )

    @tool("trello_search")
    async def search(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get(
                "/search",
                params={"query": parameters["query"], "modelTypes": "boards,cards,lists"},
            )

    @tool("trello_get_board_lists")
    async def get_board_lists(
        self,
        parameters: Dict[str, Any],
        credentials: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            lists = await client.get(f"/boards/{parameters['boardId']}/lists")
        return {"lists": lists}

    @tool("trello_create_card")
    async def create_card(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        payload = {"idList": parameters["listId"], "name": parameters["name"]}
        for key in ("desc", "due"):
            if parameters.get(key):
                payload[key] = parameters[key]

        async with self.client(credentials) as client:
            return await client.post("/cards", json=payload)
